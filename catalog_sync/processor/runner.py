"""
Runner for executing a full catalog sync.
"""

import asyncio
import logging
import traceback
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import Settings
from ..distributor import DistributorClient
from ..notifications import EmailNotifier
from ..shopify import ShopifyClient
from .rules import load_category_denylist
from .sync import Reconciler, SyncAction, SyncSummary

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Error during sync process."""
    pass


@dataclass
class SyncResult:
    """Result of a sync run."""
    summary: Optional[SyncSummary]
    error: Optional[str]

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def has_failures(self) -> bool:
        return not self.success or (self.summary is not None and self.summary.failed > 0)


def build_distributor_client(settings: Settings) -> DistributorClient:
    return DistributorClient(
        base_url=settings.distributor_base_url,
        api_key=settings.distributor_api_key,
        auth_scheme=settings.distributor_auth_scheme,
        excluded_suffix=settings.excluded_suffix,
        min_request_interval=settings.min_request_interval,
        max_rate_limit_retries=settings.max_rate_limit_retries,
    )


def build_shopify_client(settings: Settings) -> ShopifyClient:
    return ShopifyClient(
        shop_domain=settings.shopify_store_url,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        min_request_interval=settings.min_request_interval,
        max_rate_limit_retries=settings.max_rate_limit_retries,
    )


def build_notifier(settings: Settings) -> EmailNotifier:
    return EmailNotifier(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        username=settings.gmail_user,
        password=settings.gmail_pass,
        recipient=settings.notify_email_to,
    )


async def sync_catalog(
    settings: Settings,
    distributor: DistributorClient,
    storefront: ShopifyClient,
) -> SyncSummary:
    """
    Run the reconciliation with already-built clients.

    Raises:
        SyncError: If the run could not complete
    """
    if not settings.shopify_store_url or not settings.shopify_access_token:
        raise SyncError("Shopify store URL and access token must be configured")

    try:
        denylist = load_category_denylist(settings.excluded_categories_file)
    except (OSError, ValueError) as e:
        raise SyncError(f"Could not load category denylist: {e}") from e

    reconciler = Reconciler(
        distributor,
        storefront,
        denylist,
        vendor=settings.storefront_vendor,
        excluded_suffix=settings.excluded_suffix,
        draft_discontinued=settings.draft_discontinued,
    )

    try:
        if settings.max_run_seconds:
            return await asyncio.wait_for(reconciler.run(), settings.max_run_seconds)
        return await reconciler.run()
    except asyncio.TimeoutError as e:
        raise SyncError(
            f"Sync did not finish within {settings.max_run_seconds}s"
        ) from e
    except Exception as e:
        raise SyncError(f"Sync failed: {e}") from e


async def run_sync(
    settings: Settings,
    notifier: Optional[EmailNotifier] = None,
) -> SyncResult:
    """Run a full sync with error handling and failure alerts."""
    notifier = notifier or build_notifier(settings)
    logger.info("Starting catalog sync")

    try:
        async with build_distributor_client(settings) as distributor, \
                build_shopify_client(settings) as storefront:
            summary = await sync_catalog(settings, distributor, storefront)
        result = SyncResult(summary=summary, error=None)
    except SyncError as e:
        logger.error(str(e))
        logger.debug(traceback.format_exc())
        result = SyncResult(summary=None, error=str(e))
    except Exception as e:
        logger.exception("Unexpected error during catalog sync")
        result = SyncResult(summary=None, error=f"Unexpected error: {e}")

    if result.has_failures:
        await notifier.send(*_failure_message(result))

    return result


def _failure_message(result: SyncResult) -> Tuple[str, str]:
    if not result.success:
        return "Catalog sync failed", f"The catalog sync did not complete:\n\n{result.error}"

    summary = result.summary
    failed = [o for o in summary.outcomes if o.action == SyncAction.FAILED]
    lines = [f"{o.code}: {o.reason}" for o in failed]
    body = (
        f"Catalog sync finished with {len(failed)} failed items.\n\n"
        + "\n".join(lines)
    )
    return f"Catalog sync: {len(failed)} items failed", body
