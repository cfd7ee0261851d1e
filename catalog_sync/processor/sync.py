"""
Catalog reconciliation between the distributor and the storefront.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set

from ..distributor import DistributorClient, DistributorItem, DistributorItemDetail
from ..paging import ApiClientError
from ..pricing import compute_price
from ..shopify import (
    ShopifyAuthError, ShopifyClient, ShopifyWriteError, StorefrontProduct,
    build_create_payload, build_update_payload,
)
from .rules import (
    CategoryDenylist, Classification, classify_item, exclusion_reason,
    should_update_variant,
)

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "active"
DRAFT_STATUS = "draft"
PROGRESS_EVERY = 100


class SyncAction(str, Enum):
    """What the sync did for one item."""
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DRAFTED = "drafted"
    SKIPPED = "skipped"
    EXCLUDED = "excluded"
    FAILED = "failed"


@dataclass
class ItemOutcome:
    """Result of reconciling one SKU."""
    code: str
    action: SyncAction
    reason: Optional[str] = None
    product_id: Optional[int] = None


@dataclass
class SyncSummary:
    """Counts and per-item outcomes of one sync run."""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def record(self, outcome: ItemOutcome) -> ItemOutcome:
        self.outcomes.append(outcome)
        return outcome

    def count(self, action: SyncAction) -> int:
        return sum(1 for o in self.outcomes if o.action == action)

    @property
    def created(self) -> int:
        return self.count(SyncAction.CREATED)

    @property
    def updated(self) -> int:
        return self.count(SyncAction.UPDATED)

    @property
    def unchanged(self) -> int:
        return self.count(SyncAction.UNCHANGED)

    @property
    def drafted(self) -> int:
        return self.count(SyncAction.DRAFTED)

    @property
    def skipped(self) -> int:
        return self.count(SyncAction.SKIPPED)

    @property
    def excluded(self) -> int:
        return self.count(SyncAction.EXCLUDED)

    @property
    def failed(self) -> int:
        return self.count(SyncAction.FAILED)

    def as_dict(self) -> Dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            **{action.value: self.count(action) for action in SyncAction},
        }


class Reconciler:
    """
    Drives one full reconciliation run.

    Items are processed one at a time; each storefront write finishes before
    the next item starts.
    """

    def __init__(
        self,
        distributor: DistributorClient,
        storefront: ShopifyClient,
        denylist: CategoryDenylist,
        vendor: str = "Cosmopolitan",
        excluded_suffix: str = "-A",
        draft_discontinued: bool = True,
    ):
        self.distributor = distributor
        self.storefront = storefront
        self.denylist = denylist
        self.vendor = vendor
        self.excluded_suffix = excluded_suffix
        self.draft_discontinued = draft_discontinued

    async def run(self) -> SyncSummary:
        """
        Reconcile every distributor item against the storefront.

        Returns:
            SyncSummary with one outcome per item

        Raises:
            ShopifyAuthError: If the storefront rejects the credentials
        """
        summary = SyncSummary()

        items = await self.distributor.list_products()
        distributor_skus: Set[str] = {item.item for item in items}

        storefront_products = await self.storefront.list_all()
        storefront_skus: Set[str] = {
            sku for product in storefront_products for sku in product.skus
        }
        logger.info(
            f"Reconciling {len(distributor_skus)} distributor SKUs against "
            f"{len(storefront_skus)} storefront SKUs"
        )

        total = len(items)
        for processed, item in enumerate(items, start=1):
            summary.record(
                await self.reconcile_item(item, distributor_skus, storefront_skus)
            )
            if processed % PROGRESS_EVERY == 0 or processed == total:
                logger.info(
                    f"Progress: {processed}/{total} items ({int(processed/total*100)}%)"
                )

        if self.draft_discontinued:
            for outcome in await self.draft_missing_products(
                storefront_products, distributor_skus
            ):
                summary.record(outcome)

        summary.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Sync completed: {summary.created} created, {summary.updated} updated, "
            f"{summary.unchanged} unchanged, {summary.drafted} drafted, "
            f"{summary.skipped} skipped, {summary.excluded} excluded, "
            f"{summary.failed} failed"
        )
        return summary

    async def reconcile_item(
        self,
        item: DistributorItem,
        distributor_skus: Set[str],
        storefront_skus: Set[str],
    ) -> ItemOutcome:
        """Classify one distributor item and apply the storefront change."""
        code = item.item

        if item.has_excluded_suffix(self.excluded_suffix):
            logger.info(f"Skipping product {code} because it ends with '{self.excluded_suffix}'.")
            return ItemOutcome(code, SyncAction.SKIPPED, "excluded suffix")

        detail = await self.distributor.fetch_detail(code)
        classification = classify_item(code, detail, self.denylist, self.excluded_suffix)

        if classification is Classification.CATEGORY_EXCLUDED:
            reason = exclusion_reason(detail)
            logger.info(f"Skipping product {code} with {reason}.")
            return ItemOutcome(code, SyncAction.EXCLUDED, reason)

        try:
            return await self._apply(detail, distributor_skus, storefront_skus)
        except ShopifyAuthError:
            raise
        except ShopifyWriteError as e:
            if e.is_duplicate_sku:
                logger.error(
                    f"Attempted to create a product with an existing SKU: {code}"
                )
            else:
                logger.error(f"Error creating or updating Shopify product {code}: {e}")
            return ItemOutcome(code, SyncAction.FAILED, str(e))
        except ApiClientError as e:
            logger.error(f"Error creating or updating Shopify product {code}: {e}")
            return ItemOutcome(code, SyncAction.FAILED, str(e))

    async def _apply(
        self,
        detail: DistributorItemDetail,
        distributor_skus: Set[str],
        storefront_skus: Set[str],
    ) -> ItemOutcome:
        code = detail.item
        price, compare_at = compute_price(detail.net, detail.retail)
        existing = await self.storefront.find_by_sku(code)

        if existing is not None and code not in distributor_skus:
            logger.info(
                f"Drafting product {code} as it is no longer available from the distributor."
            )
            await self.storefront.set_status(existing.id, DRAFT_STATUS)
            return ItemOutcome(code, SyncAction.DRAFTED, product_id=existing.id)

        if existing is not None:
            variant = existing.variant_for_sku(code)
            weight = detail.weight if detail.weight is not None else 0
            reactivate = existing.status == DRAFT_STATUS
            if not reactivate and not should_update_variant(
                variant, price, compare_at, detail.available, weight=weight
            ):
                logger.debug(f"Product {existing.id} ({code}) already up to date.")
                return ItemOutcome(code, SyncAction.UNCHANGED, product_id=existing.id)

            payload = build_update_payload(
                existing, detail, price, compare_at,
                status=ACTIVE_STATUS if reactivate else None,
            )
            await self.storefront.update(existing.id, payload)
            if reactivate:
                logger.info(
                    f"Reactivated product {existing.id} ({code}) as the distributor "
                    f"offers it again."
                )
                return ItemOutcome(
                    code, SyncAction.UPDATED, "reactivated", product_id=existing.id
                )
            logger.info(f"Updated product {existing.id} ({code}) in Shopify.")
            return ItemOutcome(code, SyncAction.UPDATED, product_id=existing.id)

        if code not in distributor_skus:
            logger.info(f"Product {code} is not offered by the distributor and not in Shopify.")
            return ItemOutcome(code, SyncAction.SKIPPED, "not offered")

        if code not in storefront_skus:
            logger.info(f"Creating new product with SKU {code} in Shopify.")
            created = await self.storefront.create(
                build_create_payload(detail, price, compare_at, self.vendor)
            )
            product_id = created.get("id")
            logger.info(f"Created new product in Shopify: {product_id}")
            storefront_skus.add(code)
            return ItemOutcome(code, SyncAction.CREATED, product_id=product_id)

        logger.info(f"Product with SKU {code} already exists in Shopify. Skipping creation.")
        return ItemOutcome(code, SyncAction.SKIPPED, "already exists")

    async def draft_missing_products(
        self,
        storefront_products: List[StorefrontProduct],
        distributor_skus: Set[str],
    ) -> List[ItemOutcome]:
        """
        Draft this vendor's storefront products the distributor no longer lists.

        Only runs when both catalogs were listed completely, so a truncated
        listing never hides live products.
        """
        if not (
            self.distributor.last_listing_complete
            and self.storefront.last_listing_complete
            and distributor_skus
        ):
            logger.warning("Catalog listings incomplete, not drafting missing products")
            return []

        outcomes: List[ItemOutcome] = []
        for product in storefront_products:
            if product.vendor != self.vendor or product.status == DRAFT_STATUS:
                continue
            skus = product.skus
            if not skus or any(sku in distributor_skus for sku in skus):
                continue

            code = skus[0]
            try:
                await self.storefront.set_status(product.id, DRAFT_STATUS)
            except ShopifyAuthError:
                raise
            except ApiClientError as e:
                logger.error(f"Error drafting product {product.id} ({code}): {e}")
                outcomes.append(ItemOutcome(code, SyncAction.FAILED, str(e), product.id))
                continue

            logger.info(
                f"Drafting product {product.id} ({code}) as it is no longer "
                f"available from the distributor."
            )
            outcomes.append(ItemOutcome(code, SyncAction.DRAFTED, product_id=product.id))

        return outcomes
