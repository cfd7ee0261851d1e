"""
Distributor (Cosmopolitan) catalog API client.
"""

import asyncio
import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from ..paging import PagedFetcher, PageRequest, RequestThrottle, SleepFunc
from .models import DistributorItem, DistributorItemDetail

logger = logging.getLogger(__name__)


def next_url_from_body(
    response: httpx.Response, request: PageRequest
) -> Optional[PageRequest]:
    """Follow the ``NextUrl`` field of a list response."""
    next_url = (response.json() or {}).get("NextUrl")
    if not next_url:
        return None
    # The API returns the next URL without a scheme
    if not next_url.startswith(("http://", "https://")):
        next_url = f"https://{next_url}"
    return PageRequest(url=next_url)


class DistributorClient:
    """
    Async client for the distributor product catalog.

    Lists the catalog page by page and looks up per-item details with a
    bounded retry on transient server errors.
    """

    DETAIL_MAX_ATTEMPTS = 3
    DETAIL_RETRY_DELAY = 2.0  # seconds, multiplied by the attempt number
    RETRYABLE_STATUSES = (500, 503)

    def __init__(
        self,
        base_url: str,
        api_key: str,
        auth_scheme: str = "CosmoToken",
        excluded_suffix: str = "-A",
        min_request_interval: float = 1.0,
        max_rate_limit_retries: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize distributor client.

        Args:
            base_url: API root (e.g., "https://api.cosmopolitanusa.com/v1")
            api_key: Distributor API key
            auth_scheme: Prefix of the Authorization header value
            excluded_suffix: Item codes ending with this are never listed
            min_request_interval: Seconds between paginated requests
            max_rate_limit_retries: 429 retries allowed per page
            transport: Optional httpx transport (used by tests)
            sleep: Coroutine used for every wait
        """
        self.base_url = base_url.rstrip("/")
        self.excluded_suffix = excluded_suffix
        self._sleep = sleep

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(60.0, connect=10.0),
            headers={"Authorization": f"{auth_scheme} {api_key}"},
            transport=transport,
        )
        self.fetcher = PagedFetcher(
            self._client,
            throttle=RequestThrottle(min_request_interval, sleep=sleep),
            max_rate_limit_retries=max_rate_limit_retries,
            sleep=sleep,
            name="distributor",
        )
        self.last_listing_complete = False

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()

    async def list_products(self) -> List[DistributorItem]:
        """
        Fetch the full product list, minus suffix-excluded items.

        Returns:
            Every listed item that may be synced
        """
        result = await self.fetcher.fetch_all(
            PageRequest(url=f"{self.base_url}/products"),
            extract=lambda body: body.get("Results") or [],
            next_page=next_url_from_body,
        )
        self.last_listing_complete = result.complete

        products: List[DistributorItem] = []
        for raw in result.items:
            if not isinstance(raw, dict) or not raw.get("Item"):
                continue
            item = DistributorItem.model_validate(raw)
            if item.has_excluded_suffix(self.excluded_suffix):
                continue
            products.append(item)

        if not result.complete:
            logger.warning(
                f"Distributor listing incomplete after {result.pages} pages"
            )
        logger.info(f"Filtered products count: {len(products)}")
        return products

    async def fetch_detail(self, code: str) -> Optional[DistributorItemDetail]:
        """
        Fetch the full detail record for one item.

        Args:
            code: Distributor item code

        Returns:
            The detail record, or None if it could not be fetched
        """
        for attempt in range(1, self.DETAIL_MAX_ATTEMPTS + 1):
            try:
                response = await self._client.get(f"/products/{code}")
            except httpx.RequestError as e:
                logger.error(f"Error fetching details for product {code}: {e}")
                return None

            if response.is_success:
                try:
                    body = response.json()
                except ValueError as e:
                    logger.error(f"Malformed detail response for product {code}: {e}")
                    return None
                return self._parse_detail(code, body)

            if (
                response.status_code in self.RETRYABLE_STATUSES
                and attempt < self.DETAIL_MAX_ATTEMPTS
            ):
                delay = self.DETAIL_RETRY_DELAY * attempt
                logger.warning(
                    f"Attempt {attempt} failed for product {code} "
                    f"(HTTP {response.status_code}). Retrying in {delay:.0f} seconds..."
                )
                await self._sleep(delay)
                continue

            logger.error(
                f"Error fetching details for product {code}: "
                f"HTTP {response.status_code}"
            )
            return None

        return None

    def _parse_detail(self, code: str, body: Any) -> Optional[DistributorItemDetail]:
        """Validate a detail body; invalid records count as failed fetches."""
        try:
            detail = DistributorItemDetail.model_validate(body)
        except ValidationError as e:
            logger.error(f"Invalid detail record for product {code}: {e}")
            return None

        if detail.item != code:
            logger.error(
                f"Detail record for product {code} has item code {detail.item}"
            )
            return None
        return detail

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
