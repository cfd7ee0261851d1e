"""
Shopify Admin REST API client for storefront products.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError

from ..paging import (
    ApiClientError, PagedFetcher, PageRequest, RequestThrottle, SleepFunc,
    link_header_next, parse_retry_after,
)
from .models import StorefrontProduct

logger = logging.getLogger(__name__)


class ShopifyClientError(ApiClientError):
    """Base exception for Shopify client errors."""
    pass


class ShopifyAuthError(ShopifyClientError):
    """Authentication error."""
    pass


class ShopifyRateLimitError(ShopifyClientError):
    """Rate limit exceeded."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ShopifyWriteError(ShopifyClientError):
    """A create or update was rejected (e.g., duplicate SKU)."""

    def __init__(self, message: str, status_code: int, errors: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors

    @property
    def is_duplicate_sku(self) -> bool:
        """Check if Shopify rejected the write because of the SKU."""
        if isinstance(self.errors, dict):
            return any("sku" in str(key).lower() for key in self.errors)
        return "sku" in str(self.errors).lower()


class ShopifyClient:
    """
    Async HTTP client for the Shopify Admin REST products API.

    Handles authentication, pagination, rate limiting, and retries.
    """

    DEFAULT_API_VERSION = "2024-04"
    PAGE_LIMIT = 250
    LIST_FIELDS = ("id", "variants", "images", "vendor", "status")
    LOOKUP_FIELDS = ("id", "variants", "vendor", "status")
    MAX_RETRIES = 5
    BASE_RETRY_DELAY = 1.0  # seconds

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        min_request_interval: float = 1.0,
        max_rate_limit_retries: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize Shopify client.

        Args:
            shop_domain: Store domain (e.g., "mystore.myshopify.com")
            access_token: Admin API access token
            api_version: Admin API version
            min_request_interval: Seconds between paginated requests
            max_rate_limit_retries: 429 retries allowed per page
            transport: Optional httpx transport (used by tests)
            sleep: Coroutine used for every wait
        """
        # Clean domain
        domain = shop_domain
        if domain.startswith("https://"):
            domain = domain[8:]
        elif domain.startswith("http://"):
            domain = domain[7:]
        domain = domain.rstrip("/")

        self.shop_domain = domain
        self.base_url = f"https://{domain}/admin/api/{api_version}"
        self._sleep = sleep

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, connect=10.0),
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": access_token,
            },
            transport=transport,
        )
        self.fetcher = PagedFetcher(
            self._client,
            throttle=RequestThrottle(min_request_interval, sleep=sleep),
            max_rate_limit_retries=max_rate_limit_retries,
            sleep=sleep,
            name="shopify",
        )
        self.last_listing_complete = False

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()

    def _products_request(self, fields: Iterable[str]) -> PageRequest:
        return PageRequest(
            url=f"{self.base_url}/products.json",
            params={"fields": ",".join(fields), "limit": self.PAGE_LIMIT},
        )

    async def _iter_products(
        self, fields: Iterable[str]
    ) -> AsyncIterator[StorefrontProduct]:
        async for page in self.fetcher.pages(
            self._products_request(fields), next_page=link_header_next
        ):
            for raw in page.data.get("products") or []:
                try:
                    yield StorefrontProduct.model_validate(raw)
                except ValidationError as e:
                    logger.warning(f"Skipping unreadable product {_product_id(raw)}: {e}")

    async def list_all(
        self, fields: Iterable[str] = LIST_FIELDS
    ) -> List[StorefrontProduct]:
        """
        Fetch every product in the store.

        Args:
            fields: Product fields to request

        Returns:
            All products that could be listed
        """
        result = await self.fetcher.fetch_all(
            self._products_request(fields),
            extract=lambda body: body.get("products") or [],
            next_page=link_header_next,
        )
        self.last_listing_complete = result.complete

        products: List[StorefrontProduct] = []
        for raw in result.items:
            try:
                products.append(StorefrontProduct.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable product {_product_id(raw)}: {e}")

        if not result.complete:
            logger.warning(f"Shopify listing incomplete after {result.pages} pages")
        logger.info(f"Fetched {len(products)} Shopify products")
        return products

    async def find_by_sku(self, sku: str) -> Optional[StorefrontProduct]:
        """
        Find the first product with a variant carrying this SKU.

        Scans the catalog page by page and stops at the first match.
        """
        async for product in self._iter_products(self.LOOKUP_FIELDS):
            if product.variant_for_sku(sku) is not None:
                return product
        return None

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a product.

        Args:
            payload: Body with a top-level "product" object

        Returns:
            The created product as returned by Shopify
        """
        data = await self._write("POST", "/products.json", payload)
        return data.get("product", {})

    async def update(self, product_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Update an existing product."""
        data = await self._write("PUT", f"/products/{product_id}.json", payload)
        return data.get("product", {})

    async def set_status(self, product_id: int, status: str) -> Dict[str, Any]:
        """Change a product's status ("active", "draft" or "archived")."""
        return await self.update(
            product_id, {"product": {"id": product_id, "status": status}}
        )

    async def _write(
        self, method: str, path: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Send a write request with retry logic.

        Raises:
            ShopifyAuthError: If authentication fails
            ShopifyWriteError: If Shopify rejects the payload
            ShopifyRateLimitError: If rate limit exceeded after retries
            ShopifyClientError: For other errors
        """
        url = f"{self.base_url}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(self.MAX_RETRIES):
            try:
                response = await self._client.request(method, url, json=payload)

                if response.status_code in (401, 403):
                    raise ShopifyAuthError(
                        f"Authentication failed for {self.shop_domain}"
                    )

                if response.status_code == 429:
                    raise ShopifyRateLimitError(
                        "Rate limit exceeded",
                        retry_after=parse_retry_after(response, self.BASE_RETRY_DELAY),
                    )

                if response.status_code == 422:
                    errors = _error_body(response)
                    raise ShopifyWriteError(
                        f"{method} {path} rejected: {errors}",
                        status_code=response.status_code,
                        errors=errors,
                    )

                if not response.is_success:
                    raise ShopifyClientError(
                        f"{method} {path} failed with HTTP {response.status_code}: "
                        f"{_error_body(response)}"
                    )

                return response.json() if response.content else {}

            except ShopifyRateLimitError as e:
                last_error = e
                delay = e.retry_after or (self.BASE_RETRY_DELAY * (2 ** attempt))
                logger.warning(
                    f"Rate limited, waiting {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                await self._sleep(delay)

            except httpx.RequestError as e:
                # A lost POST response may still have created the product
                if method == "POST":
                    raise ShopifyClientError(f"Request error: {e}") from e
                last_error = ShopifyClientError(f"Request error: {e}")
                delay = self.BASE_RETRY_DELAY * (2 ** attempt)
                logger.warning(f"Request error, retrying in {delay:.1f}s: {e}")
                await self._sleep(delay)

        # All retries exhausted
        raise last_error or ShopifyClientError("Max retries exceeded")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def _error_body(response: httpx.Response) -> Any:
    """Extract the "errors" member of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "errors" in body:
        return body["errors"]
    return body


def _product_id(raw: Any) -> Any:
    return raw.get("id") if isinstance(raw, dict) else raw
