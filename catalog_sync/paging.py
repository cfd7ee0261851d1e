"""
Cursor-following pagination for REST collections.

Shared by the distributor and storefront clients. Each API gets its own
RequestThrottle so the two are rate-limited independently.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import (
    Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional
)

import httpx

logger = logging.getLogger(__name__)


SleepFunc = Callable[[float], Awaitable[None]]


class ApiClientError(Exception):
    """Base exception for upstream API errors."""
    pass


class PaginationError(ApiClientError):
    """Pagination could not reach the API at all."""
    pass


@dataclass
class PageRequest:
    """URL and query parameters for one page."""

    url: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Page:
    """One fetched page."""

    request: PageRequest
    data: Any
    next_request: Optional[PageRequest]


@dataclass
class FetchResult:
    """Items gathered from every page of a collection."""

    items: List[Any]
    pages: int
    complete: bool  # False when the loop stopped before the last page


NextPageExtractor = Callable[[httpx.Response, PageRequest], Optional[PageRequest]]


def parse_retry_after(response: httpx.Response, default: float = 1.0) -> float:
    """Seconds to wait from a Retry-After header."""
    value = response.headers.get("Retry-After")
    if value is None:
        return default
    try:
        delay = float(value)
    except ValueError:
        return default
    return delay if delay >= 0 else default


def link_header_next(
    response: httpx.Response, request: PageRequest
) -> Optional[PageRequest]:
    """
    Follow an RFC 5988 ``Link: <...>; rel="next"`` header.

    Shopify only accepts ``limit`` and ``fields`` next to ``page_info``, so
    every other parameter of the starting request is dropped.
    """
    next_url = response.links.get("next", {}).get("url")
    if not next_url:
        return None

    page_info = httpx.URL(next_url).params.get("page_info")
    if not page_info:
        return None

    params = {
        key: value for key, value in request.params.items()
        if key in ("limit", "fields")
    }
    params["page_info"] = page_info
    return PageRequest(url=request.url, params=params)


class RequestThrottle:
    """
    Enforces a minimum interval between consecutive requests to one API.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval
        self._sleep = sleep
        self._clock = clock
        self._last_request_at: Optional[float] = None

    async def wait(self) -> None:
        """Sleep for whatever remains of the interval since the last request."""
        if self._last_request_at is None or self.min_interval <= 0:
            return
        elapsed = self._clock() - self._last_request_at
        remaining = self.min_interval - elapsed
        if remaining > 0:
            await self._sleep(remaining)

    def mark(self) -> None:
        """Record that a request just completed."""
        self._last_request_at = self._clock()


class PagedFetcher:
    """
    Lazily enumerates the pages of a paginated collection.

    Rate-limited pages (HTTP 429) are retried after the Retry-After delay;
    any other error response ends the enumeration with what was gathered.
    """

    MAX_RETRIES = 5
    BASE_RETRY_DELAY = 1.0  # seconds

    def __init__(
        self,
        client: httpx.AsyncClient,
        throttle: Optional[RequestThrottle] = None,
        max_rate_limit_retries: int = 10,
        sleep: SleepFunc = asyncio.sleep,
        name: str = "api",
    ):
        self.client = client
        self.throttle = throttle or RequestThrottle(sleep=sleep)
        self.max_rate_limit_retries = max_rate_limit_retries
        self.name = name
        self._sleep = sleep

    async def pages(
        self,
        start: PageRequest,
        next_page: NextPageExtractor = link_header_next,
        max_pages: Optional[int] = None,
    ) -> AsyncIterator[Page]:
        """
        Yield pages from ``start`` until no next page is indicated.

        Each call starts over from the first page.
        """
        request: Optional[PageRequest] = start
        fetched = 0

        while request is not None:
            if max_pages is not None and fetched >= max_pages:
                logger.info(f"[{self.name}] Page limit {max_pages} reached")
                return

            response = await self._get_page(request)
            if response is None:
                return

            if not response.is_success:
                logger.error(
                    f"[{self.name}] Pagination stopped after {fetched} pages: "
                    f"HTTP {response.status_code} for {request.url}"
                )
                return

            try:
                data = response.json()
            except ValueError as e:
                logger.error(
                    f"[{self.name}] Pagination stopped after {fetched} pages: "
                    f"malformed body from {request.url}: {e}"
                )
                return

            if not isinstance(data, dict):
                logger.error(
                    f"[{self.name}] Pagination stopped after {fetched} pages: "
                    f"expected a JSON object from {request.url}, "
                    f"got {type(data).__name__}"
                )
                return

            fetched += 1
            following = next_page(response, request)
            yield Page(request=request, data=data, next_request=following)
            request = following

    async def fetch_all(
        self,
        start: PageRequest,
        extract: Callable[[Any], List[Any]],
        next_page: NextPageExtractor = link_header_next,
        max_pages: Optional[int] = None,
    ) -> FetchResult:
        """
        Collect the items of every page.

        Args:
            start: First page request
            extract: Pulls the item list out of a page body
            next_page: Builds the following request from a response
            max_pages: Optional page limit

        Returns:
            FetchResult; ``complete`` is True only if the last page had no
            next link.
        """
        items: List[Any] = []
        count = 0
        last: Optional[Page] = None

        async for page in self.pages(start, next_page, max_pages):
            items.extend(extract(page.data) or [])
            count += 1
            last = page

        complete = last is not None and last.next_request is None
        return FetchResult(items=items, pages=count, complete=complete)

    async def _get_page(self, request: PageRequest) -> Optional[httpx.Response]:
        """
        Issue one page request, absorbing 429s and transport errors.

        Returns None when the rate-limit retry budget runs out.

        Raises:
            PaginationError: If transport errors persist past MAX_RETRIES
        """
        rate_limited = 0
        transport_failures = 0

        while True:
            await self.throttle.wait()
            try:
                response = await self.client.get(request.url, params=request.params)
            except httpx.RequestError as e:
                self.throttle.mark()
                transport_failures += 1
                if transport_failures > self.MAX_RETRIES:
                    raise PaginationError(
                        f"[{self.name}] Request failed for {request.url}: {e}"
                    ) from e
                delay = self.BASE_RETRY_DELAY * (2 ** (transport_failures - 1))
                logger.warning(
                    f"[{self.name}] Request error, retrying in {delay:.1f}s: {e}"
                )
                await self._sleep(delay)
                continue

            self.throttle.mark()

            if response.status_code != 429:
                return response

            rate_limited += 1
            if rate_limited > self.max_rate_limit_retries:
                logger.error(
                    f"[{self.name}] Still rate limited after "
                    f"{self.max_rate_limit_retries} retries, giving up"
                )
                return None

            delay = parse_retry_after(response)
            logger.warning(
                f"[{self.name}] Rate limit hit, retrying after {delay:.1f}s "
                f"(attempt {rate_limited}/{self.max_rate_limit_retries})"
            )
            await self._sleep(delay)
