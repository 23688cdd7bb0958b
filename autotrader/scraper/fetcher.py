"""
HTTP fetcher (asynchronous, httpx).

The crawl controller only sees two outcomes per request: a parsed page or a
failure with a reason. Retries, timeouts, proxying and User-Agent rotation all
live here.

Attributes:
    logger: Logger for registering fetch events.
    RETRY_STATUSES: Response codes that are retried.

Classes:
    FetchResult: Outcome of one fetch.
    HttpFetcher: httpx-based fetcher with bounded retries.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Optional

import httpx  # type: ignore
from fake_useragent import UserAgent

from autotrader.config.settings import (
    FETCH_RETRIES,
    FETCH_RETRY_DELAY,
    FETCH_TIMEOUT,
)
from autotrader.scraper.page import ParsedPage
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one fetch.

    Attributes:
        url (str): Requested URL.
        page (Optional[ParsedPage]): Parsed page on success.
        error (Optional[str]): Failure reason otherwise.
    """

    url: str
    page: Optional[ParsedPage] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.page is not None

    @classmethod
    def failure(cls, url: str, reason: str) -> "FetchResult":
        return cls(url=url, error=reason)


class HttpFetcher:
    """
    Asynchronous fetcher for autotrader.ca pages.

    Use as an async context manager; the underlying httpx.AsyncClient is
    opened on enter and closed on exit.

    Attributes:
        retries (int): Attempts per request.
        timeout (float): Per-request timeout in seconds.
        retry_delay (float): Base delay between attempts in seconds.
        proxy (Optional[str]): Proxy URL handed to httpx.
        ua (UserAgent): Random User-Agent header generator.
    """

    def __init__(
        self,
        retries: int = FETCH_RETRIES,
        timeout: float = FETCH_TIMEOUT,
        retry_delay: float = FETCH_RETRY_DELAY,
        proxy: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.retries = max(1, retries)
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.proxy = proxy
        self.ua = UserAgent()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpFetcher":
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.ua.random,
                    "Accept": "text/html,application/xhtml+xml",
                    "Accept-Language": "en-CA,en;q=0.9",
                },
                timeout=self.timeout,
                follow_redirects=True,
                proxy=self.proxy,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _wait_time(self, response: Optional[httpx.Response], attempt: int) -> float:
        """Delay before the next attempt, honouring Retry-After when present."""
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return float(retry_after)
        return self.retry_delay * attempt + random.uniform(0, self.retry_delay)

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch and parse a page.

        Args:
            url (str): Absolute URL.

        Returns:
            FetchResult: Parsed page, or a failure with the last error after
            all attempts were used.
        """
        if self._client is None:
            raise RuntimeError("HttpFetcher must be used as an async context manager")

        reason = "no attempt made"
        for attempt in range(1, self.retries + 1):
            response = None
            try:
                response = await self._client.get(url)
                response.raise_for_status()
                return FetchResult(
                    url=url, page=ParsedPage.from_html(str(response.url), response.text)
                )
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                reason = f"HTTP {status}"
                if status not in RETRY_STATUSES:
                    logger.error(f"Failed to get HTML for URL: {url}: {reason}")
                    return FetchResult.failure(url, reason)
            except httpx.HTTPError as e:
                reason = f"{type(e).__name__}: {str(e)}"

            if attempt < self.retries:
                wait_time = self._wait_time(response, attempt)
                logger.warning(
                    f"Attempt {attempt}/{self.retries} failed for {url} ({reason}). "
                    f"Retrying in {wait_time:.1f} sec."
                )
                await asyncio.sleep(wait_time)

        logger.error(f"All attempts exhausted for getting HTML for URL: {url} ({reason})")
        return FetchResult.failure(url, reason)
