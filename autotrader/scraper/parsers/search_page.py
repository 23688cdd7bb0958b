"""
Autotrader.ca search page parser (link discovery).

This module extracts listing detail links from search result pages. Links are
resolved against the page's own final URL rather than a hardcoded origin, so
mirrors and regional hosts keep working, and they are checked against the
run's seen-set in one locked step so two search pages processed concurrently
never hand out the same detail URL twice.

Attributes:
    logger: Logger for registering parsing events.
    DETAIL_PATH_RE: Path pattern of listing detail pages.

Classes:
    SearchPageParser: Link discovery for search result pages.
"""

import re
from typing import List
from urllib.parse import urldefrag, urlparse

from autotrader.scraper.page import ParsedPage
from autotrader.scraper.state import CrawlState
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)

DETAIL_PATH_RE = re.compile(r"^/a/[A-Za-z0-9\-]+")


class SearchPageParser:
    """
    Link discovery for search result pages.

    Methods:
        extract_links: Qualifying detail links of a page, in document order.
        discover_links: Same, minus URLs already seen in the run (marked seen).
    """

    def extract_links(self, page: ParsedPage) -> List[str]:
        """
        Extract links to vehicle detail pages.

        Args:
            page (ParsedPage): Search result page.

        Returns:
            List[str]: Absolute detail URLs, de-duplicated within the page.
        """
        links: List[str] = []
        for anchor in page.select('a[href*="/a/"]'):
            href = anchor.get("href")
            if not isinstance(href, str) or not href.strip():
                continue
            url, _ = urldefrag(page.absolute(href.strip()))
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https"):
                continue
            if not DETAIL_PATH_RE.match(parsed.path):
                continue
            if url not in links:
                links.append(url)
        return links

    async def discover_links(self, page: ParsedPage, state: CrawlState) -> List[str]:
        """
        Detail URLs of a search page that the run has not seen yet.

        Args:
            page (ParsedPage): Search result page.
            state (CrawlState): Run state holding the seen-set.

        Returns:
            List[str]: Novel detail URLs in discovery order, now marked seen.
        """
        links = self.extract_links(page)
        novel = await state.mark_seen(links)
        logger.info(
            f"Found {len(links)} vehicle listings on {page.url}, {len(novel)} new"
        )
        return novel
