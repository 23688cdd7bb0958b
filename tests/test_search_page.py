"""Tests for search page link discovery."""

import pytest

from autotrader.scraper.page import ParsedPage
from autotrader.scraper.parsers.search_page import SearchPageParser
from autotrader.scraper.state import CrawlState

LIST_URL = "https://www.autotrader.ca/cars/honda/civic/?hprc=True&wcp=True&rcp=15&rcs=0"

LIST_HTML = """<html><body>
  <a href="/a/honda/civic/toronto/ontario/5_1_20240101/">One</a>
  <a href="/a/honda/civic/toronto/ontario/5_1_20240101/#photos">One again</a>
  <a href="https://www.autotrader.ca/a/honda/civic/ottawa/ontario/5_2_20240101/">Two</a>
  <a href="/cars/honda/civic/">Search</a>
  <a href="/help/a/faq">Help</a>
  <a href="mailto:someone@example.com?subject=/a/">Mail</a>
  <a href="">Empty</a>
</body></html>"""


def _page() -> ParsedPage:
    return ParsedPage.from_html(LIST_URL, LIST_HTML)


def test_extract_links() -> None:
    links = SearchPageParser().extract_links(_page())
    assert links == [
        "https://www.autotrader.ca/a/honda/civic/toronto/ontario/5_1_20240101/",
        "https://www.autotrader.ca/a/honda/civic/ottawa/ontario/5_2_20240101/",
    ]


def test_links_resolved_against_page_url() -> None:
    page = ParsedPage.from_html("https://mirror.example.ca/cars/?rcs=0", '<a href="/a/kia/soul/1_2/">x</a>')
    assert SearchPageParser().extract_links(page) == ["https://mirror.example.ca/a/kia/soul/1_2/"]


@pytest.mark.asyncio
async def test_discover_links_skips_seen() -> None:
    state = CrawlState(results_wanted=10, max_pages=5)
    parser = SearchPageParser()

    first = await parser.discover_links(_page(), state)
    second = await parser.discover_links(_page(), state)

    assert len(first) == 2
    assert second == []
    assert state.is_seen(first[0])
