"""HTML builders and test doubles shared by the crawler tests."""

from __future__ import annotations

import asyncio
import json
from typing import Callable, Dict, List, Optional, Sequence

from autotrader.scraper.fetcher import FetchResult
from autotrader.scraper.page import ParsedPage
from autotrader.scraper.sink import ResultSink
from autotrader.scraper.types import VehicleRecord

ORIGIN = "https://www.autotrader.ca"


def detail_url(n: int) -> str:
    return f"{ORIGIN}/a/honda/civic/toronto/ontario/5_{1000 + n}_20240101/"


def list_html(hrefs: Sequence[str]) -> str:
    anchors = "\n".join(
        f'<div class="result-item"><a class="result-title" href="{href}">Listing</a></div>'
        for href in hrefs
    )
    return f"""<!DOCTYPE html>
<html><head><title>Honda Civic for sale</title></head>
<body>
  <a href="/cars/honda/">All Honda</a>
  {anchors}
</body></html>
"""


def model_html(model: dict) -> str:
    """Detail page carrying only an embedded page model."""
    return f"""<!DOCTYPE html>
<html><head>
<script>window['ngVdpModel'] = {json.dumps(model)};</script>
</head><body><div id="app"></div></body></html>
"""


def vehicle_html(make: str = "Honda", model: str = "Civic", price: int = 24995) -> str:
    return model_html({"hero": {"make": make, "model": model, "year": 2019, "price": price}})


EMPTY_DETAIL_HTML = "<html><head><title>Listing</title></head><body><p>Sold.</p></body></html>"


class FakeFetcher:
    """In-memory fetch collaborator.

    ``pages`` maps URLs to HTML; unknown URLs fail with "HTTP 404". Every
    fetched URL is recorded in ``fetched`` in call order.
    """

    def __init__(self, pages: Optional[Dict[str, str]] = None, fallback: Optional[Callable[[str], Optional[str]]] = None):
        self.pages = dict(pages or {})
        self.fallback = fallback
        self.fetched: List[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.fetched.append(url)
        await asyncio.sleep(0)
        html = self.pages.get(url)
        if html is None and self.fallback is not None:
            html = self.fallback(url)
        if html is None:
            return FetchResult.failure(url, "HTTP 404")
        return FetchResult(url=url, page=ParsedPage.from_html(url, html))

    def fetched_details(self) -> List[str]:
        return [url for url in self.fetched if "/a/" in url]

    def fetched_lists(self) -> List[str]:
        return [url for url in self.fetched if "/a/" not in url]


class MemorySink(ResultSink):
    def __init__(self) -> None:
        self.batches: List[List[VehicleRecord]] = []

    @property
    def records(self) -> List[VehicleRecord]:
        return [record for batch in self.batches for record in batch]

    def write_batch(self, records):
        self.batches.append(list(records))
        return len(records)


class BrokenSink(ResultSink):
    def write_batch(self, records):
        raise ConnectionError("database is gone")
