"""
Main scraper class for autotrader.ca (asynchronous, httpx+bs4).

This module implements the crawl controller. A frontier queue of PageRequest
objects is drained by a bounded pool of worker tasks. Search (LIST) pages feed
link discovery and pagination; listing (DETAIL) pages go through the three
extractors and the merge engine, and accepted records are batched to a sink.

Attributes:
    logger: Logger for registering scraping events.
    SCRAPER_CONCURRENCY: Number of worker tasks (from settings).
    SINK_BATCH_SIZE: Records per sink batch (from settings).

Classes:
    SeedFetchError: Raised when none of the seed search pages could be fetched.
    AutoTraderScraper: Crawl controller.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

from autotrader.config.settings import SCRAPER_CONCURRENCY, SINK_BATCH_SIZE
from autotrader.scraper.base import BaseExtractor
from autotrader.scraper.fetcher import FetchResult, HttpFetcher
from autotrader.scraper.merge import merge_extractions
from autotrader.scraper.page import ParsedPage
from autotrader.scraper.parsers.car_page import CarPageParser
from autotrader.scraper.parsers.linked_data import LinkedDataExtractor
from autotrader.scraper.parsers.search_page import SearchPageParser
from autotrader.scraper.parsers.structured_model import StructuredModelExtractor
from autotrader.scraper.sink import DatabaseSink, ResultSink, ResultSinkAdapter, SinkError
from autotrader.scraper.state import CrawlState
from autotrader.scraper.types import PageRequest, RequestKind, SearchQuery, VehicleRecord
from autotrader.scraper.url_builder import build_search_url, offset_for_page, page_url
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)

PROGRESS_EVERY = 10


class SeedFetchError(Exception):
    """None of the seed search pages could be fetched."""


class AutoTraderScraper:
    """
    Asynchronous crawl controller for autotrader.ca.

    Attributes:
        query (SearchQuery): Search input of the run.
        fetcher: Object with an async fetch(url) -> FetchResult method. When
            None, an HttpFetcher is opened for the duration of run().
        sink (ResultSinkAdapter): Batch writer for accepted records.
        concurrency (int): Number of worker tasks.
        batch_size (int): Records per sink batch.
        extractors (List[BaseExtractor]): Detail-page extractors.
        search_parser (SearchPageParser): Link discovery.
        state (Optional[CrawlState]): State of the current run.
    """

    def __init__(
        self,
        query: SearchQuery,
        fetcher=None,
        sink: Optional[ResultSink] = None,
        concurrency: int = SCRAPER_CONCURRENCY,
        batch_size: int = SINK_BATCH_SIZE,
        extractors: Optional[Sequence[BaseExtractor]] = None,
    ):
        self.query = query
        self.fetcher = fetcher
        self.sink = ResultSinkAdapter(sink if sink is not None else DatabaseSink())
        self.concurrency = max(1, concurrency)
        self.batch_size = max(1, batch_size)
        self.extractors: List[BaseExtractor] = list(
            extractors
            if extractors is not None
            else (StructuredModelExtractor(), LinkedDataExtractor(), CarPageParser())
        )
        self.search_parser = SearchPageParser()
        self.state: Optional[CrawlState] = None
        self.frontier: Optional[asyncio.Queue] = None
        self.enqueued: Dict[RequestKind, int] = {RequestKind.LIST: 0, RequestKind.DETAIL: 0}
        self._seeds: List[PageRequest] = []

    def seed_requests(self) -> List[PageRequest]:
        """Explicit seed URLs, or the search URL built from the query."""
        urls = list(self.query.start_urls) or [build_search_url(self.query, 0)]
        return [PageRequest.list_page(url, page=1, seed=url) for url in urls]

    def extract_vehicle(self, page: ParsedPage, url: str) -> Optional[VehicleRecord]:
        """
        Run every extractor on a detail page and merge the results.

        Args:
            page (ParsedPage): Detail page.
            url (str): Source URL recorded on the vehicle.

        Returns:
            Optional[VehicleRecord]: Merged record, None if rejected.
        """
        partials = [extractor.run(page) for extractor in self.extractors]
        found = [p.source for p in partials if p is not None]
        logger.debug(f"Extractors with data for {url}: {', '.join(found) or 'none'}")
        return merge_extractions(partials, url)

    def _enqueue(self, request: PageRequest) -> None:
        self.frontier.put_nowait(request)
        self.enqueued[request.kind] += 1

    async def _release(self) -> None:
        """Give back a DETAIL reservation and enqueue any replacement work."""
        for request in await self.state.release():
            if request.kind is RequestKind.LIST:
                logger.info(f"Budget freed, resuming search at page {request.page}: {request.url}")
            self._enqueue(request)

    async def _handle_list(self, request: PageRequest, result: FetchResult) -> None:
        state = self.state
        if not result.ok:
            logger.warning(f"Request failed: {request.url} ({result.error})")
            await state.count("failed")
            if request in self._seeds:
                await state.count("seed_failures")
            return

        await state.count("list_pages")
        base_url = await state.capture_base(request, result.page.url)
        links = await self.search_parser.discover_links(result.page, state)
        logger.info(f"Page {request.page}: Found {len(links)} vehicle listings")

        for detail in await state.schedule_details(links):
            self._enqueue(detail)

        if not links:
            logger.info(f"No new listings on page {request.page}. Reached end of list.")
            return
        if request.page >= state.max_pages:
            logger.info(f"Reached limit of {state.max_pages} pages.")
            return

        next_page = request.page + 1
        next_request = PageRequest.list_page(
            page_url(base_url, offset_for_page(next_page)), page=next_page, seed=request.seed
        )
        if await state.plan_next_page(next_request):
            self._enqueue(next_request)
        else:
            logger.info(f"Budget fully scheduled, page {next_page} deferred")

    async def _handle_detail(self, request: PageRequest, result: FetchResult) -> None:
        state = self.state
        if not result.ok:
            logger.warning(f"Request failed: {request.url} ({result.error})")
            await state.count("failed")
            await self._release()
            return

        await state.count("detail_pages")
        vehicle = self.extract_vehicle(result.page, request.url)
        if vehicle is None:
            logger.info(f"No make, model or price found, skipping {request.url}")
            await state.count("rejected")
            await self._release()
            return

        accepted, batch = await state.accept(vehicle, self.batch_size)
        if not accepted:
            logger.info(f"Budget already met, dropping {request.url}")
            return
        if state.accepted % PROGRESS_EVERY == 0:
            logger.info(f"Progress: {state.accepted}/{state.results_wanted} vehicles scraped")
        if batch:
            self.sink.flush(batch)

    async def _process(self, fetcher, request: PageRequest) -> None:
        """Fetch one request and dispatch it by kind."""
        if request.kind is RequestKind.DETAIL and self.state.budget_met:
            logger.debug(f"Budget met, skipping {request.url}")
            await self._release()
            return

        result = await fetcher.fetch(request.url)
        if request.kind is RequestKind.LIST:
            await self._handle_list(request, result)
        else:
            await self._handle_detail(request, result)

    async def _worker(self, fetcher) -> None:
        while True:
            request = await self.frontier.get()
            try:
                await self._process(fetcher, request)
            except SinkError:
                raise
            except Exception as e:
                logger.error(
                    f"Error during {request.kind.value} handling ({request.url}): {str(e)}",
                    exc_info=True,
                )
                await self.state.count("failed")
                if request.kind is RequestKind.DETAIL:
                    await self._release()
            finally:
                self.frontier.task_done()

    async def _crawl(self, fetcher) -> None:
        """Run the worker pool until the frontier is drained or a worker dies."""
        workers = [asyncio.create_task(self._worker(fetcher)) for _ in range(self.concurrency)]
        drained = asyncio.create_task(self.frontier.join())
        try:
            await asyncio.wait([drained, *workers], return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (drained, *workers):
                task.cancel()
            outcomes = await asyncio.gather(drained, *workers, return_exceptions=True)

        for outcome in outcomes:
            if isinstance(outcome, Exception):
                raise outcome

    async def run(self) -> Dict[str, int]:
        """
        Start the crawl.

        Seeds the frontier with the search page(s), processes requests with
        a bounded worker pool until the frontier is empty, then flushes the
        remaining buffered records.

        Returns:
            Dict[str, int]: Run statistics with keys accepted, saved, rejected,
            failed, list_pages, detail_pages, list_requests, detail_requests.

        Raises:
            SeedFetchError: If every seed search page failed to load.
            SinkError: If the sink failed to record a batch.
        """
        query = self.query
        self.state = CrawlState(query.results_wanted, query.max_pages)
        self.frontier = asyncio.Queue()
        self.enqueued = {RequestKind.LIST: 0, RequestKind.DETAIL: 0}
        self._seeds = self.seed_requests()
        for request in self._seeds:
            self._enqueue(request)

        logger.info(
            f"Starting autotrader.ca scraper: make={query.make} model={query.model} "
            f"province={query.province} results_wanted={query.results_wanted} "
            f"max_pages={query.max_pages} seeds={len(self._seeds)}"
        )

        if self.fetcher is not None:
            await self._crawl(self.fetcher)
        else:
            async with HttpFetcher(proxy=query.proxy) as fetcher:
                await self._crawl(fetcher)

        self.sink.flush(await self.state.drain())

        if self.state.seed_failures == len(self._seeds) and self.state.list_pages == 0:
            raise SeedFetchError(f"Failed to fetch any of {len(self._seeds)} seed URL(s)")

        stats = self.state.stats()
        stats["saved"] = self.sink.saved
        stats["list_requests"] = self.enqueued[RequestKind.LIST]
        stats["detail_requests"] = self.enqueued[RequestKind.DETAIL]
        logger.info(
            f"Scraping completed. Search pages: {stats['list_pages']}. "
            f"Vehicles accepted: {stats['accepted']}, saved: {stats['saved']}, "
            f"rejected: {stats['rejected']}, failed requests: {stats['failed']}"
        )
        return stats


# For manual launch
if __name__ == "__main__":
    from autotrader.config.settings import SEARCH_INPUT

    scraper = AutoTraderScraper(SearchQuery.from_input(SEARCH_INPUT))
    asyncio.run(scraper.run())
