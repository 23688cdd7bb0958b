"""
Crawl state shared by the worker tasks of one run.

Every mutation happens inside a CrawlState method holding the same
asyncio.Lock, so the seen-set, the budget bookkeeping and the output buffer
have a single writer at any time.

Classes:
    CrawlState: Run-scoped bookkeeping for the crawl controller.
"""

import asyncio
from collections import deque
from typing import Deque, Dict, Iterable, List, Tuple

from autotrader.scraper.types import PageRequest, VehicleRecord
from autotrader.scraper.url_builder import strip_pagination
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)

COUNTERS = frozenset({"rejected", "failed", "seed_failures", "list_pages", "detail_pages"})


class CrawlState:
    """
    Run-scoped crawl bookkeeping.

    Budget accounting uses reservations: a DETAIL request holds a slot from
    the moment it is scheduled until it is accepted (the slot becomes an
    accepted record) or released (reject, skip or failure). The remaining
    budget is results_wanted - accepted - scheduled, so the controller never
    schedules more detail pages than the budget can absorb, and accept() is
    a single locked check-and-increment.

    Attributes:
        results_wanted (int): Result budget.
        max_pages (int): Search page ceiling per seed.
        accepted (int): Records accepted so far.
        scheduled (int): DETAIL requests holding a reservation.
        rejected (int): Detail pages that produced no record.
        failed (int): Requests abandoned after a fetch or handler failure.
        seed_failures (int): Seed search pages that could not be fetched.
        list_pages (int): Search pages fetched.
        detail_pages (int): Detail pages fetched.
    """

    def __init__(self, results_wanted: int, max_pages: int):
        self.results_wanted = results_wanted
        self.max_pages = max_pages
        self.accepted = 0
        self.scheduled = 0
        self.rejected = 0
        self.failed = 0
        self.seed_failures = 0
        self.list_pages = 0
        self.detail_pages = 0
        self._seen: set = set()
        self._backlog: Deque[str] = deque()
        self._bases: Dict[str, str] = {}
        self._deferred: Dict[str, PageRequest] = {}
        self._buffer: List[VehicleRecord] = []
        self._lock = asyncio.Lock()

    @property
    def remaining(self) -> int:
        return max(0, self.results_wanted - self.accepted - self.scheduled)

    @property
    def budget_met(self) -> bool:
        return self.accepted >= self.results_wanted

    async def mark_seen(self, urls: Iterable[str]) -> List[str]:
        """
        Check-and-mark detail URLs.

        Args:
            urls (Iterable[str]): Candidate URLs in discovery order.

        Returns:
            List[str]: URLs that were not seen before, now marked seen.
        """
        async with self._lock:
            novel = []
            for url in urls:
                if url in self._seen:
                    continue
                self._seen.add(url)
                novel.append(url)
            return novel

    def is_seen(self, url: str) -> bool:
        return url in self._seen

    async def count(self, counter: str) -> None:
        """Increment one of the run statistics counters."""
        if counter not in COUNTERS:
            raise ValueError(f"Unknown counter: {counter}")
        async with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)

    async def schedule_details(self, urls: List[str]) -> List[PageRequest]:
        """
        Reserve budget for newly discovered detail URLs.

        URLs beyond the remaining budget go to the backlog and are scheduled
        later if reserved slots are released.

        Args:
            urls (List[str]): Novel detail URLs in discovery order.

        Returns:
            List[PageRequest]: DETAIL requests to enqueue now.
        """
        async with self._lock:
            take = min(len(urls), self.remaining)
            self.scheduled += take
            self._backlog.extend(urls[take:])
            if len(urls) > take:
                logger.debug(f"Budget reserved, {len(urls) - take} detail URLs kept in backlog")
            return [PageRequest.detail(url) for url in urls[:take]]

    async def capture_base(self, request: PageRequest, final_url: str) -> str:
        """
        Canonical search URL of a seed lineage.

        Captured from the first search response of the seed, stripped of
        pagination parameters, and reused for every later page.
        """
        seed = request.seed or request.url
        async with self._lock:
            if seed not in self._bases:
                self._bases[seed] = strip_pagination(final_url)
                logger.debug(f"Canonical search URL for {seed}: {self._bases[seed]}")
            return self._bases[seed]

    async def plan_next_page(self, next_request: PageRequest) -> bool:
        """
        Decide whether the next search page is enqueued now.

        Args:
            next_request (PageRequest): Following LIST request of a lineage.

        Returns:
            bool: True to enqueue it now. False when the budget is fully
            reserved; the request is then parked and resumed by release().
        """
        async with self._lock:
            if self.remaining > 0:
                return True
            self._deferred[next_request.seed or next_request.url] = next_request
            return False

    async def accept(self, record: VehicleRecord, batch_size: int) -> Tuple[bool, List[VehicleRecord]]:
        """
        Atomic check-and-increment of the accepted counter.

        Args:
            record (VehicleRecord): Merged record of a scheduled DETAIL request.
            batch_size (int): Buffer size that triggers a flush.

        Returns:
            Tuple[bool, List[VehicleRecord]]: Whether the record was accepted,
            and a batch to flush (empty unless the buffer reached batch_size).
        """
        async with self._lock:
            self.scheduled = max(0, self.scheduled - 1)
            if self.accepted >= self.results_wanted:
                return False, []
            self.accepted += 1
            self._buffer.append(record)
            if len(self._buffer) >= batch_size:
                batch, self._buffer = self._buffer, []
                return True, batch
            return True, []

    async def release(self) -> List[PageRequest]:
        """
        Release the reservation of a DETAIL request that produced no record.

        Returns:
            List[PageRequest]: Replacement work: backlog DETAIL requests while
            budget remains, otherwise a parked search page.
        """
        async with self._lock:
            self.scheduled = max(0, self.scheduled - 1)
            return self._refill()

    def _refill(self) -> List[PageRequest]:
        requests = []
        while self._backlog and self.remaining > 0:
            self.scheduled += 1
            requests.append(PageRequest.detail(self._backlog.popleft()))
        if not requests and self.remaining > 0 and self._deferred:
            _, request = self._deferred.popitem()
            requests.append(request)
        return requests

    async def drain(self) -> List[VehicleRecord]:
        """Take whatever is left in the output buffer."""
        async with self._lock:
            batch, self._buffer = self._buffer, []
            return batch

    def stats(self) -> Dict[str, int]:
        return {
            "accepted": self.accepted,
            "rejected": self.rejected,
            "failed": self.failed,
            "list_pages": self.list_pages,
            "detail_pages": self.detail_pages,
        }
