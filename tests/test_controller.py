"""End-to-end tests of the crawl controller with in-memory fetcher and sink."""

import pytest

from autotrader.scraper.autotrader import AutoTraderScraper, SeedFetchError
from autotrader.scraper.sink import SinkError
from autotrader.scraper.types import SearchQuery
from autotrader.scraper.url_builder import build_search_url

from .helpers import (
    EMPTY_DETAIL_HTML,
    BrokenSink,
    FakeFetcher,
    MemorySink,
    detail_url,
    list_html,
    vehicle_html,
)

SEED = "https://www.autotrader.ca/cars/honda/civic/?hprc=True&wcp=True&rcp=15&rcs=0"
PAGE_2 = "https://www.autotrader.ca/cars/honda/civic/?hprc=True&wcp=True&rcp=15&rcs=15"
PAGE_3 = "https://www.autotrader.ca/cars/honda/civic/?hprc=True&wcp=True&rcp=15&rcs=30"


def _query(**overrides) -> SearchQuery:
    values = {"make": "Honda", "model": "Civic", "results_wanted": 5, "max_pages": 5}
    values.update(overrides)
    return SearchQuery(**values)


def _details(urls) -> dict:
    return {url: vehicle_html() for url in urls}


def _scraper(query: SearchQuery, fetcher, sink=None, **kwargs) -> AutoTraderScraper:
    return AutoTraderScraper(query, fetcher=fetcher, sink=sink or MemorySink(), **kwargs)


def test_seed_url_built_from_query() -> None:
    scraper = _scraper(_query(), FakeFetcher())
    assert [r.url for r in scraper.seed_requests()] == [SEED]
    assert build_search_url(_query()) == SEED


@pytest.mark.asyncio
async def test_budget_stops_crawl_before_next_page() -> None:
    links = [detail_url(n) for n in range(8)]
    fetcher = FakeFetcher({SEED: list_html(links), **_details(links)})
    sink = MemorySink()

    stats = await _scraper(_query(), fetcher, sink, concurrency=4).run()

    assert fetcher.fetched_lists() == [SEED]
    assert len(fetcher.fetched_details()) == 5
    assert stats["accepted"] == 5
    assert stats["saved"] == 5
    assert stats["list_requests"] == 1
    assert stats["detail_requests"] == 5
    assert len(sink.records) == 5
    assert PAGE_2 not in fetcher.fetched


@pytest.mark.asyncio
async def test_record_from_page_model_only() -> None:
    url = detail_url(1)
    fetcher = FakeFetcher({SEED: list_html([url]), url: vehicle_html(price=24995)})
    sink = MemorySink()

    await _scraper(_query(max_pages=1), fetcher, sink).run()

    [record] = sink.records
    assert record.make == "Honda"
    assert record.model == "Civic"
    assert record.year == 2019
    assert record.price == 24995
    assert record.price_formatted == "$24,995"
    assert record.ad_id == "5_1001_20240101"
    assert record.url == url
    assert record.images == []
    assert record.features == []
    absent = ("trim", "mileage", "mileage_formatted", "transmission", "drivetrain", "body_type", "vin", "seller_name")
    for name in absent + ("vehicle_status", "description", "is_private_seller"):
        assert getattr(record, name) is None, name


@pytest.mark.asyncio
async def test_page_without_anchor_fields_is_rejected() -> None:
    good, empty = detail_url(1), detail_url(2)
    fetcher = FakeFetcher({SEED: list_html([good, empty]), good: vehicle_html(), empty: EMPTY_DETAIL_HTML})
    sink = MemorySink()

    stats = await _scraper(_query(max_pages=1), fetcher, sink).run()

    assert stats["accepted"] == 1
    assert stats["rejected"] == 1
    assert [r.url for r in sink.records] == [good]


@pytest.mark.asyncio
async def test_pagination_uses_offset_and_page_ceiling() -> None:
    first = [detail_url(n) for n in range(3)]
    second = [detail_url(n) for n in range(3, 6)]
    fetcher = FakeFetcher(
        {SEED: list_html(first), PAGE_2: list_html(second), PAGE_3: list_html([detail_url(9)]), **_details(first + second)}
    )

    stats = await _scraper(_query(results_wanted=40, max_pages=2), fetcher).run()

    assert fetcher.fetched_lists() == [SEED, PAGE_2]
    assert stats["list_pages"] == 2
    assert stats["accepted"] == 6


@pytest.mark.asyncio
async def test_empty_search_page_ends_lineage() -> None:
    links = [detail_url(1)]
    fetcher = FakeFetcher({SEED: list_html(links), PAGE_2: list_html([]), **_details(links)})

    stats = await _scraper(_query(results_wanted=40), fetcher).run()

    assert fetcher.fetched_lists() == [SEED, PAGE_2]
    assert stats["accepted"] == 1


@pytest.mark.asyncio
async def test_rejected_listing_frees_slot_for_backlog() -> None:
    bad, good_1, good_2 = detail_url(1), detail_url(2), detail_url(3)
    fetcher = FakeFetcher(
        {SEED: list_html([bad, good_1, good_2]), bad: EMPTY_DETAIL_HTML, good_1: vehicle_html(), good_2: vehicle_html()}
    )
    sink = MemorySink()

    stats = await _scraper(_query(results_wanted=2), fetcher, sink, concurrency=1).run()

    assert sorted(fetcher.fetched_details()) == sorted([bad, good_1, good_2])
    assert stats["accepted"] == 2
    assert stats["rejected"] == 1
    assert sorted(r.url for r in sink.records) == sorted([good_1, good_2])
    assert PAGE_2 not in fetcher.fetched


@pytest.mark.asyncio
async def test_deferred_page_resumes_after_rejection() -> None:
    bad = detail_url(1)
    good = detail_url(2)
    fetcher = FakeFetcher(
        {SEED: list_html([bad]), PAGE_2: list_html([good]), bad: EMPTY_DETAIL_HTML, good: vehicle_html()}
    )

    stats = await _scraper(_query(results_wanted=1), fetcher, concurrency=1).run()

    assert fetcher.fetched_lists() == [SEED, PAGE_2]
    assert stats["accepted"] == 1
    assert stats["rejected"] == 1


@pytest.mark.asyncio
async def test_detail_fetch_failure_is_counted() -> None:
    ok_1, missing, ok_2 = detail_url(1), detail_url(2), detail_url(3)
    fetcher = FakeFetcher({SEED: list_html([ok_1, missing, ok_2]), **_details([ok_1, ok_2])})

    stats = await _scraper(_query(max_pages=1), fetcher).run()

    assert stats["accepted"] == 2
    assert stats["failed"] == 1
    assert stats["detail_pages"] == 2


@pytest.mark.asyncio
async def test_all_seeds_failing_raises() -> None:
    with pytest.raises(SeedFetchError):
        await _scraper(_query(), FakeFetcher()).run()


@pytest.mark.asyncio
async def test_one_failing_seed_is_tolerated() -> None:
    good_seed = "https://www.autotrader.ca/cars/kia/soul/?hprc=True&wcp=True"
    bad_seed = "https://www.autotrader.ca/cars/ford/?hprc=True&wcp=True"
    url = detail_url(1)
    fetcher = FakeFetcher({good_seed: list_html([url]), url: vehicle_html(make="Kia", model="Soul")})

    stats = await _scraper(_query(start_urls=(bad_seed, good_seed), max_pages=1), fetcher).run()

    assert stats["accepted"] == 1
    assert stats["failed"] == 1


@pytest.mark.asyncio
async def test_sink_failure_aborts_run() -> None:
    links = [detail_url(n) for n in range(3)]
    fetcher = FakeFetcher({SEED: list_html(links), **_details(links)})

    with pytest.raises(SinkError):
        await _scraper(_query(max_pages=1), fetcher, BrokenSink(), batch_size=1).run()


@pytest.mark.asyncio
async def test_concurrency_never_overshoots_budget() -> None:
    links = [detail_url(n) for n in range(12)]
    fetcher = FakeFetcher({SEED: list_html(links), **_details(links)})
    sink = MemorySink()

    stats = await _scraper(_query(results_wanted=3), fetcher, sink, concurrency=10).run()

    assert len(fetcher.fetched_details()) == 3
    assert stats["accepted"] == 3
    assert len(sink.records) == 3


@pytest.mark.asyncio
async def test_explicit_seeds_share_seen_set() -> None:
    seed_a = "https://www.autotrader.ca/cars/honda/?hprc=True&wcp=True&rcp=15&rcs=0"
    seed_b = "https://www.autotrader.ca/cars/acura/?hprc=True&wcp=True&rcp=15&rcs=0"
    links = [detail_url(n) for n in range(3)]
    fetcher = FakeFetcher(
        {seed_a: list_html(links[:2]), seed_b: list_html(links[1:]), **_details(links)}
    )

    stats = await _scraper(_query(start_urls=(seed_a, seed_b), results_wanted=10, max_pages=1), fetcher).run()

    assert sorted(fetcher.fetched_lists()) == sorted([seed_a, seed_b])
    assert sorted(fetcher.fetched_details()) == sorted(links)
    assert stats["accepted"] == 3


@pytest.mark.asyncio
async def test_records_flushed_in_batches() -> None:
    links = [detail_url(n) for n in range(5)]
    fetcher = FakeFetcher({SEED: list_html(links), **_details(links)})
    sink = MemorySink()

    stats = await _scraper(_query(), fetcher, sink, batch_size=2).run()

    assert [len(batch) for batch in sink.batches] == [2, 2, 1]
    assert stats["saved"] == 5
