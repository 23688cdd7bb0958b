"""
The scraper package contains the crawl components.

This package implements asynchronous crawling of autotrader.ca search results.
Implementation uses httpx for HTTP requests and BeautifulSoup (lxml) for
HTML parsing.

Modules:
    types: Value objects (SearchQuery, PageRequest, VehicleRecord, PartialExtraction).
    url_builder: Search URL building and pagination helpers.
    normalizers: Price/mileage parsing and display formatting.
    page: Parsed page handle.
    base: Abstract base class for detail-page extractors.
    merge: Merge engine for partial extractions.
    state: Run-scoped shared crawl state.
    fetcher: httpx fetcher with bounded retries.
    sink: Result sinks and the batch adapter.
    autotrader: Crawl controller.

Subpackages:
    parsers: Link discovery and the three detail-page extractors.
"""
