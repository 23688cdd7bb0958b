"""
Query-to-URL builder for autotrader.ca search pages.

Functions:
    build_search_url: Canonical search URL for a query and pagination offset.
    strip_pagination: Remove pagination parameters from a search URL.
    page_url: Re-apply pagination parameters to a canonical search URL.
    offset_for_page: Offset of a 1-based search page.

Note:
    Building is pure: identical inputs always produce identical URLs, which
    is what the frontier relies on for de-duplication.
"""

import math
from typing import List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlencode, urlparse, urlunparse

from autotrader.config.settings import AUTOTRADER_BASE_URL, PAGE_SIZE
from autotrader.scraper.types import SearchQuery

PAGE_SIZE_PARAM = "rcp"
OFFSET_PARAM = "rcs"
PAGINATION_PARAMS = frozenset({PAGE_SIZE_PARAM, OFFSET_PARAM})
HOME_DELIVERY_PARAMS: Tuple[Tuple[str, str], ...] = (("hprc", "True"), ("wcp", "True"))


def _bound(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _range_param(low: Optional[float], high: Optional[float]) -> Optional[str]:
    """Encode a numeric range as "<min>,<max>", None when both sides are absent."""
    low_text, high_text = _bound(low), _bound(high)
    if not low_text and not high_text:
        return None
    return f"{low_text},{high_text}"


def offset_for_page(page: int) -> int:
    return max(0, page - 1) * PAGE_SIZE


def build_search_url(query: SearchQuery, offset: int = 0) -> str:
    """
    Build the canonical search URL.

    Path segments (make, model, province, city) are lower-cased and
    percent-encoded, in that order, and only added when present. The
    home-delivery pair and the page size are always present.

    Args:
        query (SearchQuery): Search input.
        offset (int): Index of the first listing, a multiple of PAGE_SIZE.
            Negative values are clamped to 0.

    Returns:
        str: Absolute search URL.

    Examples:
        >>> build_search_url(SearchQuery(make="Honda", model="Civic"), 15)
        'https://www.autotrader.ca/cars/honda/civic/?hprc=True&wcp=True&rcp=15&rcs=15'
    """
    segments = [
        quote(part.lower(), safe="")
        for part in (query.make, query.model, query.province, query.city)
        if part
    ]
    path = "/".join([AUTOTRADER_BASE_URL.rstrip("/")] + segments) + "/"

    params: List[Tuple[str, str]] = list(HOME_DELIVERY_PARAMS)
    params.append((PAGE_SIZE_PARAM, str(PAGE_SIZE)))
    params.append((OFFSET_PARAM, str(max(0, int(offset)))))

    for name, low, high in (
        ("yRng", query.min_year, query.max_year),
        ("pRng", query.min_price, query.max_price),
        ("oRng", query.min_mileage, query.max_mileage),
    ):
        encoded = _range_param(low, high)
        if encoded is not None:
            params.append((name, encoded))

    for name, value in (
        ("bdy", query.body_type),
        ("fuel", query.fuel_type),
        ("trans", query.transmission),
    ):
        if value:
            params.append((name, value))

    return f"{path}?{urlencode(params)}"


def strip_pagination(url: str) -> str:
    """Return url without its page-size and offset parameters."""
    parsed = urlparse(url)
    query = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key not in PAGINATION_PARAMS
    ]
    return urlunparse(parsed._replace(query=urlencode(query), fragment=""))


def page_url(base_url: str, offset: int) -> str:
    """Apply page size and offset to a canonical (pagination-free) search URL."""
    parsed = urlparse(strip_pagination(base_url))
    query = parse_qsl(parsed.query, keep_blank_values=True)
    query.append((PAGE_SIZE_PARAM, str(PAGE_SIZE)))
    query.append((OFFSET_PARAM, str(max(0, int(offset)))))
    return urlunparse(parsed._replace(query=urlencode(query)))
