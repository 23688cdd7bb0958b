"""
Value objects shared by the crawler components.

Classes:
    RequestKind: LIST (search results) or DETAIL (single listing) request tag.
    PageRequest: Immutable unit of work held by the frontier.
    SearchQuery: Immutable search input of a run.
    VehicleRecord: Normalized vehicle produced for the sink.
    PartialExtraction: Subset of vehicle fields found by one extractor.
"""

import math
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from autotrader.config.settings import MAX_PAGES, RESULTS_WANTED
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


class RequestKind(str, Enum):
    LIST = "LIST"
    DETAIL = "DETAIL"


@dataclass(frozen=True)
class PageRequest:
    """
    Unit of work in the frontier.

    Attributes:
        url (str): Absolute URL to fetch.
        kind (RequestKind): Handler selector.
        page (int): 1-based search page number (LIST only).
        seed (Optional[str]): Seed URL the LIST lineage started from.
    """

    url: str
    kind: RequestKind
    page: int = 1
    seed: Optional[str] = None

    @classmethod
    def list_page(cls, url: str, page: int = 1, seed: Optional[str] = None) -> "PageRequest":
        return cls(url=url, kind=RequestKind.LIST, page=page, seed=seed or url)

    @classmethod
    def detail(cls, url: str) -> "PageRequest":
        return cls(url=url, kind=RequestKind.DETAIL, page=0)


def _number(value: Any) -> Optional[float]:
    """Coerce a raw bound to a finite float, None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _positive_int(value: Any, default: int) -> int:
    number = _number(value)
    if number is None:
        return default
    return max(1, int(number))


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class SearchQuery:
    """
    Search input of a run.

    Built once at run start and never mutated afterwards. Use from_input()
    to ingest a raw input document; malformed values are coerced to safe
    defaults instead of failing the run.
    """

    make: Optional[str] = None
    model: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    min_year: Optional[float] = None
    max_year: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_mileage: Optional[float] = None
    max_mileage: Optional[float] = None
    body_type: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    start_urls: Tuple[str, ...] = ()
    results_wanted: int = RESULTS_WANTED
    max_pages: int = MAX_PAGES
    proxy: Optional[str] = None

    @classmethod
    def from_input(cls, data: Optional[Mapping[str, Any]] = None) -> "SearchQuery":
        """
        Build a query from a raw input document.

        Accepts camelCase keys (minYear, resultsWanted, startUrls...) as well
        as snake_case ones (min_year, results_wanted, start_urls...).

        Args:
            data (Optional[Mapping[str, Any]]): Raw input, e.g. a task payload.

        Returns:
            SearchQuery: Coerced query.
        """
        data = data or {}

        seeds: List[str] = []
        raw_seeds = _first(data, "startUrls", "start_urls")
        if isinstance(raw_seeds, str):
            raw_seeds = [raw_seeds]
        for entry in list(raw_seeds or []) + [data.get("startUrl"), data.get("start_url"), data.get("url")]:
            if isinstance(entry, Mapping):
                entry = entry.get("url")
            entry = _text(entry)
            if not entry:
                continue
            if not _is_http_url(entry):
                logger.warning(f"Ignoring malformed seed URL: {entry}")
                continue
            if entry not in seeds:
                seeds.append(entry)

        proxy = _first(data, "proxyConfiguration", "proxy")
        if isinstance(proxy, Mapping):
            proxy = _first(proxy, "proxyUrl", "proxy_url", "url")

        return cls(
            make=_text(data.get("make")),
            model=_text(data.get("model")),
            province=_text(data.get("province")),
            city=_text(data.get("city")),
            min_year=_number(_first(data, "minYear", "min_year")),
            max_year=_number(_first(data, "maxYear", "max_year")),
            min_price=_number(_first(data, "minPrice", "min_price")),
            max_price=_number(_first(data, "maxPrice", "max_price")),
            min_mileage=_number(_first(data, "minMileage", "min_mileage")),
            max_mileage=_number(_first(data, "maxMileage", "max_mileage")),
            body_type=_text(_first(data, "bodyType", "body_type")),
            fuel_type=_text(_first(data, "fuelType", "fuel_type")),
            transmission=_text(data.get("transmission")),
            start_urls=tuple(seeds),
            results_wanted=_positive_int(
                _first(data, "resultsWanted", "results_wanted"), RESULTS_WANTED
            ),
            max_pages=_positive_int(_first(data, "maxPages", "max_pages"), MAX_PAGES),
            proxy=_text(proxy),
        )


@dataclass
class VehicleRecord:
    """
    Normalized vehicle listing.

    Field order is the order of the produced record schema. Only url is
    required; an accepted record also carries at least one of make, model
    or price.
    """

    ad_id: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    trim: Optional[str] = None
    price: Optional[int] = None
    price_formatted: Optional[str] = None
    mileage: Optional[int] = None
    mileage_formatted: Optional[str] = None
    transmission: Optional[str] = None
    drivetrain: Optional[str] = None
    body_type: Optional[str] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    fuel_type: Optional[str] = None
    engine: Optional[str] = None
    doors: Optional[int] = None
    seats: Optional[int] = None
    city: Optional[str] = None
    province: Optional[str] = None
    seller_name: Optional[str] = None
    is_private_seller: Optional[bool] = None
    dealer_id: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = field(default_factory=list)
    vehicle_status: Optional[str] = None
    vin: Optional[str] = None
    stock_number: Optional[str] = None
    features: List[str] = field(default_factory=list)
    url: str = ""

    def has_anchor(self) -> bool:
        return any(value not in (None, "") for value in (self.make, self.model, self.price))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


VEHICLE_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(VehicleRecord))
LIST_FIELDS = frozenset({"images", "features"})


@dataclass
class PartialExtraction:
    """
    Fields one extractor found on a detail page.

    Attributes:
        source (str): Extractor name, used in logs.
        priority (int): Rank in the merge order, 1 is the highest.
        values (Dict[str, Any]): Present fields keyed by VehicleRecord field name.
    """

    source: str
    priority: int
    values: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.values) - set(VEHICLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown vehicle fields from {self.source}: {sorted(unknown)}")

    def get(self, name: str) -> Any:
        return self.values.get(name)
