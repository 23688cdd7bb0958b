"""
Embedded page-model extractor.

Detail pages ship their full data model as JSON assigned to a page-global
variable (window['ngVdpModel'], window.__NEXT_DATA__) or as a JSON script
element. This extractor decodes that payload and looks every vehicle field up
under a list of known key aliases with a bounded breadth-first walk.

Attributes:
    logger: Logger for registering extraction events.
    MAX_DEPTH: Depth budget of the tree walk.

Classes:
    StructuredModelExtractor: Highest-priority extractor.

Functions:
    find_value: Bounded breadth-first key lookup in nested JSON.
    load_page_model: Locate and decode the embedded page model.
"""

import json
import re
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from autotrader.scraper.base import BaseExtractor
from autotrader.scraper.normalizers import (
    ad_id_from_url,
    clean_text,
    normalize_status,
    parse_mileage,
    parse_price,
    to_int,
)
from autotrader.scraper.page import ParsedPage
from autotrader.scraper.types import PartialExtraction
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 6

MODEL_ASSIGNMENT_PATTERNS = (
    re.compile(r"window\[\s*['\"]ngVdpModel['\"]\s*\]\s*=\s*"),
    re.compile(r"window\.ngVdpModel\s*=\s*"),
    re.compile(r"window\.__NEXT_DATA__\s*=\s*"),
)

_decoder = json.JSONDecoder()


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _is_list(value: Any) -> bool:
    return isinstance(value, list)


def _is_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_status(value: Any) -> bool:
    return _is_scalar(value) and normalize_status(value) is not None


def _non_empty(value: Any) -> bool:
    return value not in (None, "", [], {})


def find_value(
    data: Any,
    keys: Sequence[str],
    max_depth: int = MAX_DEPTH,
    accept: Callable[[Any], bool] = _is_scalar,
) -> Any:
    """
    Breadth-first lookup of the first accepted value stored under any of keys.

    Nodes are visited level by level, in document order within a level.
    At every mapping the aliases are tried in the order given, so a shallow
    alias always beats a deeper one, and at equal depth the earlier node wins
    before alias order is considered. Nodes deeper than max_depth are not
    expanded, which bounds the cost on large or pathological payloads.

    Args:
        data (Any): Decoded JSON.
        keys (Sequence[str]): Aliases in preference order.
        max_depth (int): Depth budget; the root is depth 0.
        accept (Callable[[Any], bool]): Type predicate for candidate values.

    Returns:
        Any: The first present, non-empty, accepted value, or None.

    Examples:
        >>> find_value({"specs": {"odometer": 120}, "mileage": 5}, ["mileage", "odometer"])
        5
    """
    queue = deque([(data, 0)])
    while queue:
        node, depth = queue.popleft()
        if isinstance(node, dict):
            for key in keys:
                value = node.get(key)
                if _non_empty(value) and accept(value):
                    return value
            children: Iterable[Any] = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth >= max_depth:
            continue
        for child in children:
            if isinstance(child, (dict, list)):
                queue.append((child, depth + 1))
    return None


def _decode_at(text: str, index: int) -> Optional[Any]:
    try:
        value, _ = _decoder.raw_decode(text, index)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def load_page_model(page: ParsedPage) -> Optional[Dict[str, Any]]:
    """
    Locate and decode the embedded page model.

    Args:
        page (ParsedPage): Detail page.

    Returns:
        Optional[Dict[str, Any]]: Decoded model, None if no script carries one.
    """
    next_data = page.select_one("script#__NEXT_DATA__")
    if next_data is not None:
        body = (next_data.string or next_data.get_text() or "").strip()
        if body:
            model = _decode_at(body, 0)
            if model is not None:
                return model

    for content in page.scripts():
        for pattern in MODEL_ASSIGNMENT_PATTERNS:
            match = pattern.search(content)
            if not match:
                continue
            model = _decode_at(content, match.end())
            if model is not None:
                return model
            logger.debug(f"Unparsable page model ({pattern.pattern}) on {page.url}")
    return None


def _image_urls(value: Any) -> List[str]:
    """Image URLs from a list of strings or {url|src|href} objects, query stripped."""
    if isinstance(value, dict):
        value = find_value(value, ["images", "gallery", "photos"], max_depth=2, accept=_is_list) or []
    if not isinstance(value, list):
        return []
    images = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("url") or item.get("src") or item.get("href")
        if isinstance(item, str) and item.strip():
            images.append(item.strip().split("?")[0])
    return images


def _feature_names(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    names = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("name") or item.get("description") or item.get("value")
        text = clean_text(item) if _is_scalar(item) else None
        if text:
            names.append(text)
    return names


def _price(value: Any) -> Optional[int]:
    return parse_price(value) if isinstance(value, str) else to_int(value)


def _mileage(value: Any) -> Optional[int]:
    return parse_mileage(value) if isinstance(value, str) else to_int(value)


def _text(value: Any) -> Optional[str]:
    return clean_text(value) if value is not None else None


class StructuredModelExtractor(BaseExtractor):
    """
    Extractor for the page model embedded in a script element.

    Attributes:
        max_depth (int): Depth budget of every field lookup.
    """

    name = "structured_model"
    priority = 1

    FIELD_ALIASES: Dict[str, Sequence[str]] = {
        "ad_id": ("adId", "adID", "listingId"),
        "make": ("make", "makeName"),
        "model": ("model", "modelName"),
        "year": ("year", "modelYear"),
        "trim": ("trim", "trimName"),
        "price": ("price", "amount", "askingPrice"),
        "price_formatted": ("displayPrice", "formattedPrice"),
        "mileage": ("mileage", "odometer", "kilometres"),
        "mileage_formatted": ("displayMileage", "formattedMileage"),
        "transmission": ("transmission",),
        "drivetrain": ("drivetrain", "driveTrain", "driveType"),
        "body_type": ("bodyType", "bodyStyle"),
        "exterior_color": ("exteriorColour", "exteriorColor", "colour"),
        "interior_color": ("interiorColour", "interiorColor"),
        "fuel_type": ("fuelType", "fuel"),
        "engine": ("engine", "engineDescription"),
        "doors": ("doors", "numberOfDoors"),
        "seats": ("seatingCapacity", "seats", "passengers"),
        "city": ("city",),
        "province": ("province", "state"),
        "description": ("description",),
        "vehicle_status": ("status", "condition"),
        "vin": ("vin",),
        "stock_number": ("stockNumber", "stock"),
    }
    SELLER_ALIASES: Dict[str, Sequence[str]] = {
        "seller_name": ("name", "dealerName", "sellerName"),
        "dealer_id": ("dealerId", "id"),
    }
    PRIVATE_SELLER_ALIASES = ("isPrivate", "privateSeller", "isPrivateSeller")
    # Listing states such as "Active" are skipped in favour of a mappable condition
    FIELD_PREDICATES: Dict[str, Callable[[Any], bool]] = {"vehicle_status": _is_status}

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth

    def _lookup(self, data: Any, keys: Sequence[str], accept: Callable[[Any], bool] = _is_scalar) -> Any:
        return find_value(data, keys, max_depth=self.max_depth, accept=accept)

    def extract(self, page: ParsedPage) -> Optional[PartialExtraction]:
        model = load_page_model(page)
        if model is None:
            return None

        raw = {
            name: self._lookup(model, aliases, accept=self.FIELD_PREDICATES.get(name, _is_scalar))
            for name, aliases in self.FIELD_ALIASES.items()
        }

        seller = self._lookup(model, ("seller", "dealer"), accept=_is_mapping) or {}
        seller_raw = {name: self._lookup(seller, aliases) for name, aliases in self.SELLER_ALIASES.items()}
        is_private = self._lookup(seller, self.PRIVATE_SELLER_ALIASES, accept=_is_bool)
        if seller:
            raw["city"] = self._lookup(seller, ("city",)) or raw["city"]
            raw["province"] = self._lookup(seller, ("province", "state")) or raw["province"]

        media = self._lookup(model, ("media", "images", "gallery", "photos"), accept=lambda v: _is_list(v) or _is_mapping(v))
        features = self._lookup(model, ("features",), accept=_is_list)

        values = {
            "ad_id": _text(raw["ad_id"]) or ad_id_from_url(page.url),
            "make": _text(raw["make"]),
            "model": _text(raw["model"]),
            "year": to_int(raw["year"]),
            "trim": _text(raw["trim"]),
            "price": _price(raw["price"]),
            "price_formatted": _text(raw["price_formatted"]),
            "mileage": _mileage(raw["mileage"]),
            "mileage_formatted": _text(raw["mileage_formatted"]),
            "transmission": _text(raw["transmission"]),
            "drivetrain": _text(raw["drivetrain"]),
            "body_type": _text(raw["body_type"]),
            "exterior_color": _text(raw["exterior_color"]),
            "interior_color": _text(raw["interior_color"]),
            "fuel_type": _text(raw["fuel_type"]),
            "engine": _text(raw["engine"]),
            "doors": to_int(raw["doors"]),
            "seats": to_int(raw["seats"]),
            "city": _text(raw["city"]),
            "province": _text(raw["province"]),
            "seller_name": _text(seller_raw["seller_name"]),
            "is_private_seller": is_private,
            "dealer_id": _text(seller_raw["dealer_id"]),
            "description": _text(raw["description"]),
            "images": _image_urls(media),
            "vehicle_status": normalize_status(raw["vehicle_status"]),
            "vin": _text(raw["vin"]),
            "stock_number": _text(raw["stock_number"]),
            "features": _feature_names(features),
        }
        logger.debug(f"Page model found on {page.url}")
        return self.partial(values)
