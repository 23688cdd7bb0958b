"""
JSON-LD extractor.

Reads the schema.org blocks (script type="application/ld+json") of a detail
page and maps the first Vehicle/Car/Product/Offer entity to vehicle fields.

Classes:
    LinkedDataExtractor: Second-priority extractor.
"""

import json
from typing import Any, Dict, Iterator, List, Optional

from autotrader.scraper.base import BaseExtractor
from autotrader.scraper.normalizers import (
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

LD_JSON_TYPE = "application/ld+json"
ACCEPTED_TYPES = frozenset({"Vehicle", "Car", "Product", "Offer"})


def _types(entry: Dict[str, Any]) -> List[str]:
    declared = entry.get("@type")
    if isinstance(declared, str):
        return [declared]
    if isinstance(declared, list):
        return [t for t in declared if isinstance(t, str)]
    return []


def _entries(parsed: Any) -> Iterator[Dict[str, Any]]:
    items = parsed if isinstance(parsed, list) else [parsed]
    for item in items:
        if not isinstance(item, dict):
            continue
        yield item
        graph = item.get("@graph")
        if isinstance(graph, list):
            for node in graph:
                if isinstance(node, dict):
                    yield node


def _name(value: Any) -> Optional[str]:
    """Text of a plain string or of a {"name": ...} node."""
    if isinstance(value, dict):
        value = value.get("name")
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return clean_text(value)
    return None


def _first_offer(value: Any) -> Dict[str, Any]:
    if isinstance(value, list):
        value = next((v for v in value if isinstance(v, dict)), None)
    return value if isinstance(value, dict) else {}


def _images(value: Any) -> List[str]:
    if not isinstance(value, list):
        value = [value]
    images = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("url") or item.get("contentUrl")
        if isinstance(item, str) and item.strip():
            images.append(item.strip().split("?")[0])
    return images


def _quantity(value: Any) -> Optional[int]:
    if isinstance(value, dict):
        value = value.get("value")
    return parse_mileage(value) if isinstance(value, str) else to_int(value)


class LinkedDataExtractor(BaseExtractor):
    """Extractor for schema.org JSON-LD vehicle markup."""

    name = "linked_data"
    priority = 2

    def find_entity(self, page: ParsedPage) -> Optional[Dict[str, Any]]:
        """Return the first JSON-LD entry whose @type is in ACCEPTED_TYPES."""
        for block in page.scripts(LD_JSON_TYPE):
            try:
                parsed = json.loads(block)
            except ValueError:
                logger.debug(f"Skipping malformed JSON-LD block on {page.url}")
                continue
            for entry in _entries(parsed):
                if ACCEPTED_TYPES.intersection(_types(entry)):
                    return entry
        return None

    def extract(self, page: ParsedPage) -> Optional[PartialExtraction]:
        entity = self.find_entity(page)
        if entity is None:
            return None

        if "Offer" in _types(entity) and isinstance(entity.get("itemOffered"), dict):
            offer, vehicle = entity, entity["itemOffered"]
        else:
            offer, vehicle = _first_offer(entity.get("offers")), entity

        seller = offer.get("seller") if isinstance(offer.get("seller"), dict) else {}
        address = seller.get("address") if isinstance(seller.get("address"), dict) else {}

        title = _name(vehicle.get("name"))
        make = _name(vehicle.get("brand")) or _name(vehicle.get("manufacturer"))
        model = _name(vehicle.get("model"))
        if not model and title and make and title.lower().startswith(make.lower()):
            model = clean_text(title[len(make):])
        elif not model and title:
            model = clean_text(" ".join(title.split(" ")[1:]))

        price = offer.get("price")
        if price is None and isinstance(offer.get("priceSpecification"), dict):
            price = offer["priceSpecification"].get("price")

        values = {
            "make": make,
            "model": model,
            "year": to_int(
                vehicle.get("vehicleModelDate")
                or vehicle.get("modelDate")
                or vehicle.get("productionDate")
            ),
            "price": parse_price(price) if isinstance(price, str) else to_int(price),
            "mileage": _quantity(vehicle.get("mileageFromOdometer")),
            "transmission": _name(vehicle.get("vehicleTransmission")),
            "drivetrain": _name(vehicle.get("driveWheelConfiguration")),
            "body_type": _name(vehicle.get("bodyType")),
            "exterior_color": _name(vehicle.get("color")),
            "interior_color": _name(vehicle.get("vehicleInteriorColor")),
            "fuel_type": _name(vehicle.get("fuelType")),
            "engine": _name(vehicle.get("vehicleEngine")),
            "doors": to_int(vehicle.get("numberOfDoors")),
            "seats": to_int(vehicle.get("seatingCapacity")),
            "city": _name(address.get("addressLocality")),
            "province": _name(address.get("addressRegion")),
            "seller_name": _name(seller.get("name")),
            "description": _name(vehicle.get("description")),
            "images": _images(vehicle.get("image")),
            "vehicle_status": normalize_status(
                _name(vehicle.get("itemCondition")) or _name(offer.get("itemCondition"))
            ),
            "vin": _name(vehicle.get("vehicleIdentificationNumber")),
            "stock_number": _name(vehicle.get("sku")),
        }
        return self.partial(values)
