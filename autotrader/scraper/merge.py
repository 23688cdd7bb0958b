"""
Merge engine.

Reduces the partial extractions of one detail page into a VehicleRecord.

Functions:
    is_empty: Emptiness rule shared by the merge policy.
    merge_extractions: Priority-ordered reduction of partial extractions.
"""

from typing import Any, Dict, Iterable, List, Optional

from autotrader.scraper.normalizers import format_mileage, format_price
from autotrader.scraper.types import (
    LIST_FIELDS,
    VEHICLE_FIELDS,
    PartialExtraction,
    VehicleRecord,
)


def is_empty(value: Any) -> bool:
    """None, blank strings and empty lists are empty; False and 0 are values."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _union(lists: Iterable[Any]) -> List[Any]:
    merged: List[Any] = []
    for values in lists:
        for value in values or []:
            if not is_empty(value) and value not in merged:
                merged.append(value)
    return merged


def merge_extractions(
    partials: Iterable[Optional[PartialExtraction]], url: str
) -> Optional[VehicleRecord]:
    """
    Merge partial extractions into one record.

    Scalar fields take the first non-empty value in priority order. The
    images and features lists are unioned in priority order without
    duplicates. Display strings for price and mileage are back-filled from
    the numeric values when no extractor supplied one.

    Args:
        partials (Iterable[Optional[PartialExtraction]]): Extractor outputs;
            None entries (extractor found nothing) are ignored.
        url (str): Source URL of the detail page.

    Returns:
        Optional[VehicleRecord]: Merged record, or None when none of make,
        model and price was found.

    Examples:
        >>> p1 = PartialExtraction("structured_model", 1, {"make": "Honda"})
        >>> p2 = PartialExtraction("dom", 3, {"make": "HONDA", "price": 24995})
        >>> merge_extractions([p2, p1], "https://www.autotrader.ca/a/x").make
        'Honda'
    """
    ordered = sorted((p for p in partials if p is not None), key=lambda p: p.priority)

    merged: Dict[str, Any] = {}
    for name in VEHICLE_FIELDS:
        if name == "url":
            continue
        if name in LIST_FIELDS:
            merged[name] = _union(p.get(name) for p in ordered)
            continue
        for partial in ordered:
            value = partial.get(name)
            if not is_empty(value):
                merged[name] = value
                break

    if merged.get("price") is not None and is_empty(merged.get("price_formatted")):
        merged["price_formatted"] = format_price(merged["price"])
    if merged.get("mileage") is not None and is_empty(merged.get("mileage_formatted")):
        merged["mileage_formatted"] = format_mileage(merged["mileage"])

    record = VehicleRecord(url=url, **merged)
    return record if record.has_anchor() else None
