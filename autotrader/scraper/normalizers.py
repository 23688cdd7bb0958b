"""
Field normalizers.

Pure, total helpers turning raw page text into typed values. Absence is
returned as None, never raised.

Functions:
    parse_price: "$24,995" -> 24995.
    parse_mileage: "112,340 km" -> 112340.
    clean_text: Collapse whitespace, None for empty text.
    to_int: Best-effort integer coercion of scalars.
    format_price: 24995 -> "$24,995".
    format_mileage: 112340 -> "112,340 km".
    normalize_status: Map condition strings to "New" / "Used".
    ad_id_from_url: Listing id embedded in a detail URL.
"""

import math
import re
from typing import Any, Optional

# Comma or space (incl. non-breaking) between a digit and a group of exactly three digits
_GROUP_SEPARATOR_RE = re.compile(r"(?<=\d)[,\s](?=\d{3}(?!\d))")
_DIGITS_RE = re.compile(r"\d+")
_WHITESPACE_RE = re.compile(r"\s+")
_AD_ID_RE = re.compile(r"/(\d+_[^/?#]+)")


def _first_integer(text: Any) -> Optional[int]:
    if text is None:
        return None
    match = _DIGITS_RE.search(_GROUP_SEPARATOR_RE.sub("", str(text)))
    return int(match.group(0)) if match else None


def parse_price(text: Any) -> Optional[int]:
    """Extract an integer price from display text such as "$24,995"."""
    return _first_integer(text)


def parse_mileage(text: Any) -> Optional[int]:
    """Extract an integer odometer reading from text such as "112,340 km"."""
    return _first_integer(text)


def clean_text(text: Any) -> Optional[str]:
    if text is None:
        return None
    cleaned = _WHITESPACE_RE.sub(" ", str(text)).strip()
    return cleaned or None


def to_int(value: Any) -> Optional[int]:
    """
    Coerce a scalar to int.

    Numbers are truncated, strings go through the digit scan, anything else
    (bools, containers, non-finite floats) is absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        return _first_integer(value)
    return None


def format_price(price: Optional[int]) -> Optional[str]:
    return f"${price:,}" if price is not None else None


def format_mileage(mileage: Optional[int]) -> Optional[str]:
    return f"{mileage:,} km" if mileage is not None else None


def normalize_status(value: Any) -> Optional[str]:
    """Map listing condition text or schema.org URIs to "New" or "Used"."""
    text = clean_text(value)
    if not text:
        return None
    lowered = text.lower()
    if "used" in lowered or "pre-owned" in lowered or "certified" in lowered:
        return "Used"
    if "new" in lowered:
        return "New"
    return None


def ad_id_from_url(url: Optional[str]) -> Optional[str]:
    """Return the "<digits>_<suffix>" listing id from a detail URL."""
    if not url:
        return None
    match = _AD_ID_RE.search(url)
    return match.group(1) if match else None
