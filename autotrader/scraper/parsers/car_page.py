"""
Autotrader.ca car page parser (heuristic DOM extraction).

This module implements the last-resort extractor for detail pages. It does not
depend on any embedded data model: each field is looked up through an ordered
list of CSS selector candidates and specification-table labels, and the first non-empty
match wins. Numeric fields go through the field normalizers. Unlike the
structured extractors it always returns a partial record, and it is the one
that reliably contributes the photo gallery.

Attributes:
    logger: Logger for registering parsing events.

Classes:
    CarPageParser: Heuristic DOM extractor for vehicle detail pages.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

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

TITLE_RE = re.compile(r"^(\d{4})\s+(\S+)\s+(.+)$")


class CarPageParser(BaseExtractor):
    """
    Heuristic extractor for detail pages.

    Selector lists are ordered from the most specific (test ids) to the most
    generic (class substrings). Keeping them here isolates the volatile page
    markup from the crawl controller and the merge engine.

    Methods:
        extract: Build a partial record from the page markup.
        _extract_*: Helpers for individual fields.
        _spec_value: Value of a labelled row in the specification tables.
    """

    name = "dom"
    priority = 3

    PRICE_SELECTORS = (
        '[data-testid="hero-price"]',
        ".hero-price",
        '[class*="price-amount"]',
        '[class*="listing-price"]',
        ".price-container",
        '[class*="Price"]',
        'span[class*="price"]',
    )
    MILEAGE_SELECTORS = (
        '[data-testid="mileage"]',
        '[class*="mileage"]',
        '[class*="odometer"]',
        '[class*="kilometres"]',
    )
    LOCATION_SELECTORS = (
        '[data-testid="location"]',
        '[class*="dealer-location"]',
        '[class*="location"]',
    )
    SELLER_SELECTORS = (
        '[data-testid="dealer-name"]',
        '[class*="dealer-name"]',
        '[class*="seller-name"]',
        '[class*="dealership"]',
    )
    DESCRIPTION_SELECTORS = (
        '[data-testid="description"]',
        ".vehicle-description",
        '[class*="description"]',
    )
    IMAGE_SELECTORS = (
        'img[src*="images.autotrader.ca"]',
        '[class*="gallery"] img',
        '[class*="carousel"] img',
        '[class*="photo"] img',
    )
    FEATURE_SELECTORS = (
        '[data-testid="features"] li',
        '[class*="features"] li',
    )
    SPEC_LABELS = {
        "transmission": ("Transmission", "Trans"),
        "drivetrain": ("Drivetrain", "Drive Train", "Drive Type"),
        "body_type": ("Body Type", "Body Style", "Body"),
        "exterior_color": ("Exterior Colour", "Exterior Color", "Colour", "Color"),
        "interior_color": ("Interior Colour", "Interior Color"),
        "fuel_type": ("Fuel Type", "Fuel"),
        "engine": ("Engine", "Engine Type"),
        "doors": ("Doors", "Number of Doors"),
        "seats": ("Seats", "Seating Capacity", "Passengers"),
        "vin": ("VIN", "Vehicle Identification Number"),
        "stock_number": ("Stock Number", "Stock #", "Stock"),
        "vehicle_status": ("Status", "Condition"),
        "mileage": ("Kilometres", "Mileage", "Odometer"),
    }

    def _first_text(self, soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[str]:
        """Text of the first selector candidate that yields non-empty text."""
        for selector in selectors:
            tag = soup.select_one(selector)
            if tag is None:
                continue
            text = clean_text(tag.get_text(" ", strip=True))
            if text:
                return text
        return None

    def _extract_title(self, soup: BeautifulSoup) -> Tuple[Optional[int], Optional[str], Optional[str], Optional[str]]:
        """Split an "<year> <make> <model> <trim>" heading."""
        title_tag = soup.find("h1")
        title = clean_text(title_tag.get_text(" ", strip=True)) if title_tag else None
        match = TITLE_RE.match(title) if title else None
        if not match:
            return None, None, None, None
        rest = match.group(3).split(" ")
        trim = " ".join(rest[1:]) or None
        return int(match.group(1)), match.group(2), rest[0], trim

    def _extract_price_text(self, soup: BeautifulSoup) -> Optional[str]:
        """Price display text; a candidate containing "$" is preferred."""
        fallback = None
        for selector in self.PRICE_SELECTORS:
            tag = soup.select_one(selector)
            text = clean_text(tag.get_text(" ", strip=True)) if tag else None
            if not text:
                continue
            if "$" in text:
                return text
            fallback = fallback or text
        return fallback

    def _extract_mileage_text(self, soup: BeautifulSoup) -> Optional[str]:
        for selector in self.MILEAGE_SELECTORS:
            tag = soup.select_one(selector)
            text = clean_text(tag.get_text(" ", strip=True)) if tag else None
            if text and re.search(r"\d", text):
                return text
        return None

    @staticmethod
    def _label_matches(tag: Tag, label: str) -> bool:
        text = clean_text(tag.get_text(" ", strip=True)) or ""
        return text.rstrip(":").strip().lower() == label.lower()

    @staticmethod
    def _sibling_text(tag: Tag, name: Optional[str] = None) -> Optional[str]:
        sibling = tag.find_next_sibling(name) if name else tag.find_next_sibling()
        return clean_text(sibling.get_text(" ", strip=True)) if sibling else None

    def _spec_value(self, soup: BeautifulSoup, labels: Sequence[str]) -> Optional[str]:
        """
        Value of the first specification row whose label matches.

        Tries definition lists, table rows and label/value class pairs, in that
        order, for each label in turn.

        Args:
            soup (BeautifulSoup): Detail page document.
            labels (Sequence[str]): Label candidates in preference order.

        Returns:
            Optional[str]: Row value or None.
        """
        for label in labels:
            for dt in soup.find_all("dt"):
                if self._label_matches(dt, label):
                    value = self._sibling_text(dt, "dd")
                    if value:
                        return value
            for cell in soup.find_all(["th", "td"]):
                if self._label_matches(cell, label):
                    value = self._sibling_text(cell, "td")
                    if value:
                        return value
            for tag in soup.select('[class*="label"]'):
                if self._label_matches(tag, label):
                    value = self._sibling_text(tag)
                    if not value and tag.parent is not None:
                        value_tag = tag.parent.select_one('[class*="value"]')
                        value = clean_text(value_tag.get_text(" ", strip=True)) if value_tag else None
                    if value:
                        return value
        return None

    def _extract_location(self, soup: BeautifulSoup) -> Tuple[Optional[str], Optional[str]]:
        location = self._first_text(soup, self.LOCATION_SELECTORS)
        if not location:
            return None, None
        parts = [part.strip() for part in location.split(",")]
        city = parts[0] or None
        province = parts[1] if len(parts) > 1 and parts[1] else None
        return city, province

    def _extract_images(self, page: ParsedPage) -> List[str]:
        """Gallery image URLs: absolute, query stripped, de-duplicated in order."""
        images: List[str] = []
        for selector in self.IMAGE_SELECTORS:
            for img in page.select(selector):
                src = img.get("src") or img.get("data-src")
                if not isinstance(src, str) or not src.strip():
                    continue
                if "placeholder" in src or "logo" in src:
                    continue
                url = page.absolute(src.strip()).split("?")[0]
                if url not in images:
                    images.append(url)
        return images

    def _extract_features(self, soup: BeautifulSoup) -> List[str]:
        features: List[str] = []
        for selector in self.FEATURE_SELECTORS:
            for item in soup.select(selector):
                text = clean_text(item.get_text(" ", strip=True))
                if text and text not in features:
                    features.append(text)
            if features:
                break
        return features

    def _is_private_seller(self, soup: BeautifulSoup) -> Optional[bool]:
        """True when the page flags a private seller, unknown otherwise."""
        return True if soup.select_one('[class*="private"]') else None

    def extract(self, page: ParsedPage) -> Optional[PartialExtraction]:
        soup = page.soup
        year, make, model, trim = self._extract_title(soup)

        price_text = self._extract_price_text(soup)
        mileage_text = self._extract_mileage_text(soup) or self._spec_value(
            soup, self.SPEC_LABELS["mileage"]
        )
        city, province = self._extract_location(soup)
        specs = {
            name: self._spec_value(soup, labels)
            for name, labels in self.SPEC_LABELS.items()
            if name != "mileage"
        }

        values = {
            "ad_id": ad_id_from_url(page.url),
            "make": make,
            "model": model,
            "year": year,
            "trim": trim,
            "price": parse_price(price_text),
            "price_formatted": price_text if parse_price(price_text) is not None else None,
            "mileage": parse_mileage(mileage_text),
            "mileage_formatted": mileage_text if parse_mileage(mileage_text) is not None else None,
            "transmission": specs["transmission"],
            "drivetrain": specs["drivetrain"],
            "body_type": specs["body_type"],
            "exterior_color": specs["exterior_color"],
            "interior_color": specs["interior_color"],
            "fuel_type": specs["fuel_type"],
            "engine": specs["engine"],
            "doors": to_int(specs["doors"]),
            "seats": to_int(specs["seats"]),
            "city": city,
            "province": province,
            "seller_name": self._first_text(soup, self.SELLER_SELECTORS),
            "is_private_seller": self._is_private_seller(soup),
            "description": self._first_text(soup, self.DESCRIPTION_SELECTORS),
            "images": self._extract_images(page),
            "vehicle_status": normalize_status(specs["vehicle_status"]),
            "vin": specs["vin"],
            "stock_number": specs["stock_number"],
            "features": self._extract_features(soup),
        }

        if not (make or model or values["price"]):
            logger.debug(f"No title or price found in markup of {page.url}")
        return self.partial(values)
