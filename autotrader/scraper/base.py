"""
Base extractor class.

This module provides the abstract base class for the detail-page extractors.
Every extractor reads a ParsedPage and returns a PartialExtraction tagged with
its priority, or None when its data source is missing from the page.

Attributes:
    logger: Logger for registering extraction events.

Classes:
    BaseExtractor: Abstract base class for all extractors.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from autotrader.scraper.page import ParsedPage
from autotrader.scraper.types import PartialExtraction
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


class BaseExtractor(ABC):
    """
    Base class for detail-page extractors.

    Inheritors implement extract(). Callers use run(), which keeps any
    failure inside the extractor so that one broken data source never
    blocks the others.

    Attributes:
        name (str): Extractor name used in logs and partial tags.
        priority (int): Merge rank, 1 is the highest.
    """

    name: str = "base"
    priority: int = 99

    def partial(self, values: Dict[str, Any]) -> PartialExtraction:
        """Wrap present values into a PartialExtraction, dropping None entries."""
        present = {key: value for key, value in values.items() if value is not None}
        return PartialExtraction(source=self.name, priority=self.priority, values=present)

    def run(self, page: ParsedPage) -> Optional[PartialExtraction]:
        """
        Run extract() with failures contained.

        Args:
            page (ParsedPage): Detail page.

        Returns:
            Optional[PartialExtraction]: Extracted fields, or None if the
            extractor found nothing or failed.
        """
        try:
            return self.extract(page)
        except Exception as e:
            logger.warning(f"{self.name} extractor failed on {page.url}: {str(e)}", exc_info=True)
            return None

    @abstractmethod
    def extract(self, page: ParsedPage) -> Optional[PartialExtraction]:
        """
        Extract vehicle fields from a detail page.

        Args:
            page (ParsedPage): Detail page.

        Returns:
            Optional[PartialExtraction]: Extracted fields or None.
        """
        pass
