"""
Parsed page handle handed to link discovery and the extractors.

Classes:
    ParsedPage: BeautifulSoup document plus the response's final URL.
"""

from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


class ParsedPage:
    """
    Read-only view of a fetched page.

    Attributes:
        url (str): Final URL of the response (after redirects).
        soup (BeautifulSoup): Parsed document (lxml parser).
    """

    def __init__(self, url: str, soup: BeautifulSoup):
        self.url = url
        self.soup = soup

    @classmethod
    def from_html(cls, url: str, html: str) -> "ParsedPage":
        return cls(url, BeautifulSoup(html, "lxml"))

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def text(self, selector: str) -> Optional[str]:
        """Stripped text of the first element matching selector, None if empty."""
        tag = self.soup.select_one(selector)
        if tag is None:
            return None
        return tag.get_text(" ", strip=True) or None

    def scripts(self, script_type: Optional[str] = None) -> List[str]:
        """
        Raw contents of the page's script elements.

        Args:
            script_type (Optional[str]): Only return scripts with this type attribute.

        Returns:
            List[str]: Script bodies in document order (empty bodies skipped).
        """
        attrs = {"type": script_type} if script_type else {}
        contents = []
        for tag in self.soup.find_all("script", attrs=attrs):
            body = tag.string if tag.string is not None else tag.get_text()
            if body and body.strip():
                contents.append(body)
        return contents

    def absolute(self, href: str) -> str:
        """Resolve href against this page's own URL."""
        return urljoin(self.url, href)
