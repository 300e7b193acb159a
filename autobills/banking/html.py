from typing import Any, Optional, Protocol

from bs4 import BeautifulSoup


class HtmlExtractor(Protocol):
    """Reads attribute values out of a portal HTML page"""

    def load(self, html: str) -> Any:
        """Parse an HTML page into a document handle"""
        ...

    def extract_attribute(self, document: Any, selector: str, attribute: str) -> Optional[str]:
        """Return the attribute of the first element matching a CSS selector, or None"""
        ...


class SoupHtmlExtractor:
    """HtmlExtractor backed by BeautifulSoup's CSS selector support"""

    def __init__(self, features: str = "html.parser"):
        self.features = features

    def load(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, self.features)

    def extract_attribute(self, document: BeautifulSoup, selector: str, attribute: str) -> Optional[str]:
        element = document.select_one(selector)
        if element is None:
            return None

        value = element.get(attribute)
        # multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return value
