"""
Markup tree behind a small query interface so extraction code never touches
BeautifulSoup directly: query(selector) -> elements, text(el), attr(el, name).
"""
from typing import List, Optional

from bs4 import BeautifulSoup, Tag


class Document:
    """A parsed HTML page."""

    def __init__(self, html: str, url: Optional[str] = None):
        self.url = url
        self._soup = BeautifulSoup(html or "", "html.parser")

    def query(self, selector: str, within: Optional[Tag] = None) -> List[Tag]:
        """All elements matching a CSS selector, in document order."""
        root = within if within is not None else self._soup
        return list(root.select(selector))

    def query_one(self, selector: str, within: Optional[Tag] = None) -> Optional[Tag]:
        root = within if within is not None else self._soup
        return root.select_one(selector)

    @staticmethod
    def text(element: Tag) -> str:
        """Text content with runs of whitespace collapsed."""
        return " ".join(element.get_text(" ").split())

    @staticmethod
    def attr(element: Tag, name: str) -> Optional[str]:
        value = element.get(name)
        if isinstance(value, list):
            # Multi-valued attributes (class, rel) come back as lists
            return " ".join(value)
        return value

    @staticmethod
    def parent(element: Tag) -> Optional[Tag]:
        return element.parent

    @staticmethod
    def value(element: Tag) -> str:
        """Current value of a form control: textarea content, else the value attribute."""
        if element.name == "textarea":
            return element.get_text()
        return element.get("value") or ""
