"""
Menu item extraction.

Turns pasted menu text or a fetched web document into an ordered list
of MenuItem. Heuristic and deterministic: it never guesses what the
text does not state, the model is authoritative for semantics.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup

from menu_analysis.domain.menu.models import MenuItem
from menu_analysis.domain.shared.errors import EmptyExtractionError

logger = structlog.get_logger(__name__)

# Web menus are capped to the same size as manual text entry
MAX_DOCUMENT_CHARS = 5000
MIN_UNIT_CHARS = 2

_UNIT_SPLIT = re.compile(r"\r?\n|•|\*")
_NAME_SPLIT = re.compile(r"\s+[-–—|]\s+|:\s+")
_PRICE = (
    r"(?:[$€£¥]\s?\d+(?:[.,]\d{1,2})?"
    r"|\d+(?:[.,]\d{1,2})?\s?(?:€|\$|£|USD|EUR|GBP))"
)
_PRICE_ONLY = re.compile(rf"^{_PRICE}$", re.IGNORECASE)
_TRAILING_PRICE = re.compile(rf"^(?P<head>.*?)\s*[-–—|,]?\s*(?P<price>{_PRICE})$", re.IGNORECASE)
_HEADER = re.compile(r"^[A-Z][A-Z\s&']+$")
_BLOCK_TAGS = ["p", "li", "div", "section", "article", "br", "tr", "h1", "h2", "h3", "h4", "h5", "h6"]


class MenuItemExtractor:
    """
    Extracts structured menu items from raw text.

    Rules:
    - Units are split on line breaks, bullets and asterisks
    - Units shorter than two characters or without letters are dropped
    - "Name - description", "Name: description" and trailing prices
      are recognised; absent fields stay unset
    - ALL-CAPS short lines are section headers and become the category
      of the items that follow
    - Ids are "1", "2", ... in input order

    Example:
        >>> extractor = MenuItemExtractor()
        >>> items = extractor.extract("Grilled Chicken Breast - $14\\nVegan Buddha Bowl - $12")
        >>> [(i.id, i.name, i.price) for i in items]
        [('1', 'Grilled Chicken Breast', '$14'), ('2', 'Vegan Buddha Bowl', '$12')]
    """

    def __init__(self, max_document_chars: int = MAX_DOCUMENT_CHARS) -> None:
        self.max_document_chars = max_document_chars

    def extract(self, raw_text: str) -> List[MenuItem]:
        """
        Extract menu items from raw text.

        Args:
            raw_text: Pasted or OCR'd menu text

        Returns:
            Non-empty ordered list of MenuItem

        Raises:
            EmptyExtractionError: If no item survives filtering
        """
        units = [u.strip() for u in _UNIT_SPLIT.split(raw_text or "")]
        units = [u for u in units if self._has_signal(u)]

        items: List[MenuItem] = []
        headers: List[str] = []
        seen: set[str] = set()
        category: Optional[str] = None

        for unit in units:
            name, description, price = self._split_unit(unit)

            if self._is_header(name) and description is None and price is None:
                category = name
                headers.append(unit)
                continue

            key = name.lower()
            if key in seen:
                continue
            seen.add(key)

            items.append(
                MenuItem(
                    id=str(len(items) + 1),
                    name=name,
                    description=description,
                    price=price,
                    category=category,
                    raw_text=unit,
                )
            )

        # A text made only of short all-caps lines is still a menu
        if not items and headers:
            for header in headers:
                if header.lower() in seen:
                    continue
                seen.add(header.lower())
                items.append(MenuItem(id=str(len(items) + 1), name=header, raw_text=header))

        if not items:
            raise EmptyExtractionError("No menu items found in text")

        logger.debug("Extracted menu items", count=len(items), units=len(units))
        return items

    def extract_from_document(self, document: str) -> List[MenuItem]:
        """
        Extract menu items from an HTML page or plain text document.

        Scripts, styles and navigation are removed, block elements become
        line breaks and the text is capped before extraction.

        Raises:
            EmptyExtractionError: If the document holds no menu content
        """
        text = html_to_text(document) if _looks_like_html(document) else (document or "")
        return self.extract(text[: self.max_document_chars])

    @staticmethod
    def _has_signal(unit: str) -> bool:
        return len(unit) >= MIN_UNIT_CHARS and any(ch.isalpha() for ch in unit)

    @staticmethod
    def _is_header(name: str) -> bool:
        return bool(_HEADER.match(name)) and len(name.split()) <= 4

    @staticmethod
    def _split_unit(unit: str) -> Tuple[str, Optional[str], Optional[str]]:
        """Split a unit into (name, description, price)."""
        parts = _NAME_SPLIT.split(unit, maxsplit=1)
        name = parts[0].strip()
        rest = parts[1].strip() if len(parts) > 1 else ""
        price: Optional[str] = None

        if rest:
            if _PRICE_ONLY.match(rest):
                price, rest = rest, ""
            else:
                match = _TRAILING_PRICE.match(rest)
                if match and match.group("head").strip():
                    price, rest = match.group("price"), match.group("head").strip()
        else:
            match = _TRAILING_PRICE.match(name)
            if match and any(ch.isalpha() for ch in match.group("head")):
                price, name = match.group("price"), match.group("head").strip()

        if not name:
            name = unit
        return name, (rest or None), price


def _looks_like_html(document: str) -> bool:
    return bool(re.search(r"<\s*[a-zA-Z][^>]*>", document or ""))


def html_to_text(html: str) -> str:
    """
    Reduce an HTML page to line-separated visible text.

    Example:
        >>> html_to_text("<ul><li>Falafel Wrap</li><li>Hummus</li></ul>")
        'Falafel Wrap\\nHummus'
    """
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style", "noscript", "nav", "footer", "iframe"]):
        element.decompose()
    for element in soup.find_all(_BLOCK_TAGS):
        element.insert_after("\n")

    lines = []
    for line in soup.get_text().splitlines():
        line = re.sub(r"[^\S\n]+", " ", line).strip()
        if line:
            lines.append(line)
    return "\n".join(lines)
