"""
Unit tests for MenuItemExtractor.
"""

import pytest

from menu_analysis.domain.menu.extractor import MenuItemExtractor, html_to_text
from menu_analysis.domain.shared.errors import EmptyExtractionError


@pytest.fixture
def extractor() -> MenuItemExtractor:
    return MenuItemExtractor()


class TestExtract:
    """Test plain text extraction."""

    def test_name_and_price_lines(self, extractor: MenuItemExtractor) -> None:
        """Test the canonical two-line menu."""
        items = extractor.extract("Grilled Chicken Breast - $14\nVegan Buddha Bowl - $12")

        assert [i.id for i in items] == ["1", "2"]
        assert [i.name for i in items] == ["Grilled Chicken Breast", "Vegan Buddha Bowl"]
        assert [i.price for i in items] == ["$14", "$12"]
        assert items[0].description is None
        assert items[0].category is None
        assert items[0].raw_text == "Grilled Chicken Breast - $14"

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t\n", "- . *\n$\n"])
    def test_no_content_raises(self, extractor: MenuItemExtractor, text: str) -> None:
        with pytest.raises(EmptyExtractionError):
            extractor.extract(text)

    def test_name_description_separators(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract(
            "Falafel: crispy chickpea fritters\n"
            "Hummus | creamy chickpea dip - $6\n"
            "Soup of the day 7.50 €"
        )

        assert items[0].name == "Falafel"
        assert items[0].description == "crispy chickpea fritters"
        assert items[1].name == "Hummus"
        assert items[1].description == "creamy chickpea dip"
        assert items[1].price == "$6"
        assert items[2].name == "Soup of the day"
        assert items[2].price == "7.50 €"

    def test_bullets_and_asterisks_split_units(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract("• Hummus • Falafel * Tabbouleh")
        assert [i.name for i in items] == ["Hummus", "Falafel", "Tabbouleh"]

    def test_headers_become_categories(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract(
            "STARTERS\nHummus - $6\nMAINS\nVegan Buddha Bowl - $12\nLentil Curry"
        )

        assert [(i.name, i.category) for i in items] == [
            ("Hummus", "STARTERS"),
            ("Vegan Buddha Bowl", "MAINS"),
            ("Lentil Curry", "MAINS"),
        ]
        assert [i.id for i in items] == ["1", "2", "3"]

    def test_headers_only_text_is_still_a_menu(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract("PAD THAI\nGREEN CURRY")
        assert [i.name for i in items] == ["PAD THAI", "GREEN CURRY"]

    def test_duplicates_keep_first(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract("Hummus - $6\nhummus - $7\nFalafel")
        assert [(i.id, i.name, i.price) for i in items] == [("1", "Hummus", "$6"), ("2", "Falafel", None)]

    def test_windows_line_endings(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract("Hummus\r\nFalafel\r\n")
        assert [i.name for i in items] == ["Hummus", "Falafel"]

    def test_any_text_with_letters_yields_items(self, extractor: MenuItemExtractor) -> None:
        assert len(extractor.extract("ok")) == 1


class TestExtractFromDocument:
    """Test web document extraction."""

    def test_html_is_stripped(self, extractor: MenuItemExtractor) -> None:
        html = (
            "<html><head><style>.menu{color:red}</style><script>var a = 1;</script></head>"
            "<body><nav>Home About</nav><h2>MAINS</h2>"
            "<ul><li>Falafel Wrap - $9</li><li>Hummus Plate - $7</li></ul>"
            "<footer>Copyright</footer></body></html>"
        )

        items = extractor.extract_from_document(html)

        assert [(i.name, i.price, i.category) for i in items] == [
            ("Falafel Wrap", "$9", "MAINS"),
            ("Hummus Plate", "$7", "MAINS"),
        ]

    def test_plain_text_document(self, extractor: MenuItemExtractor) -> None:
        items = extractor.extract_from_document("Hummus - $6")
        assert items[0].name == "Hummus"

    def test_document_is_capped(self) -> None:
        document = "\n".join(f"Dish {i} - $5" for i in range(1000))
        items = MenuItemExtractor(max_document_chars=50).extract_from_document(document)

        assert items[0].name == "Dish 0"
        assert len(items) <= 5

    def test_document_without_menu_raises(self, extractor: MenuItemExtractor) -> None:
        with pytest.raises(EmptyExtractionError):
            extractor.extract_from_document("<html><script>var a = 1;</script></html>")


def test_html_to_text_keeps_block_boundaries() -> None:
    assert html_to_text("<ul><li>Falafel Wrap</li><li>Hummus</li></ul>") == "Falafel Wrap\nHummus"
