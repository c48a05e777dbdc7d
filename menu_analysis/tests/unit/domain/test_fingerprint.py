"""
Unit tests for cache fingerprints.
"""

import hashlib

from menu_analysis.domain.cache.fingerprint import (
    compute_fingerprint,
    image_source_hash,
    normalize_text_source,
    normalize_url_source,
)
from menu_analysis.domain.menu.models import ContentPart, DietaryPreferences, MenuInputType


class TestNormalization:
    """Test source normalization."""

    def test_text_whitespace_collapsed(self) -> None:
        assert normalize_text_source("  Hummus   - $6\n\n Falafel\t") == "Hummus - $6 Falafel"

    def test_text_truncated(self) -> None:
        assert normalize_text_source("a" * 500) == "a" * 120
        assert normalize_text_source("a" * 500, max_chars=10) == "a" * 10

    def test_url_trimmed(self) -> None:
        assert normalize_url_source("  https://example.com/menu \n") == "https://example.com/menu"

    def test_image_hash_uses_decoded_bytes(self, png_data_uri) -> None:
        from_uri = image_source_hash([ContentPart.image(png_data_uri)])
        from_bare = image_source_hash([ContentPart.image("iVBORw0KGgo="), ContentPart.text("ignored")])

        assert from_uri == from_bare == hashlib.sha256(b"\x89PNG\r\n\x1a\n").hexdigest()


class TestComputeFingerprint:
    """Test fingerprint determinism."""

    def test_same_input_same_fingerprint(self, vegan_preferences) -> None:
        first = compute_fingerprint(MenuInputType.TEXT, normalize_text_source("Hummus  - $6"), vegan_preferences)
        second = compute_fingerprint(MenuInputType.TEXT, normalize_text_source(" Hummus - $6 "), vegan_preferences)
        assert first == second
        assert len(first) == 64

    def test_text_beyond_window_is_ignored(self, vegan_preferences) -> None:
        prefix = "Hummus - $6\n" * 20
        first = compute_fingerprint(MenuInputType.TEXT, normalize_text_source(prefix + "Falafel"), vegan_preferences)
        second = compute_fingerprint(MenuInputType.TEXT, normalize_text_source(prefix + "Steak"), vegan_preferences)
        assert first == second

    def test_diet_changes_fingerprint(self, vegan_preferences, custom_preferences) -> None:
        source = normalize_text_source("Hummus - $6")
        assert compute_fingerprint(MenuInputType.TEXT, source, vegan_preferences) != compute_fingerprint(
            MenuInputType.TEXT, source, custom_preferences
        )

    def test_custom_restrictions_change_fingerprint(self) -> None:
        source = "Hummus - $6"
        nuts = DietaryPreferences(dietary_type="custom", custom_restrictions="No nuts")
        dairy = DietaryPreferences(dietary_type="custom", custom_restrictions="No dairy")
        assert compute_fingerprint(MenuInputType.TEXT, source, nuts) != compute_fingerprint(
            MenuInputType.TEXT, source, dairy
        )

    def test_input_type_changes_fingerprint(self, vegan_preferences) -> None:
        source = "https://example.com/menu"
        assert compute_fingerprint(MenuInputType.URL, source, vegan_preferences) != compute_fingerprint(
            MenuInputType.TEXT, source, vegan_preferences
        )

    def test_last_updated_does_not_matter(self) -> None:
        first = DietaryPreferences(dietary_type="vegan", last_updated="2024-01-01T00:00:00Z")
        second = DietaryPreferences(dietary_type="vegan", last_updated="2025-06-01T00:00:00Z")
        assert compute_fingerprint(MenuInputType.TEXT, "x", first) == compute_fingerprint(
            MenuInputType.TEXT, "x", second
        )
