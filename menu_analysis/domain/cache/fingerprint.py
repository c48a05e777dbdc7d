"""
Cache fingerprints.

A fingerprint is a SHA-256 digest of canonical JSON built from the input
type, the normalized source and the dietary preferences. Requests with
the same fingerprint are the same analysis.
"""

import hashlib
import json
from typing import List, Optional

from menu_analysis.domain.menu.models import (
    ContentPart,
    ContentType,
    DietaryPreferences,
    MenuInputType,
)

# Text sources are compared on their first characters only
DEFAULT_TEXT_SOURCE_CHARS = 120


def normalize_text_source(text: str, max_chars: int = DEFAULT_TEXT_SOURCE_CHARS) -> str:
    """Trim, collapse whitespace and keep the first ``max_chars`` characters.

    Example:
        >>> normalize_text_source("  Falafel   Wrap\\n Hummus ")
        'Falafel Wrap Hummus'
    """
    return " ".join(text.split())[:max_chars]


def normalize_url_source(url: str) -> str:
    return url.strip()


def image_source_hash(parts: List[ContentPart]) -> str:
    """SHA-256 over the decoded bytes of every image part, in order."""
    digest = hashlib.sha256()
    for part in parts:
        if part.type is ContentType.IMAGE:
            digest.update(part.image_bytes())
    return digest.hexdigest()


def compute_fingerprint(
    input_type: MenuInputType,
    normalized_source: str,
    preferences: Optional[DietaryPreferences] = None,
) -> str:
    """
    Compute the cache fingerprint.

    Args:
        input_type: Where the menu came from
        normalized_source: Output of one of the normalize helpers
        preferences: Dietary preferences the verdicts depend on

    Returns:
        64-char hex digest
    """
    dietary = None
    if preferences is not None:
        dietary = {
            "type": preferences.dietary_type.value,
            "custom": (preferences.custom_restrictions or "").strip(),
        }

    canonical = json.dumps(
        {
            "inputType": input_type.value,
            "normalizedSource": normalized_source,
            "dietary": dietary,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
