"""
Domain models for menu analysis.

Canonical request/response shapes shared by every component. Models are
immutable and serialise with camelCase aliases, so the same JSON is used
for the remote wire body and for cached entries.
"""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# ═══════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════


class DietaryType(str, Enum):
    """Dietary restriction types."""

    VEGAN = "vegan"
    VEGETARIAN = "vegetarian"
    CUSTOM = "custom"


class Suitability(str, Enum):
    """Three-valued verdict assigned to a menu item."""

    GOOD = "good"  # Safe to order
    CAREFUL = "careful"  # Ask the staff first
    AVOID = "avoid"  # Violates the restrictions

    @property
    def rank(self) -> int:
        """Fixed display order: good < careful < avoid."""
        return _SUITABILITY_RANK[self]


_SUITABILITY_RANK = {
    Suitability.GOOD: 0,
    Suitability.CAREFUL: 1,
    Suitability.AVOID: 2,
}


class ContentType(str, Enum):
    """Content part kinds for multimodal requests."""

    TEXT = "text"
    IMAGE = "image"


class MenuInputType(str, Enum):
    """Where a menu came from."""

    TEXT = "text"
    URL = "url"
    IMAGE = "image"


class AnalysisErrorCode(str, Enum):
    """Failure kind reported on ``success=False`` responses."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    AUTHENTICATION = "authentication"
    SCHEMA_VIOLATION = "schema_violation"

    @property
    def retryable(self) -> bool:
        """Authentication problems need a configuration fix, not a retry."""
        return self is not AnalysisErrorCode.AUTHENTICATION


class _CamelModel(BaseModel):
    """Base model: frozen, camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ═══════════════════════════════════════════════════════════
# INPUT MODELS
# ═══════════════════════════════════════════════════════════


class MenuItem(_CamelModel):
    """
    Single structured menu item.

    Attributes:
        id: Unique within a request ("1", "2", ...)
        name: Item name as written on the menu
        description: Optional description
        price: Optional price string, kept verbatim ("$14")
        category: Optional section the item was listed under
        raw_text: Source line the item was extracted from

    Example:
        >>> item = MenuItem(id="1", name="Vegan Buddha Bowl", price="$12")
        >>> item.model_dump(by_alias=True)["rawText"]
        ''
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, description="Item name")
    description: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    raw_text: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Menu item name cannot be empty or whitespace")
        return v.strip()


class DietaryPreferences(_CamelModel):
    """
    User dietary preferences.

    Owned by the caller; read-only to the engine. ``custom`` requires
    non-empty ``custom_restrictions``, which are echoed verbatim into
    prompts (any language).
    """

    dietary_type: DietaryType
    custom_restrictions: Optional[str] = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def custom_requires_restrictions(self) -> "DietaryPreferences":
        """Custom diets must spell out their restrictions."""
        if self.dietary_type is DietaryType.CUSTOM and not (self.custom_restrictions or "").strip():
            raise ValueError("customRestrictions is required when dietaryType is 'custom'")
        return self


_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.+)$", re.DOTALL)
DEFAULT_IMAGE_MIME = "image/jpeg"


class ContentPart(_CamelModel):
    """
    Tagged content part: ``{type: text, data}`` or ``{type: image, data}``.

    Image data is either a ``data:<mime>;base64,...`` URI or bare base64.

    Example:
        >>> part = ContentPart.image("data:image/png;base64,iVBORw0KGgo=")
        >>> part.mime_type()
        'image/png'
    """

    type: ContentType
    data: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def image_is_decodable(self) -> "ContentPart":
        """Reject image payloads that are not valid base64."""
        if self.type is ContentType.IMAGE:
            self.image_bytes()
        return self

    @classmethod
    def text(cls, data: str) -> "ContentPart":
        return cls(type=ContentType.TEXT, data=data)

    @classmethod
    def image(cls, data: str) -> "ContentPart":
        return cls(type=ContentType.IMAGE, data=data)

    def _split(self) -> tuple[str, str]:
        match = _DATA_URI.match(self.data.strip())
        if match:
            return match.group("mime"), match.group("payload")
        return DEFAULT_IMAGE_MIME, self.data

    def mime_type(self) -> str:
        """MIME type of an image part (``image/jpeg`` for bare base64)."""
        return self._split()[0]

    def image_bytes(self) -> bytes:
        """
        Decode the image payload.

        Raises:
            ValueError: If the part is not an image or not valid base64
        """
        if self.type is not ContentType.IMAGE:
            raise ValueError("Only image parts carry binary data")
        payload = "".join(self._split()[1].split())
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Image data is not valid base64: {e}") from e


class AnalysisRequest(_CamelModel):
    """
    One logical analysis request.

    Exactly one of ``items`` (text mode) or ``content_parts``
    (multimodal mode) is populated.

    Example:
        >>> request = AnalysisRequest(
        ...     request_id="text-1700000000",
        ...     dietary_preferences=DietaryPreferences(dietary_type="vegan"),
        ...     items=[MenuItem(id="1", name="Garden Salad")],
        ... )
        >>> request.is_multimodal
        False
    """

    request_id: str = Field(..., min_length=1)
    dietary_preferences: DietaryPreferences
    items: Optional[List[MenuItem]] = Field(None, alias="menuItems")
    content_parts: Optional[List[ContentPart]] = None
    context: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one_payload(self) -> "AnalysisRequest":
        """Enforce text/multimodal mutual exclusivity and unique item ids."""
        if self.items is not None and self.content_parts is not None:
            raise ValueError("Only one of menuItems or contentParts may be populated")
        if self.items is None and self.content_parts is None:
            raise ValueError("One of menuItems or contentParts must be populated")
        if not (self.items or self.content_parts):
            raise ValueError("Request payload cannot be empty")
        if self.items:
            ids = [item.id for item in self.items]
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ValueError(f"Menu item ids must be unique within a request: {', '.join(duplicates)}")
        return self

    @property
    def is_multimodal(self) -> bool:
        return self.content_parts is not None


# ═══════════════════════════════════════════════════════════
# OUTPUT MODELS
# ═══════════════════════════════════════════════════════════


class FoodAnalysisResult(_CamelModel):
    """
    Verdict for a single menu item.

    Created only by the response validator. ``questions_to_ask`` is
    only meaningful for ``careful`` items.
    """

    item_id: str = Field(..., min_length=1)
    item_name: str = Field(..., min_length=1)
    suitability: Suitability
    explanation: str = Field(..., min_length=1)
    questions_to_ask: Optional[List[str]] = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    concerns: Optional[List[str]] = None

    @model_validator(mode="after")
    def questions_only_when_careful(self) -> "FoodAnalysisResult":
        if self.questions_to_ask and self.suitability is not Suitability.CAREFUL:
            raise ValueError("questionsToAsk is only allowed on 'careful' items")
        return self


class AnalysisResponse(_CamelModel):
    """
    Canonical analysis outcome.

    ``success=False`` implies empty ``results`` and a populated
    ``message``; ``error_code`` tells the failure kind apart.

    Example:
        >>> failed = AnalysisResponse.failure("r1", "Request timed out")
        >>> failed.success, failed.results
        (False, [])
    """

    success: bool
    results: List[FoodAnalysisResult] = Field(default_factory=list)
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Request-level confidence")
    message: Optional[str] = None
    request_id: str
    processing_time_ms: int = Field(0, ge=0)
    error_code: Optional[AnalysisErrorCode] = None

    @model_validator(mode="after")
    def failure_has_message(self) -> "AnalysisResponse":
        if not self.success:
            if self.results:
                raise ValueError("Failed responses cannot carry results")
            if not (self.message or "").strip():
                raise ValueError("Failed responses must carry a message")
        return self

    @classmethod
    def failure(
        cls,
        request_id: str,
        message: str,
        error_code: Optional[AnalysisErrorCode] = None,
        processing_time_ms: int = 0,
    ) -> "AnalysisResponse":
        """Build a ``success=False`` response."""
        return cls(
            success=False,
            results=[],
            confidence=0.0,
            message=message,
            request_id=request_id,
            processing_time_ms=processing_time_ms,
            error_code=error_code,
        )

    @property
    def retryable(self) -> bool:
        """True when a resubmission may succeed."""
        if self.success:
            return False
        return self.error_code.retryable if self.error_code else True

    def with_processing_time(self, processing_time_ms: int) -> "AnalysisResponse":
        return self.model_copy(update={"processing_time_ms": max(0, processing_time_ms)})

    def to_json(self) -> str:
        """Serialise with wire (camelCase) field names."""
        return self.model_dump_json(by_alias=True, exclude_none=True)
