"""
Shared fixtures for menu analysis tests.
"""

import json
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock

import pytest

from menu_analysis.domain.menu.models import (
    AnalysisRequest,
    ContentPart,
    DietaryPreferences,
    DietaryType,
    MenuItem,
)
from menu_analysis.infrastructure.config import BackendConfig

# 8-byte PNG signature
PNG_BASE64 = "iVBORw0KGgo="
PNG_DATA_URI = f"data:image/png;base64,{PNG_BASE64}"


# ═══════════════════════════════════════════════════════════
# DOMAIN MODEL FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def vegan_preferences() -> DietaryPreferences:
    return DietaryPreferences(dietary_type=DietaryType.VEGAN)


@pytest.fixture
def custom_preferences() -> DietaryPreferences:
    """Custom restrictions in a non-English language."""
    return DietaryPreferences(
        dietary_type=DietaryType.CUSTOM,
        custom_restrictions="Sin gluten, sin lácteos",
    )


@pytest.fixture
def sample_items() -> List[MenuItem]:
    return [
        MenuItem(id="1", name="Grilled Chicken Breast", price="$14", raw_text="Grilled Chicken Breast - $14"),
        MenuItem(id="2", name="Vegan Buddha Bowl", price="$12", raw_text="Vegan Buddha Bowl - $12"),
    ]


@pytest.fixture
def text_request(vegan_preferences: DietaryPreferences, sample_items: List[MenuItem]) -> AnalysisRequest:
    return AnalysisRequest(
        request_id="text-1",
        dietary_preferences=vegan_preferences,
        items=sample_items,
    )


@pytest.fixture
def png_data_uri() -> str:
    return PNG_DATA_URI


@pytest.fixture
def image_request(vegan_preferences: DietaryPreferences) -> AnalysisRequest:
    return AnalysisRequest(
        request_id="image-1",
        dietary_preferences=vegan_preferences,
        content_parts=[ContentPart.image(PNG_DATA_URI)],
    )


# ═══════════════════════════════════════════════════════════
# MODEL OUTPUT FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def model_output() -> Callable[..., str]:
    """Build raw model JSON for a request id."""

    def _build(request_id: str = "text-1", **overrides: Any) -> str:
        payload: Dict[str, Any] = {
            "success": True,
            "results": [
                {
                    "itemId": "1",
                    "itemName": "Grilled Chicken Breast",
                    "suitability": "avoid",
                    "explanation": "Contains chicken",
                    "confidence": 0.95,
                },
                {
                    "itemId": "2",
                    "itemName": "Vegan Buddha Bowl",
                    "suitability": "good",
                    "explanation": "Plant-based bowl",
                    "confidence": 0.9,
                },
            ],
            "confidence": 0.92,
            "requestId": request_id,
            "processingTime": 0,
        }
        payload.update(overrides)
        return json.dumps(payload)

    return _build


@pytest.fixture
def mock_transport(model_output: Callable[..., str]) -> AsyncMock:
    """Transport returning a valid two-item analysis."""
    transport = AsyncMock()
    transport.send.return_value = model_output()
    transport.aclose = AsyncMock()
    return transport


# ═══════════════════════════════════════════════════════════
# CONFIGURATION FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def gemini_config() -> BackendConfig:
    return BackendConfig(gemini_api_key="test-gemini-key")


@pytest.fixture
def remote_config() -> BackendConfig:
    return BackendConfig(
        provider="vertex",
        backend_mode="remote",
        remote_functions_url="https://functions.example.com",
        remote_functions_key="anon-key",
    )
