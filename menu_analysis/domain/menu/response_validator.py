"""
Model output validation.

Single choke point between untyped model text and the typed
AnalysisResponse. Nothing downstream ever sees raw model JSON.
"""

from __future__ import annotations

import hashlib
import math
import json
import re
from typing import Any, Dict, List, Optional

import structlog

from menu_analysis.domain.menu.models import (
    AnalysisErrorCode,
    AnalysisResponse,
    FoodAnalysisResult,
    Suitability,
)
from menu_analysis.domain.shared.errors import SchemaViolationError

logger = structlog.get_logger(__name__)

# Used when the model omits the request-level confidence
DEFAULT_CONFIDENCE = 0.8

_FENCE = re.compile(r"```(?:json|JSON)?\s*(?P<body>.*?)\s*```", re.DOTALL)
_SUITABILITIES = {s.value: s for s in Suitability}


class ResponseValidator:
    """
    Parses and validates raw model output.

    Policy:
    - Strict JSON first, then exactly one repair pass (code fences and
      surrounding prose removed)
    - Suitability is case-folded; unknown literals drop the item
    - Confidence is clamped to [0, 1]
    - questionsToAsk on non-careful items is dropped
    - Items missing itemName, suitability or explanation are dropped
    - A mismatched or missing requestId is only logged

    Example:
        >>> validator = ResponseValidator()
        >>> response = validator.parse(raw_text, expected_request_id="r1")
        >>> response.success
        True
    """

    def parse(self, raw_text: str, expected_request_id: str) -> AnalysisResponse:
        """
        Parse model output into an AnalysisResponse.

        Args:
            raw_text: Raw text returned by the transport
            expected_request_id: Request id sent with the prompt

        Returns:
            Validated AnalysisResponse (request id is always the expected one)

        Raises:
            SchemaViolationError: If no JSON object can be recovered, or the
                recovered object has no usable results array
        """
        data = self._load(raw_text)
        if not isinstance(data, dict):
            raise SchemaViolationError("Model output is not a JSON object")

        self._check_request_id(data.get("requestId"), expected_request_id)
        processing_time_ms = _processing_time(data)

        if data.get("success") is False:
            message = _clean_text(data.get("message")) or "Analysis failed"
            return AnalysisResponse.failure(
                request_id=expected_request_id,
                message=message,
                error_code=_error_code(data.get("errorCode")),
                processing_time_ms=processing_time_ms,
            )

        raw_results = data.get("results")
        if not isinstance(raw_results, list):
            raise SchemaViolationError("Model output is missing a results array")

        request_confidence = _clamp(data.get("confidence"), DEFAULT_CONFIDENCE)

        results: List[FoodAnalysisResult] = []
        for index, raw_item in enumerate(raw_results):
            result = self._validate_item(raw_item, request_confidence)
            if result is None:
                logger.debug("Dropped invalid result item", index=index, request_id=expected_request_id)
                continue
            results.append(result)

        dropped = len(raw_results) - len(results)
        if dropped:
            logger.info(
                "Partial analysis results",
                request_id=expected_request_id,
                kept=len(results),
                dropped=dropped,
            )

        if not results and data.get("success") is not True:
            return AnalysisResponse.failure(
                request_id=expected_request_id,
                message="No valid analysis results",
                error_code=AnalysisErrorCode.SCHEMA_VIOLATION,
                processing_time_ms=processing_time_ms,
            )

        return AnalysisResponse(
            success=True,
            results=results,
            confidence=request_confidence,
            message=_clean_text(data.get("message")),
            request_id=expected_request_id,
            processing_time_ms=processing_time_ms,
        )

    # ───────────────────────────────────────────────────────
    # Parsing
    # ───────────────────────────────────────────────────────

    def _load(self, raw_text: str) -> Any:
        text = (raw_text or "").strip()
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass
        except (ValueError, RecursionError) as e:
            # Well-formed JSON that still cannot be decoded (huge integers, deep nesting)
            raise SchemaViolationError(f"Model output cannot be decoded: {e}") from e

        repaired = _repair(text)
        if repaired is None:
            raise SchemaViolationError("Model output contains no JSON object")
        try:
            data = json.loads(repaired)
        except json.JSONDecodeError as e:
            raise SchemaViolationError(f"Model output is not valid JSON: {e.msg}") from e
        except (ValueError, RecursionError) as e:
            raise SchemaViolationError(f"Model output cannot be decoded: {e}") from e

        logger.info("Repaired model output", original_length=len(text), repaired_length=len(repaired))
        return data

    @staticmethod
    def _check_request_id(received: Any, expected: str) -> None:
        if received != expected:
            logger.warning(
                "Request id mismatch in model output",
                expected_request_id=expected,
                received_request_id=received,
            )

    # ───────────────────────────────────────────────────────
    # Item validation
    # ───────────────────────────────────────────────────────

    @staticmethod
    def _validate_item(raw: Any, fallback_confidence: float) -> Optional[FoodAnalysisResult]:
        if not isinstance(raw, dict):
            return None

        item_name = _clean_text(raw.get("itemName"))
        explanation = _clean_text(raw.get("explanation"))
        suitability_raw = raw.get("suitability")
        if not item_name or not explanation or not isinstance(suitability_raw, str):
            return None

        suitability = _SUITABILITIES.get(suitability_raw.strip().lower())
        if suitability is None:
            return None

        item_id = raw.get("itemId")
        if isinstance(item_id, (int, float)) and not isinstance(item_id, bool):
            item_id = str(item_id)
        item_id = _clean_text(item_id) or generate_item_id(item_name)

        questions = _string_list(raw.get("questionsToAsk"))
        if suitability is not Suitability.CAREFUL:
            questions = None

        return FoodAnalysisResult(
            item_id=item_id,
            item_name=item_name,
            suitability=suitability,
            explanation=explanation,
            questions_to_ask=questions,
            confidence=_clamp(raw.get("confidence"), fallback_confidence),
            concerns=_string_list(raw.get("concerns")),
        )


# ═══════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════


def generate_item_id(item_name: str) -> str:
    """Stable id for results the model returned without an itemId.

    Example:
        >>> generate_item_id("Garden Salad") == generate_item_id("  garden salad ")
        True
    """
    normalized = " ".join(item_name.lower().split())
    return "gen-" + hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def _repair(text: str) -> Optional[str]:
    """Strip code fences and prose around the outermost JSON object."""
    fence = _FENCE.search(text)
    if fence:
        text = fence.group("body")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _clamp(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return min(1.0, max(0.0, float(value)))


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _string_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return None
    cleaned = [v.strip() for v in value if isinstance(v, str) and v.strip()]
    return cleaned or None


def _processing_time(data: Dict[str, Any]) -> int:
    value = data.get("processingTimeMs", data.get("processingTime"))
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value)) if math.isfinite(value) else 0


def _error_code(value: Any) -> Optional[AnalysisErrorCode]:
    try:
        return AnalysisErrorCode(value)
    except ValueError:
        return None
