"""
Analysis client.

Runs one analysis call: compose, send through a transport under a
timeout, validate. Single attempt per call; retry policy belongs to
the caller.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from menu_analysis.domain.menu.models import (
    AnalysisErrorCode,
    AnalysisRequest,
    AnalysisResponse,
    DietaryPreferences,
    DietaryType,
)
from menu_analysis.domain.menu.ports import ITransport, Prompt
from menu_analysis.domain.menu.prompts import CONNECTION_TEST_ITEM, PromptComposer
from menu_analysis.domain.menu.response_validator import ResponseValidator
from menu_analysis.domain.shared.errors import (
    AuthenticationError,
    ExternalServiceError,
    InvalidRequestError,
    SchemaViolationError,
)
from menu_analysis.domain.shared.errors import TimeoutError as AnalysisTimeoutError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ConnectionTestResult(BaseModel):
    """Outcome of a connectivity check."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    success: bool
    message: str
    latency_ms: int


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class AnalysisClient:
    """
    Single-shot analysis client.

    ``analyze`` and ``analyze_multimodal`` always return an
    AnalysisResponse. Transport failures, timeouts, credential
    rejections and unusable model output become ``success=False``
    responses with an ``error_code``. Only caller contract violations
    raise.

    Example:
        >>> client = AnalysisClient(router.resolve("gemini", "local"), timeout_seconds=30)
        >>> response = await client.analyze(request)
        >>> if not response.success and response.retryable:
        ...     print("Offer a retry")
    """

    def __init__(
        self,
        transport: ITransport,
        composer: Optional[PromptComposer] = None,
        validator: Optional[ResponseValidator] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize client.

        Args:
            transport: Resolved provider/backend transport
            composer: Prompt composer (default instance if None)
            validator: Response validator (default instance if None)
            timeout_seconds: Bound on each call
        """
        self.transport = transport
        self.composer = composer or PromptComposer()
        self.validator = validator or ResponseValidator()
        self.timeout_seconds = timeout_seconds

    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        """
        Analyze a structured item list.

        Raises:
            InvalidRequestError: If the request carries content parts
        """
        if request.is_multimodal:
            raise InvalidRequestError("analyze() requires menuItems; use analyze_multimodal()")

        prompt = self.composer.compose_text(
            request.dietary_preferences,
            request.items or [],
            request.request_id,
            context=request.context,
        )
        return await self._execute(request, prompt)

    async def analyze_multimodal(self, request: AnalysisRequest) -> AnalysisResponse:
        """
        Analyze menu images (optionally with text parts).

        Raises:
            InvalidRequestError: If the request carries menuItems or has no image part
        """
        if not request.is_multimodal:
            raise InvalidRequestError("analyze_multimodal() requires contentParts; use analyze()")

        prompt = self.composer.compose_multimodal(
            request.dietary_preferences,
            request.content_parts or [],
            request.request_id,
            context=request.context,
        )
        return await self._execute(request, prompt)

    async def test_connection(self) -> ConnectionTestResult:
        """
        Send the canned test prompt and report whether the backend answered.

        Never raises.
        """
        request_id = f"test-{int(time.time() * 1000)}"
        request = AnalysisRequest(
            request_id=request_id,
            dietary_preferences=DietaryPreferences(dietary_type=DietaryType.VEGAN),
            items=[CONNECTION_TEST_ITEM],
        )
        prompt = self.composer.compose_connection_test(request_id)

        start = time.perf_counter()
        response = await self._execute(request, prompt)
        latency_ms = _elapsed_ms(start)

        if response.success:
            message = f"Connection successful ({len(response.results)} test results)"
        else:
            message = f"Connection failed: {response.message}"
        logger.info("Connection test", success=response.success, latency_ms=latency_ms)
        return ConnectionTestResult(success=response.success, message=message, latency_ms=latency_ms)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def _execute(self, request: AnalysisRequest, prompt: Prompt) -> AnalysisResponse:
        request_id = request.request_id
        start = time.perf_counter()

        try:
            raw_text = await asyncio.wait_for(
                self.transport.send(request, prompt),
                timeout=self.timeout_seconds,
            )
            response = self.validator.parse(raw_text, request_id)
        except asyncio.TimeoutError:
            return self._failure(
                request_id,
                f"Analysis timed out after {self.timeout_seconds:g}s",
                AnalysisErrorCode.TIMEOUT,
                start,
            )
        except AnalysisTimeoutError as e:
            return self._failure(request_id, str(e), AnalysisErrorCode.TIMEOUT, start)
        except AuthenticationError as e:
            return self._failure(request_id, str(e), AnalysisErrorCode.AUTHENTICATION, start)
        except ExternalServiceError as e:
            return self._failure(request_id, str(e), AnalysisErrorCode.TRANSPORT, start)
        except SchemaViolationError as e:
            return self._failure(
                request_id,
                f"Could not read the analysis response: {e}",
                AnalysisErrorCode.SCHEMA_VIOLATION,
                start,
            )
        except Exception as e:
            logger.exception("Unexpected analysis error", request_id=request_id)
            return self._failure(
                request_id,
                f"Analysis failed: {e}",
                AnalysisErrorCode.TRANSPORT,
                start,
            )

        response = response.with_processing_time(_elapsed_ms(start))
        logger.info(
            "Analysis completed",
            request_id=request_id,
            success=response.success,
            results=len(response.results),
            processing_time_ms=response.processing_time_ms,
        )
        return response

    @staticmethod
    def _failure(
        request_id: str,
        message: str,
        error_code: AnalysisErrorCode,
        start: float,
    ) -> AnalysisResponse:
        processing_time_ms = _elapsed_ms(start)
        logger.warning(
            "Analysis failed",
            request_id=request_id,
            error_code=error_code.value,
            error=message,
            processing_time_ms=processing_time_ms,
        )
        return AnalysisResponse.failure(
            request_id=request_id,
            message=message or "Analysis failed",
            error_code=error_code,
            processing_time_ms=processing_time_ms,
        )
