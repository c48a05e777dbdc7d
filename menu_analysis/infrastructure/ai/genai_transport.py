"""
Local-mode transport over the google-genai SDK.

One class serves both providers: Gemini (API key) and Vertex AI
(service account) differ only in how the ``genai.Client`` is built.
"""

from __future__ import annotations

from typing import Any, List

import aiohttp
import httpx
import structlog
from google.auth import exceptions as auth_exceptions
from google.genai import errors as genai_errors
from google.genai import types

from menu_analysis.domain.menu.models import AnalysisRequest, ContentType
from menu_analysis.domain.menu.ports import Prompt
from menu_analysis.domain.shared.errors import (
    AuthenticationError,
    TimeoutError,
    TransportError,
)

logger = structlog.get_logger(__name__)

_AUTH_STATUS = {401, 403}


def to_genai_parts(prompt: Prompt) -> List[types.Part]:
    """
    Convert a composed prompt into SDK parts, preserving order.

    Image parts become inline bytes with their MIME type.
    """
    if isinstance(prompt, str):
        return [types.Part.from_text(text=prompt)]

    parts: List[types.Part] = []
    for part in prompt:
        if part.type is ContentType.IMAGE:
            parts.append(types.Part.from_bytes(data=part.image_bytes(), mime_type=part.mime_type()))
        else:
            parts.append(types.Part.from_text(text=part.data))
    return parts


class GenAITransport:
    """
    Direct SDK transport for Gemini and Vertex AI.

    Generation is deterministic-leaning and JSON-only.

    Example:
        >>> client = create_gemini_client(api_key)
        >>> transport = GenAITransport(client, model="gemini-1.5-flash", provider="gemini")
        >>> raw = await transport.send(request, prompt)
    """

    def __init__(
        self,
        client: Any,
        model: str,
        provider: str,
        max_output_tokens: int = 2048,
        temperature: float = 0.1,
        top_p: float = 0.8,
        top_k: int = 1,
    ) -> None:
        """
        Initialize transport.

        Args:
            client: Authenticated ``genai.Client``
            model: Model name
            provider: Provider label used in logs and errors
            max_output_tokens: Output token cap
            temperature: Sampling temperature
            top_p: Nucleus sampling threshold
            top_k: Top-k sampling
        """
        self._client = client
        self.model = model
        self.provider = provider
        self.generation_config = types.GenerateContentConfig(
            temperature=temperature,
            top_p=top_p,
            top_k=top_k,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        )

    async def send(self, request: AnalysisRequest, prompt: Prompt) -> str:
        """
        Send the composed prompt and return the model's raw text.

        Raises:
            AuthenticationError: Credentials rejected (401/403) or not refreshable
            TimeoutError: SDK HTTP timeout (httpx or aiohttp)
            TransportError: Any other API, socket or network failure
        """
        contents = [types.Content(role="user", parts=to_genai_parts(prompt))]

        logger.debug(
            "Sending analysis to provider",
            provider=self.provider,
            model=self.model,
            request_id=request.request_id,
            parts=len(contents[0].parts or []),
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=self.generation_config,
            )
        except genai_errors.APIError as e:
            if e.code in _AUTH_STATUS:
                raise AuthenticationError(f"{self.provider} rejected credentials: {e.message}") from e
            raise TransportError(f"{self.provider} API error {e.code}: {e.message}", status_code=e.code) from e
        except auth_exceptions.RefreshError as e:
            raise AuthenticationError(f"{self.provider} access token refresh failed: {e}") from e
        except auth_exceptions.DefaultCredentialsError as e:
            raise AuthenticationError(f"{self.provider} credentials unavailable: {e}") from e
        except (httpx.TimeoutException, aiohttp.ServerTimeoutError) as e:
            raise TimeoutError(f"{self.provider} request timed out") from e
        except (httpx.HTTPError, aiohttp.ClientError, auth_exceptions.TransportError, OSError) as e:
            raise TransportError(f"{self.provider} network error: {e}") from e

        return response.text or ""

    async def aclose(self) -> None:
        aclose = getattr(self._client.aio, "aclose", None)
        if aclose is not None:
            await aclose()
