"""
Remote-mode transport.

Forwards the analysis request to the server-side ``ai-menu-analysis``
function, which owns the provider credentials and prompt composition.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from menu_analysis.domain.menu.models import AnalysisRequest
from menu_analysis.domain.menu.ports import Prompt
from menu_analysis.domain.shared.errors import (
    AuthenticationError,
    TimeoutError,
    TransportError,
)

logger = structlog.get_logger(__name__)

FUNCTION_PATH = "/functions/v1/ai-menu-analysis"


def build_request_body(request: AnalysisRequest, provider: str) -> Dict[str, Any]:
    """
    Build the remote function body.

    Example:
        >>> body = build_request_body(request, "gemini")
        >>> body["type"], body["provider"]
        ('analyze', 'gemini')
    """
    body: Dict[str, Any] = {
        "type": "analyze_multimodal" if request.is_multimodal else "analyze",
        "provider": provider,
    }
    body.update(request.model_dump(mode="json", by_alias=True, exclude_none=True))
    return body


class RemoteFunctionTransport:
    """
    HTTP transport to the server-side analysis function.

    One POST per call, bearer-authenticated. The composed prompt is not
    sent: the function composes its own from the request body.

    Example:
        >>> async with RemoteFunctionTransport(base_url, key, provider="vertex") as transport:
        ...     raw = await transport.send(request, prompt)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        provider: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = base_url.rstrip("/") + FUNCTION_PATH
        self.provider = provider
        self.timeout = timeout
        self._api_key = api_key
        self._session: Optional[httpx.AsyncClient] = client

    async def __aenter__(self) -> "RemoteFunctionTransport":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _ensure_session(self) -> httpx.AsyncClient:
        if self._session is None:
            self._session = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._session

    async def send(self, request: AnalysisRequest, prompt: Prompt) -> str:
        """
        POST the request body and return the response text.

        Raises:
            AuthenticationError: 401/403 from the function
            TimeoutError: HTTP timeout
            TransportError: Connection failure or any other non-2xx status
        """
        session = self._ensure_session()
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        logger.debug(
            "Calling remote analysis function",
            provider=self.provider,
            request_id=request.request_id,
            multimodal=request.is_multimodal,
        )

        try:
            response = await session.post(
                self.url,
                json=build_request_body(request, self.provider),
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError("Remote analysis function timed out") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Remote analysis function unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Remote analysis function rejected credentials ({response.status_code})"
            )
        if not response.is_success:
            logger.warning(
                "Remote analysis function error",
                status=response.status_code,
                request_id=request.request_id,
            )
            raise TransportError(
                f"Remote function error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        return response.text

    async def aclose(self) -> None:
        if self._session is not None:
            await self._session.aclose()
            self._session = None
