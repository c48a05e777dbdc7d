"""
Unit tests for the google-genai transport.

The SDK client is mocked; request shapes and error mapping are checked.
"""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import httpx
import pytest
from google.auth import exceptions as auth_exceptions
from google.genai import errors as genai_errors

from menu_analysis.domain.menu.models import ContentPart
from menu_analysis.domain.shared.errors import AuthenticationError, TimeoutError, TransportError
from menu_analysis.infrastructure.ai.genai_transport import GenAITransport, to_genai_parts


@pytest.fixture
def mock_genai_client() -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text='{"success": true}'))
    client.aio.aclose = AsyncMock()
    return client


@pytest.fixture
def transport(mock_genai_client: MagicMock) -> GenAITransport:
    return GenAITransport(mock_genai_client, model="gemini-1.5-flash", provider="gemini")


class TestToGenaiParts:
    def test_text_prompt(self) -> None:
        parts = to_genai_parts("Analyze this")
        assert len(parts) == 1
        assert parts[0].text == "Analyze this"

    def test_multimodal_order_and_bytes(self, png_data_uri: str) -> None:
        parts = to_genai_parts(
            [ContentPart.text("instructions"), ContentPart.image(png_data_uri), ContentPart.text("trailing")]
        )

        assert parts[0].text == "instructions"
        assert parts[1].inline_data.mime_type == "image/png"
        assert parts[1].inline_data.data == b"\x89PNG\r\n\x1a\n"
        assert parts[2].text == "trailing"


class TestGenAITransport:
    """Test SDK calls and error mapping."""

    def test_generation_config(self, transport: GenAITransport) -> None:
        config = transport.generation_config
        assert config.temperature == 0.1
        assert config.top_k == 1
        assert config.top_p == 0.8
        assert config.max_output_tokens == 2048
        assert config.response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_send_returns_text(self, transport, mock_genai_client, text_request) -> None:
        raw = await transport.send(text_request, "prompt text")

        assert raw == '{"success": true}'
        call = mock_genai_client.aio.models.generate_content.call_args
        assert call.kwargs["model"] == "gemini-1.5-flash"
        assert call.kwargs["contents"][0].parts[0].text == "prompt text"
        assert call.kwargs["config"] is transport.generation_config

    @pytest.mark.asyncio
    async def test_empty_response_text(self, transport, mock_genai_client, text_request) -> None:
        mock_genai_client.aio.models.generate_content.return_value = MagicMock(text=None)
        assert await transport.send(text_request, "prompt") == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [401, 403])
    async def test_auth_status_maps_to_authentication_error(
        self, transport, mock_genai_client, text_request, code
    ) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = genai_errors.ClientError(
            code, {"error": {"code": code, "message": "API key not valid", "status": "PERMISSION_DENIED"}}
        )
        with pytest.raises(AuthenticationError):
            await transport.send(text_request, "prompt")

    @pytest.mark.asyncio
    async def test_server_error_maps_to_transport_error(self, transport, mock_genai_client, text_request) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = genai_errors.ServerError(
            503, {"error": {"code": 503, "message": "Overloaded", "status": "UNAVAILABLE"}}
        )
        with pytest.raises(TransportError) as exc_info:
            await transport.send(text_request, "prompt")
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_refresh_error_maps_to_authentication_error(
        self, transport, mock_genai_client, text_request
    ) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = auth_exceptions.RefreshError("expired")
        with pytest.raises(AuthenticationError, match="refresh"):
            await transport.send(text_request, "prompt")

    @pytest.mark.asyncio
    async def test_http_timeout_maps_to_timeout_error(self, transport, mock_genai_client, text_request) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(TimeoutError):
            await transport.send(text_request, "prompt")

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_transport_error(
        self, transport, mock_genai_client, text_request
    ) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = httpx.ConnectError("refused")
        with pytest.raises(TransportError):
            await transport.send(text_request, "prompt")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            aiohttp.ClientConnectionError("connection closed"),
            aiohttp.ClientPayloadError("truncated body"),
            ConnectionResetError("peer reset"),
            OSError("network unreachable"),
        ],
    )
    async def test_socket_and_aiohttp_errors_map_to_transport_error(
        self, transport, mock_genai_client, text_request, error
    ) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = error
        with pytest.raises(TransportError, match="network error"):
            await transport.send(text_request, "prompt")

    @pytest.mark.asyncio
    async def test_aiohttp_timeout_maps_to_timeout_error(self, transport, mock_genai_client, text_request) -> None:
        mock_genai_client.aio.models.generate_content.side_effect = aiohttp.ServerTimeoutError("slow")
        with pytest.raises(TimeoutError):
            await transport.send(text_request, "prompt")

    @pytest.mark.asyncio
    async def test_aclose(self, transport, mock_genai_client) -> None:
        await transport.aclose()
        mock_genai_client.aio.aclose.assert_awaited_once()
