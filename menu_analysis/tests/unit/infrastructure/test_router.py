"""
Unit tests for ProviderBackendRouter.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from menu_analysis.domain.shared.errors import (
    AuthenticationError,
    ConfigurationError,
    UnsupportedCombinationError,
)
from menu_analysis.infrastructure.ai import router as router_module
from menu_analysis.infrastructure.ai.genai_transport import GenAITransport
from menu_analysis.infrastructure.ai.remote_transport import RemoteFunctionTransport
from menu_analysis.infrastructure.ai.router import (
    VERTEX_MAX_OUTPUT_TOKENS,
    ProviderBackendRouter,
)
from menu_analysis.infrastructure.config import BackendConfig, BackendMode, Provider


class TestResolve:
    """Test the four supported routes and fail-fast paths."""

    @pytest.mark.parametrize(
        "provider,mode",
        [("openai", "local"), ("gemini", "edge"), ("", "remote"), ("vertex", None)],
    )
    def test_unsupported_combination(self, gemini_config, provider, mode) -> None:
        with pytest.raises(UnsupportedCombinationError):
            ProviderBackendRouter(gemini_config).resolve(provider, mode)

    def test_gemini_local(self, gemini_config) -> None:
        with patch.object(router_module, "create_gemini_client", return_value=MagicMock()) as create:
            transport = ProviderBackendRouter(gemini_config).resolve("gemini", "local")

        create.assert_called_once_with("test-gemini-key")
        assert isinstance(transport, GenAITransport)
        assert transport.model == "gemini-1.5-flash"

    def test_gemini_local_without_key(self) -> None:
        with pytest.raises(AuthenticationError):
            ProviderBackendRouter(BackendConfig()).resolve(Provider.GEMINI, BackendMode.LOCAL)

    def test_vertex_local(self) -> None:
        config = BackendConfig(vertex_credentials='{"type": "service_account"}', vertex_project_id="p")
        with patch.object(
            router_module, "create_vertex_client", return_value=(MagicMock(), "p")
        ) as create:
            transport = ProviderBackendRouter(config).resolve("VERTEX", "Local")

        create.assert_called_once_with('{"type": "service_account"}', "p", "us-central1")
        assert transport.provider == "vertex"
        assert transport.generation_config.max_output_tokens == VERTEX_MAX_OUTPUT_TOKENS

    def test_vertex_local_without_credentials(self) -> None:
        with pytest.raises(AuthenticationError):
            ProviderBackendRouter(BackendConfig()).resolve("vertex", "local")

    @pytest.mark.parametrize("provider", ["gemini", "vertex"])
    def test_remote(self, remote_config, provider) -> None:
        transport = ProviderBackendRouter(remote_config).resolve(provider, "remote")

        assert isinstance(transport, RemoteFunctionTransport)
        assert transport.provider == provider
        assert transport.url == "https://functions.example.com/functions/v1/ai-menu-analysis"

    def test_remote_without_key(self) -> None:
        config = BackendConfig(backend_mode="remote", remote_functions_url="https://functions.example.com")
        with pytest.raises(AuthenticationError):
            ProviderBackendRouter(config).resolve("gemini", "remote")

    def test_remote_without_url(self) -> None:
        config = BackendConfig(backend_mode="remote", remote_functions_key="anon-key")
        with pytest.raises(ConfigurationError):
            ProviderBackendRouter(config).resolve("gemini", "remote")

    def test_transport_is_reused(self, remote_config) -> None:
        router = ProviderBackendRouter(remote_config)
        assert router.resolve("vertex", "remote") is router.resolve(Provider.VERTEX, BackendMode.REMOTE)

    def test_resolve_default(self, remote_config) -> None:
        transport = ProviderBackendRouter(remote_config).resolve_default()
        assert transport.provider == "vertex"


class TestAvailableProviders:
    def test_local_mode(self, gemini_config) -> None:
        assert ProviderBackendRouter(gemini_config).available_providers() == [Provider.GEMINI]

    def test_remote_mode_serves_both(self, remote_config) -> None:
        assert ProviderBackendRouter(remote_config).available_providers() == [
            Provider.GEMINI,
            Provider.VERTEX,
        ]

    def test_nothing_configured(self) -> None:
        assert ProviderBackendRouter(BackendConfig()).available_providers("local") == []


@pytest.mark.asyncio
async def test_aclose_closes_built_transports(remote_config) -> None:
    router = ProviderBackendRouter(remote_config)
    transport = router.resolve("gemini", "remote")
    transport.aclose = AsyncMock()

    await router.aclose()

    transport.aclose.assert_awaited_once()
