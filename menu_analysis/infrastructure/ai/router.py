"""
Provider/backend-mode routing.

Resolves one of the four supported (provider, mode) combinations to a
transport through an explicit lookup table built from BackendConfig.
Unknown combinations fail fast instead of falling back to a default.
"""

from typing import Callable, Dict, List, Tuple, Union

import structlog

from menu_analysis.domain.menu.ports import ITransport
from menu_analysis.domain.shared.errors import (
    AuthenticationError,
    ConfigurationError,
    UnsupportedCombinationError,
)
from menu_analysis.infrastructure.ai.credentials import (
    create_gemini_client,
    create_vertex_client,
)
from menu_analysis.infrastructure.ai.genai_transport import GenAITransport
from menu_analysis.infrastructure.ai.remote_transport import RemoteFunctionTransport
from menu_analysis.infrastructure.config import BackendConfig, BackendMode, Provider

logger = structlog.get_logger(__name__)

Route = Tuple[Provider, BackendMode]

# Output token caps per provider
GEMINI_MAX_OUTPUT_TOKENS = 2048
VERTEX_MAX_OUTPUT_TOKENS = 4096


class ProviderBackendRouter:
    """
    Resolves (provider, mode) to a transport.

    Transports are built on first resolution and reused afterwards.
    Credential problems raise AuthenticationError at resolution time,
    before any request is sent.

    Example:
        >>> router = ProviderBackendRouter(BackendConfig.from_env())
        >>> transport = router.resolve("vertex", "remote")
    """

    def __init__(self, config: BackendConfig) -> None:
        self.config = config
        self._builders: Dict[Route, Callable[[], ITransport]] = {
            (Provider.GEMINI, BackendMode.LOCAL): self._build_gemini_local,
            (Provider.VERTEX, BackendMode.LOCAL): self._build_vertex_local,
            (Provider.GEMINI, BackendMode.REMOTE): lambda: self._build_remote(Provider.GEMINI),
            (Provider.VERTEX, BackendMode.REMOTE): lambda: self._build_remote(Provider.VERTEX),
        }
        self._transports: Dict[Route, ITransport] = {}

    def resolve(
        self,
        provider: Union[Provider, str],
        mode: Union[BackendMode, str],
    ) -> ITransport:
        """
        Resolve a transport.

        Args:
            provider: "gemini" or "vertex"
            mode: "local" or "remote"

        Returns:
            Transport for the combination

        Raises:
            UnsupportedCombinationError: Unknown provider or mode
            AuthenticationError: Credentials missing or malformed
            ConfigurationError: Remote function URL missing
        """
        route = self._route(provider, mode)
        transport = self._transports.get(route)
        if transport is None:
            transport = self._builders[route]()
            self._transports[route] = transport
            logger.info("Transport resolved", provider=route[0].value, mode=route[1].value)
        return transport

    def resolve_default(self) -> ITransport:
        """Resolve the combination selected in the configuration."""
        return self.resolve(self.config.provider, self.config.backend_mode)

    def available_providers(self, mode: Union[BackendMode, str, None] = None) -> List[Provider]:
        """
        Providers whose credentials are configured for a mode.

        Args:
            mode: Backend mode (defaults to the configured one)
        """
        if mode is None:
            mode = self.config.backend_mode
        available = []
        for provider in Provider:
            route = self._route(provider, mode)
            if self._has_credentials(route):
                available.append(provider)
        return available

    async def aclose(self) -> None:
        """Close every transport built so far."""
        for transport in self._transports.values():
            await transport.aclose()
        self._transports.clear()

    # ───────────────────────────────────────────────────────
    # Builders
    # ───────────────────────────────────────────────────────

    @staticmethod
    def _route(provider: Union[Provider, str], mode: Union[BackendMode, str]) -> Route:
        try:
            if not isinstance(provider, Provider):
                provider = Provider(str(provider).strip().lower())
            if not isinstance(mode, BackendMode):
                mode = BackendMode(str(mode).strip().lower())
            return provider, mode
        except ValueError as e:
            raise UnsupportedCombinationError(
                f"Unsupported provider/mode combination: {provider}/{mode}"
            ) from e

    def _has_credentials(self, route: Route) -> bool:
        provider, mode = route
        if mode is BackendMode.REMOTE:
            return bool(self.config.remote_functions_url and self.config.remote_functions_key)
        if provider is Provider.GEMINI:
            return bool(self.config.gemini_api_key)
        return bool(self.config.vertex_credentials)

    def _build_gemini_local(self) -> ITransport:
        client = create_gemini_client(self.config.gemini_api_key)
        return GenAITransport(
            client,
            model=self.config.gemini_model,
            provider=Provider.GEMINI.value,
            max_output_tokens=GEMINI_MAX_OUTPUT_TOKENS,
        )

    def _build_vertex_local(self) -> ITransport:
        client, _ = create_vertex_client(
            self.config.vertex_credentials,
            self.config.vertex_project_id,
            self.config.vertex_location,
        )
        return GenAITransport(
            client,
            model=self.config.vertex_model,
            provider=Provider.VERTEX.value,
            max_output_tokens=VERTEX_MAX_OUTPUT_TOKENS,
        )

    def _build_remote(self, provider: Provider) -> ITransport:
        if not self.config.remote_functions_url:
            raise ConfigurationError("REMOTE_FUNCTIONS_URL not set for remote backend mode")
        if not self.config.remote_functions_key:
            raise AuthenticationError("REMOTE_FUNCTIONS_KEY not set for remote backend mode")
        return RemoteFunctionTransport(
            self.config.remote_functions_url,
            self.config.remote_functions_key,
            provider=provider.value,
            timeout=self.config.api_timeout_seconds,
        )
