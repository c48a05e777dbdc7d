"""Service factory.

Wires the engine from a BackendConfig.

Usage:
    from menu_analysis.application.factory import get_menu_analysis_service

    service = get_menu_analysis_service()  # Built once from .env
    response = await service.analyze_text(text, preferences)
"""

from typing import Optional

import structlog

from menu_analysis.application.analysis_client import AnalysisClient
from menu_analysis.application.menu_analysis_service import MenuAnalysisService
from menu_analysis.domain.menu.extractor import MenuItemExtractor
from menu_analysis.domain.menu.ports import IKeyValueStore
from menu_analysis.domain.menu.prompts import PromptComposer
from menu_analysis.domain.menu.response_validator import ResponseValidator
from menu_analysis.domain.results.projector import ResultsProjector
from menu_analysis.infrastructure.ai.router import ProviderBackendRouter
from menu_analysis.infrastructure.cache.result_cache import ResultCache
from menu_analysis.infrastructure.config import BackendConfig
from menu_analysis.infrastructure.logging_config import configure_logging
from menu_analysis.infrastructure.storage.in_memory_store import InMemoryKeyValueStore
from menu_analysis.infrastructure.web.menu_fetcher import MenuDocumentFetcher

logger = structlog.get_logger(__name__)


def create_menu_analysis_service(
    config: Optional[BackendConfig] = None,
    store: Optional[IKeyValueStore] = None,
    router: Optional[ProviderBackendRouter] = None,
) -> MenuAnalysisService:
    """Create a service for the configured provider and backend mode.

    Args:
        config: Backend configuration (read from the environment if None)
        store: Key/value store for the cache (in-memory if None)
        router: Pre-built router (built from config if None)

    Returns:
        MenuAnalysisService: Ready-to-use service

    Raises:
        ConfigurationError: Invalid environment values
        UnsupportedCombinationError: Unknown provider/mode
        AuthenticationError: Credentials missing or malformed
    """
    config = config or BackendConfig.from_env()
    router = router or ProviderBackendRouter(config)
    transport = router.resolve_default()

    client = AnalysisClient(
        transport,
        composer=PromptComposer(),
        validator=ResponseValidator(),
        timeout_seconds=config.api_timeout_seconds,
    )
    cache = ResultCache(store or InMemoryKeyValueStore(), namespace=config.cache_namespace)

    logger.info("Menu analysis service created", **config.sanitized())
    return MenuAnalysisService(
        client,
        cache,
        extractor=MenuItemExtractor(),
        fetcher=MenuDocumentFetcher(timeout=config.api_timeout_seconds),
        projector=ResultsProjector(),
        text_source_chars=config.cache_text_source_chars,
    )


# Singleton instance (lazy initialization)
_service: Optional[MenuAnalysisService] = None


def get_menu_analysis_service() -> MenuAnalysisService:
    """Get the process-wide service, configuring logging on first use.

    Returns:
        MenuAnalysisService: Cached service instance
    """
    global _service
    if _service is None:
        config = BackendConfig.from_env()
        configure_logging(config.log_level, config.log_json)
        _service = create_menu_analysis_service(config)
    return _service


def reset_services() -> None:
    """Reset the singleton service.

    Useful for testing to force re-creation with different env vars.
    """
    global _service
    _service = None
