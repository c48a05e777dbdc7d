"""
Menu analysis service.

Caller-facing surface of the engine: analysis entry points with
cache-first reads, extraction shortcuts for pasted text and web menus,
and the result projection used by the presentation layer.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import List, Optional, Sequence

import structlog

from menu_analysis.application.analysis_client import AnalysisClient, ConnectionTestResult
from menu_analysis.domain.cache.fingerprint import (
    DEFAULT_TEXT_SOURCE_CHARS,
    compute_fingerprint,
    image_source_hash,
    normalize_text_source,
    normalize_url_source,
)
from menu_analysis.domain.cache.models import CacheEntry, CacheMeta, CacheStats
from menu_analysis.domain.menu.extractor import MenuItemExtractor
from menu_analysis.domain.menu.models import (
    AnalysisRequest,
    AnalysisResponse,
    DietaryPreferences,
    FoodAnalysisResult,
    MenuInputType,
)
from menu_analysis.domain.results.models import CategorizedResults, ResultsFilter
from menu_analysis.domain.results.projector import ResultsProjector
from menu_analysis.domain.shared.errors import CacheError, InvalidRequestError
from menu_analysis.infrastructure.cache.result_cache import ResultCache
from menu_analysis.infrastructure.web.menu_fetcher import MenuDocumentFetcher

logger = structlog.get_logger(__name__)

# Default retention window for recent analyses
RECENT_WINDOW = timedelta(days=7)
DEFAULT_IMAGE_SOURCE = "Menu photo"


def make_request_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}"


class MenuAnalysisService:
    """
    Orchestrates extraction, caching, analysis and projection.

    Concurrent identical requests are not coalesced: both run and the
    last successful write wins in the cache.

    Example:
        >>> service = create_menu_analysis_service()
        >>> response = await service.analyze_text(
        ...     "Grilled Chicken Breast - $14\\nVegan Buddha Bowl - $12",
        ...     DietaryPreferences(dietary_type="vegan"),
        ...     use_cache=True,
        ... )
        >>> view = service.categorize(response.results)
        >>> print(len(view.good), len(view.avoid))
    """

    def __init__(
        self,
        client: AnalysisClient,
        cache: ResultCache,
        extractor: Optional[MenuItemExtractor] = None,
        fetcher: Optional[MenuDocumentFetcher] = None,
        projector: Optional[ResultsProjector] = None,
        text_source_chars: int = DEFAULT_TEXT_SOURCE_CHARS,
    ) -> None:
        self.client = client
        self.cache = cache
        self.extractor = extractor or MenuItemExtractor()
        self.fetcher = fetcher or MenuDocumentFetcher()
        self.projector = projector or ResultsProjector()
        self.text_source_chars = text_source_chars

    # ═══════════════════════════════════════════════════════════
    # ANALYSIS ENTRY POINTS
    # ═══════════════════════════════════════════════════════════

    async def analyze_menu(
        self,
        request: AnalysisRequest,
        *,
        input_type: MenuInputType = MenuInputType.TEXT,
        source: Optional[str] = None,
        use_cache: bool = False,
    ) -> AnalysisResponse:
        """
        Analyze a structured item list.

        Args:
            request: Text-mode analysis request
            input_type: text or url (where the items came from)
            source: Pasted text or menu URL (the item listing is used when
                no text source is given or it is blank)
            use_cache: Serve a cached response for the same fingerprint

        Returns:
            AnalysisResponse (cached responses carry this request's id)

        Raises:
            InvalidRequestError: Multimodal request, image input type,
                or url input without a source
        """
        if request.is_multimodal:
            raise InvalidRequestError("analyze_menu() requires menuItems; use analyze_menu_multimodal()")
        if input_type is MenuInputType.IMAGE:
            raise InvalidRequestError("Image input must go through analyze_menu_multimodal()")

        if input_type is MenuInputType.URL:
            if not source or not source.strip():
                raise InvalidRequestError("URL analyses require the menu URL as source")
            normalized = normalize_url_source(source)
            display_source = normalized
        else:
            normalized = normalize_text_source(source or "", self.text_source_chars)
            if not normalized:
                listing = "\n".join(i.raw_text or i.name for i in request.items or [])
                normalized = normalize_text_source(listing, self.text_source_chars)
            display_source = normalized

        fingerprint = compute_fingerprint(input_type, normalized, request.dietary_preferences)
        return await self._analyze(
            request,
            fingerprint,
            CacheMeta(input_type=input_type, source=display_source),
            use_cache,
            self.client.analyze,
        )

    async def analyze_menu_multimodal(
        self,
        request: AnalysisRequest,
        *,
        source: Optional[str] = None,
        use_cache: bool = False,
    ) -> AnalysisResponse:
        """
        Analyze menu images.

        The fingerprint hashes the decoded image bytes, so the same photo
        analysed twice under the same diet is a cache hit.

        Raises:
            InvalidRequestError: Text request or no image part
        """
        if not request.is_multimodal:
            raise InvalidRequestError("analyze_menu_multimodal() requires contentParts; use analyze_menu()")

        fingerprint = compute_fingerprint(
            MenuInputType.IMAGE,
            image_source_hash(request.content_parts or []),
            request.dietary_preferences,
        )
        return await self._analyze(
            request,
            fingerprint,
            CacheMeta(input_type=MenuInputType.IMAGE, source=source or DEFAULT_IMAGE_SOURCE),
            use_cache,
            self.client.analyze_multimodal,
        )

    async def analyze_text(
        self,
        text: str,
        preferences: DietaryPreferences,
        request_id: Optional[str] = None,
        *,
        context: Optional[str] = None,
        use_cache: bool = False,
    ) -> AnalysisResponse:
        """
        Extract items from pasted text and analyze them.

        Raises:
            EmptyExtractionError: No menu items in the text (before any network call)
        """
        items = self.extractor.extract(text)
        request = AnalysisRequest(
            request_id=request_id or make_request_id("text"),
            dietary_preferences=preferences,
            items=items,
            context=context,
        )
        return await self.analyze_menu(
            request, input_type=MenuInputType.TEXT, source=text, use_cache=use_cache
        )

    async def analyze_url(
        self,
        url: str,
        preferences: DietaryPreferences,
        request_id: Optional[str] = None,
        *,
        context: Optional[str] = None,
        use_cache: bool = False,
    ) -> AnalysisResponse:
        """
        Fetch a web menu, extract its items and analyze them.

        With ``use_cache`` a hit is served before the page is fetched.

        Raises:
            InvalidRequestError: URL is not http(s)
            TransportError: Menu page could not be fetched
            TimeoutError: Menu page fetch timed out
            EmptyExtractionError: Page holds no menu items
        """
        request_id = request_id or make_request_id("url")
        normalized = normalize_url_source(url)

        if use_cache:
            fingerprint = compute_fingerprint(MenuInputType.URL, normalized, preferences)
            cached = await self._cached_response(fingerprint, request_id)
            if cached is not None:
                return cached

        document = await self.fetcher.fetch(normalized)
        items = self.extractor.extract_from_document(document)
        request = AnalysisRequest(
            request_id=request_id,
            dietary_preferences=preferences,
            items=items,
            context=context,
        )
        return await self.analyze_menu(request, input_type=MenuInputType.URL, source=normalized)

    # ═══════════════════════════════════════════════════════════
    # PRESENTATION
    # ═══════════════════════════════════════════════════════════

    def apply_filter(
        self,
        results: Sequence[FoodAnalysisResult],
        results_filter: Optional[ResultsFilter] = None,
    ) -> List[FoodAnalysisResult]:
        return self.projector.apply(results, results_filter or ResultsFilter())

    def categorize(self, results: Sequence[FoodAnalysisResult]) -> CategorizedResults:
        return self.projector.categorize(results)

    # ═══════════════════════════════════════════════════════════
    # HISTORY AND MAINTENANCE
    # ═══════════════════════════════════════════════════════════

    async def recent_analyses(self, max_age: Optional[timedelta] = RECENT_WINDOW) -> List[CacheEntry]:
        """Cached analyses newest first, optionally limited to a window."""
        return await self.cache.list(max_age=max_age)

    async def prune_cache(self, older_than: timedelta = RECENT_WINDOW) -> int:
        return await self.cache.prune(older_than)

    async def cache_stats(self) -> CacheStats:
        return await self.cache.stats()

    async def test_connection(self) -> ConnectionTestResult:
        return await self.client.test_connection()

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.fetcher.aclose()

    # ───────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────

    async def _analyze(self, request, fingerprint, meta, use_cache, analyze) -> AnalysisResponse:
        if use_cache:
            cached = await self._cached_response(fingerprint, request.request_id)
            if cached is not None:
                return cached

        response = await analyze(request)

        if response.success:
            try:
                await self.cache.put(fingerprint, response, meta)
            except CacheError as e:
                logger.warning("Analysis not cached", request_id=request.request_id, error=str(e))
        return response

    async def _cached_response(self, fingerprint: str, request_id: str) -> Optional[AnalysisResponse]:
        entry = await self.cache.get(fingerprint)
        if entry is None:
            return None
        logger.info(
            "Serving cached analysis",
            request_id=request_id,
            cached_request_id=entry.response.request_id,
            input_type=entry.meta.input_type.value,
        )
        return entry.response.model_copy(update={"request_id": request_id})
