"""
Web menu fetcher.

Downloads a restaurant menu page so it can be run through
``MenuItemExtractor.extract_from_document``.
"""

from typing import Any, Optional

import httpx
import structlog

from menu_analysis.domain.shared.errors import (
    InvalidRequestError,
    TimeoutError,
    TransportError,
)

logger = structlog.get_logger(__name__)


class MenuDocumentFetcher:
    """
    HTTP client for menu pages.

    Example:
        >>> async with MenuDocumentFetcher() as fetcher:
        ...     html = await fetcher.fetch("https://example.com/menu")
    """

    USER_AGENT = "Mozilla/5.0 (compatible; MenuAnalysisEngine/1.0)"
    TIMEOUT_S = 15.0

    def __init__(self, timeout: float = TIMEOUT_S, client: Optional[httpx.AsyncClient] = None) -> None:
        self.timeout = timeout
        self._session: Optional[httpx.AsyncClient] = client

    async def __aenter__(self) -> "MenuDocumentFetcher":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _ensure_session(self) -> httpx.AsyncClient:
        if self._session is None:
            self._session = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={"User-Agent": self.USER_AGENT},
            )
        return self._session

    async def fetch(self, url: str) -> str:
        """
        Fetch a menu page.

        Args:
            url: http(s) URL of the menu

        Returns:
            Response body text

        Raises:
            InvalidRequestError: URL is not http(s)
            TimeoutError: Request timed out
            TransportError: Connection failure or non-2xx status
        """
        url = url.strip()
        if not url.lower().startswith(("http://", "https://")):
            raise InvalidRequestError(f"Menu URL must be http(s): {url}")

        session = self._ensure_session()
        try:
            response = await session.get(url)
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Fetching menu timed out: {url}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Cannot fetch menu: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Menu page returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("Fetched menu page", url=url, length=len(response.text))
        return response.text

    async def aclose(self) -> None:
        if self._session is not None:
            await self._session.aclose()
            self._session = None
