"""
Ports (Interfaces) for menu analysis dependencies.

Defines the interfaces the analysis client and the result cache depend
on. Concrete adapters live in the infrastructure layer.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import List, Optional, Protocol, Union, runtime_checkable

from menu_analysis.domain.menu.models import AnalysisRequest, ContentPart

# Composed text prompt or ordered multimodal content parts
Prompt = Union[str, List[ContentPart]]


@runtime_checkable
class ITransport(Protocol):
    """
    Port for one provider/backend-mode combination.

    Local transports send the composed prompt to the provider SDK.
    Remote transports forward the request itself to a server-side
    function, which composes the prompt on its side.
    """

    async def send(self, request: AnalysisRequest, prompt: Prompt) -> str:
        """
        Send a single analysis call.

        Args:
            request: The analysis request being served
            prompt: Composed prompt text or content parts

        Returns:
            Raw model output text

        Raises:
            TransportError: Network or HTTP failure
            AuthenticationError: Credential rejected or missing
            TimeoutError: Provider-side timeout
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


@runtime_checkable
class IKeyValueStore(Protocol):
    """
    Port for the persistent key/value string store backing the cache.

    Implementations only guarantee single-key read/write atomicity.
    """

    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when absent."""
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...

    async def get_all_keys(self) -> List[str]:
        ...
