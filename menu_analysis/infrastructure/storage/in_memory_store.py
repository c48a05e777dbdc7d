"""
In-memory key/value store.

Simple store for tests, scripts and single-process use. Swap in a
persistent IKeyValueStore implementation to keep history across runs.
"""

from typing import Dict, List, Optional

import structlog

logger = structlog.get_logger(__name__)


class InMemoryKeyValueStore:
    """In-memory implementation of IKeyValueStore."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_all_keys(self) -> List[str]:
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)
