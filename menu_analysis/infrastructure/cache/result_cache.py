"""
Analysis result cache.

Stores successful AnalysisResponse values as JSON CacheEntry records in
a key/value store, under ``<namespace>_<fingerprint>`` keys. Unbounded:
retention is the caller's decision (see ``prune``).
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import structlog
from pydantic import ValidationError

from menu_analysis.domain.cache.models import CacheEntry, CacheMeta, CacheStats
from menu_analysis.domain.menu.models import AnalysisResponse
from menu_analysis.domain.menu.ports import IKeyValueStore
from menu_analysis.domain.shared.errors import CacheError

logger = structlog.get_logger(__name__)

DEFAULT_NAMESPACE = "wcie_cache"


class ResultCache:
    """
    Fingerprint-keyed cache of analysis responses.

    Example:
        >>> cache = ResultCache(InMemoryKeyValueStore())
        >>> await cache.put(fingerprint, response, CacheMeta(input_type="text", source="..."))
        >>> entry = await cache.get(fingerprint)
    """

    def __init__(self, store: IKeyValueStore, namespace: str = DEFAULT_NAMESPACE) -> None:
        """
        Initialize cache.

        Args:
            store: Key/value store collaborator
            namespace: Key prefix shared by every entry
        """
        self._store = store
        self.namespace = namespace

    def _make_key(self, fingerprint: str) -> str:
        return f"{self.namespace}_{fingerprint}"

    @property
    def _prefix(self) -> str:
        return f"{self.namespace}_"

    async def get(self, fingerprint: str) -> Optional[CacheEntry]:
        """
        Get the entry for a fingerprint.

        Returns:
            CacheEntry, or None when absent or unreadable
        """
        key = self._make_key(fingerprint)
        raw = await self._store.get_item(key)
        if raw is None:
            logger.debug("Cache miss", fingerprint=fingerprint)
            return None

        entry = self._decode(key, raw)
        if entry is not None:
            logger.debug("Cache hit", fingerprint=fingerprint)
        return entry

    async def put(self, fingerprint: str, response: AnalysisResponse, meta: CacheMeta) -> CacheEntry:
        """
        Store a successful response, replacing any entry for the fingerprint.

        Args:
            fingerprint: Cache fingerprint
            response: Successful analysis response
            meta: Input provenance

        Returns:
            The stored entry

        Raises:
            CacheError: If the response is a failure or cannot be serialised
        """
        if not response.success:
            raise CacheError("Only successful analyses can be cached")

        entry = CacheEntry(key=fingerprint, response=response, meta=meta)
        try:
            payload = entry.model_dump_json(by_alias=True, exclude_none=True)
        except ValueError as e:
            raise CacheError(f"Cannot serialise cache entry: {e}") from e

        await self._store.set_item(self._make_key(fingerprint), payload)
        logger.debug(
            "Cached analysis",
            fingerprint=fingerprint,
            input_type=meta.input_type.value,
            results=len(response.results),
        )
        return entry

    async def list(self, max_age: Optional[timedelta] = None) -> List[CacheEntry]:
        """
        List entries newest first.

        Args:
            max_age: Only include entries younger than this

        Returns:
            Entries in reverse-chronological order (unreadable ones skipped)
        """
        cutoff = datetime.now(timezone.utc) - max_age if max_age is not None else None

        entries: List[CacheEntry] = []
        for key in await self._keys():
            raw = await self._store.get_item(key)
            if raw is None:
                continue
            entry = self._decode(key, raw)
            if entry is None:
                continue
            if cutoff is not None and entry.timestamp < cutoff:
                continue
            entries.append(entry)

        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    async def remove(self, fingerprint: str) -> None:
        await self._store.remove_item(self._make_key(fingerprint))

    async def clear(self) -> int:
        """Remove every entry in the namespace. Returns the number removed."""
        keys = await self._keys()
        for key in keys:
            await self._store.remove_item(key)
        logger.info("Cache cleared", namespace=self.namespace, removed=len(keys))
        return len(keys)

    async def prune(self, older_than: timedelta) -> int:
        """
        Remove entries older than a retention window.

        Unreadable entries are removed as well.

        Returns:
            Number of entries removed
        """
        cutoff = datetime.now(timezone.utc) - older_than
        removed = 0
        for key in await self._keys():
            raw = await self._store.get_item(key)
            entry = self._decode(key, raw) if raw is not None else None
            if entry is None or entry.timestamp < cutoff:
                await self._store.remove_item(key)
                removed += 1

        logger.info("Cache pruned", namespace=self.namespace, removed=removed)
        return removed

    async def stats(self) -> CacheStats:
        """
        Summarise the namespace: entry count, approximate size and age range.

        Unreadable entries count towards the size but not the entry count.
        """
        total_size = 0
        timestamps = []
        for key in await self._keys():
            raw = await self._store.get_item(key)
            if raw is None:
                continue
            total_size += len(raw.encode("utf-8"))
            entry = self._decode(key, raw)
            if entry is not None:
                timestamps.append(entry.timestamp)

        return CacheStats(
            total_entries=len(timestamps),
            total_size_bytes=total_size,
            oldest=min(timestamps) if timestamps else None,
            newest=max(timestamps) if timestamps else None,
        )

    async def _keys(self) -> List[str]:
        return [k for k in await self._store.get_all_keys() if k.startswith(self._prefix)]

    @staticmethod
    def _decode(key: str, raw: str) -> Optional[CacheEntry]:
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Skipping unreadable cache entry", key=key, errors=e.error_count())
            return None
