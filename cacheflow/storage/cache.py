"""
A time-to-live (TTL) aware response cache on top of a key/value store.

Entries are never expired in storage; freshness is computed at read time
against the configured TTL.
"""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

from cacheflow.exceptions import CacheError

log = logging.getLogger(__name__)


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry:
    """A single cached payload, keyed by request identifier."""

    key: str
    payload: str
    stored_at: int


class KeyValueStore(Protocol):
    """The storage engine contract wrapped by `CacheStore`."""

    async def get(self, key: str) -> tuple[str, str, int] | None: ...

    async def put(self, key: str, payload: str, stored_at: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...


class CacheStore:
    """
    Sole reader and writer of cached responses. Any fault raised by the
    underlying store surfaces as `CacheError`; a missing key is a normal `None`
    result.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieves the entry stored for `key`, or None if there is none."""
        try:
            row = await self._store.get(key)
        except Exception as e:
            raise CacheError(f"Cache read failed for key '{key}': {e}") from e

        if row is None:
            return None
        return CacheEntry(key=row[0], payload=row[1], stored_at=row[2])

    async def put(self, key: str, payload: str, now: int | None = None) -> CacheEntry:
        """Inserts or replaces the entry for `key`, stamped with `now` (millis)."""
        stored_at = now_millis() if now is None else now
        try:
            await self._store.put(key, payload, stored_at)
        except Exception as e:
            raise CacheError(f"Cache write failed for key '{key}': {e}") from e
        log.debug(f"Stored cache entry for '{key}' ({len(payload)} chars).")
        return CacheEntry(key=key, payload=payload, stored_at=stored_at)

    async def delete_by_key(self, key: str) -> None:
        log.debug(f"Clearing cache for key: {key}")
        try:
            await self._store.delete(key)
        except Exception as e:
            raise CacheError(f"Failed to delete cache entry '{key}': {e}") from e

    async def delete_all(self) -> None:
        log.info("Clearing all cache entries...")
        try:
            await self._store.clear()
        except Exception as e:
            raise CacheError(f"Failed to clear cache: {e}") from e

    @staticmethod
    def is_valid(
        entry: CacheEntry, ttl: timedelta | int, now: int | None = None
    ) -> bool:
        """
        Returns True while the entry is younger than the TTL.

        `ttl` is a timedelta or a number of milliseconds. An entry whose age is
        exactly the TTL is already stale.
        """
        ttl_ms = int(ttl.total_seconds() * 1000) if isinstance(ttl, timedelta) else ttl
        current = now_millis() if now is None else now
        return current - entry.stored_at < ttl_ms
