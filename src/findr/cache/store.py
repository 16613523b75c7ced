"""Result Cache — JSON-file-backed store for provider results with TTL expiry.

The whole cache lives in one versioned JSON document::

    {
      "version": 1,
      "entries": {
        "<key>": {"value": ..., "cachedAt": <epoch ms>, "expiresAt": <epoch ms>}
      }
    }

The file is loaded lazily, once per cache instance, into an in-memory table.
Every mutation rewrites the full file. Writes are serialized through a single
lock so two writes never overlap, and each write goes to a temporary file that
atomically replaces the previous one.

Cache problems never reach the caller: unreadable, malformed, or
wrong-version files load as empty, and failed writes are logged and skipped.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from findr.config.settings import DEFAULT_CACHE_TTL_MS

if TYPE_CHECKING:
    from findr.config.settings import CacheSettings

logger = logging.getLogger(__name__)

CACHE_FILE_VERSION = 1


def make_cache_key(provider_id: str, query: str, limit: int | None = None) -> str:
    """Build the cache key for one (provider, query, limit) triple."""
    return f"{provider_id}-{query}-{'' if limit is None else limit}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class CacheEntry(BaseModel):
    """A cached value with its bookkeeping timestamps (epoch ms)."""

    model_config = ConfigDict(populate_by_name=True)

    value: Any
    cached_at: int = Field(alias="cachedAt")
    expires_at: int | None = Field(default=None, alias="expiresAt")

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"value": self.value, "cachedAt": self.cached_at}
        if self.expires_at is not None:
            data["expiresAt"] = self.expires_at
        return data


class ResultCache:
    """Keyed, TTL-expiring, disk-persisted store.

    Args:
        path: Location of the JSON cache file.
        ttl_ms: Entry time-to-live in milliseconds. ``0`` or ``None`` disables
            expiry for entries that carry no explicit ``expiresAt``.
        clock: Returns the current time in epoch milliseconds.

    Example:
        >>> cache = ResultCache(Path("/tmp/findr/search-cache.json"))
        >>> await cache.set(make_cache_key("mock", "tui"), [{"title": "..."}])
        >>> await cache.get(make_cache_key("mock", "tui"))
        [{'title': '...'}]
    """

    def __init__(
        self,
        path: str | Path,
        *,
        ttl_ms: int | None = DEFAULT_CACHE_TTL_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.path = Path(path)
        self.ttl_ms = ttl_ms if ttl_ms and ttl_ms > 0 else None
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> ResultCache:
        return cls(settings.resolve_path(), ttl_ms=settings.ttl_ms)

    # ── Public API ──

    async def get(self, key: str) -> Any | None:
        """Return a copy of the cached value, or None if absent or expired."""
        await self._ensure_loaded()
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            await self._persist()
            return None

        return copy.deepcopy(entry.value)

    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` and persist the cache.

        ``value`` must be JSON-serializable; anything else is logged and
        skipped.
        """
        await self._ensure_loaded()
        try:
            stored = json.loads(json.dumps(value))
        except (TypeError, ValueError):
            logger.warning("Refusing to cache non-JSON value for key: %s", key, exc_info=True)
            return

        now = self._clock()
        self._entries[key] = CacheEntry(
            value=stored,
            cached_at=now,
            expires_at=now + self.ttl_ms if self.ttl_ms else None,
        )
        await self._persist()

    async def delete(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        await self._ensure_loaded()
        if self._entries.pop(key, None) is None:
            return False
        await self._persist()
        return True

    async def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        await self._ensure_loaded()
        removed = len(self._entries)
        self._entries.clear()
        await self._persist()
        logger.info("Cleared %d cache entries", removed)
        return removed

    async def prune(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        await self._ensure_loaded()
        removed = self._prune_expired()
        if removed:
            await self._persist()
        return removed

    async def size(self) -> int:
        await self._ensure_loaded()
        return len(self._entries)

    # ── Internals ──

    def _is_expired(self, entry: CacheEntry, now: int) -> bool:
        if entry.expires_at is not None:
            return entry.expires_at <= now
        if self.ttl_ms:
            return entry.cached_at + self.ttl_ms <= now
        return False

    def _prune_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            await self._load_from_disk()
            self._loaded = True

    async def _load_from_disk(self) -> None:
        if not await aiofiles.os.path.exists(self.path):
            return

        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                document = json.loads(await f.read())
        except (OSError, ValueError):
            logger.warning("Failed to load search cache from %s", self.path, exc_info=True)
            return

        version = document.get("version") if isinstance(document, dict) else None
        if isinstance(version, bool) or version != CACHE_FILE_VERSION:
            logger.info("Ignoring search cache %s with unsupported version %r", self.path, version)
            return

        entries = document.get("entries")
        if not isinstance(entries, dict):
            return

        for key, raw_entry in entries.items():
            try:
                self._entries[key] = CacheEntry.model_validate(raw_entry)
            except ValidationError:
                logger.debug("Skipping malformed cache entry: %s", key)

        logger.debug("Loaded %d cache entries from %s", len(self._entries), self.path)

        if self._prune_expired():
            await self._persist()

    async def _persist(self) -> None:
        async with self._write_lock:
            payload = {
                "version": CACHE_FILE_VERSION,
                "entries": {key: entry.to_json() for key, entry in self._entries.items()},
            }
            tmp_path = self.path.with_name(f"{self.path.name}.{uuid.uuid4().hex[:8]}.tmp")
            try:
                serialized = json.dumps(payload, ensure_ascii=False, indent=2)
                await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
                async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                    await f.write(serialized)
                await aiofiles.os.replace(tmp_path, self.path)
            except (OSError, TypeError, ValueError):
                logger.warning("Failed to persist search cache to %s", self.path, exc_info=True)
                await self._discard(tmp_path)

    @staticmethod
    async def _discard(path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        except OSError:
            logger.debug("Could not remove temporary cache file %s", path, exc_info=True)
