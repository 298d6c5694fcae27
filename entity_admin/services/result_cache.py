"""
Result Cache

Short-lived in-memory cache for list and detail results, keyed by the full
request parameter tuple. Concurrent lookups of the same key share a single
in-flight fetch. Invalidation bumps an epoch so a fetch that was already
running when the cache was invalidated does not repopulate it.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple, TypeVar

from entity_admin.config.settings import settings
from entity_admin.schemas.table_state import ListParams

logger = logging.getLogger(__name__)

T = TypeVar("T")
_MISSING = object()

LIST = "list"
DETAIL = "detail"


def _freeze(value: Any) -> Hashable:
    if isinstance(value, (list, tuple, set)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    return value


def list_key(slug: str, params: ListParams) -> Tuple:
    """(list, slug, page, limit, search, sorting, filters)"""
    return (
        LIST,
        slug,
        params.page,
        params.limit,
        params.search or "",
        tuple((s.field, s.direction.value) for s in params.sorting),
        _freeze(params.filters),
    )


def detail_key(slug: str, record_id: Any) -> Tuple:
    return (DETAIL, slug, str(record_id))


class ResultCache:
    """TTL cache with in-flight request coalescing."""

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._ttl = settings.LIST_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._inflight: Dict[Hashable, asyncio.Task] = {}
        self._epoch = 0

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    async def get_or_fetch(self, key: Hashable, fetcher: Callable[[], Awaitable[T]]) -> T:
        """Return a fresh cached value for ``key`` or fetch it, sharing concurrent fetches."""
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"Cache hit: {key}")
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, fetcher, self._epoch))
            self._inflight[key] = task
        else:
            logger.debug(f"Joining in-flight fetch: {key}")
        return await asyncio.shield(task)

    async def _fetch(self, key: Hashable, fetcher: Callable[[], Awaitable[T]], epoch: int) -> T:
        try:
            value = await fetcher()
            if epoch == self._epoch:
                self.set(key, value)
            else:
                logger.debug(f"Cache invalidated during fetch, not storing: {key}")
            return value
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def invalidate(self, *prefix: Any) -> int:
        """
        Drop every entry whose key starts with ``prefix``.

        Returns:
            Number of cached entries removed
        """
        self._epoch += 1
        size = len(prefix)
        stale = [k for k in self._entries if isinstance(k, tuple) and k[:size] == prefix]
        for key in stale:
            del self._entries[key]
        for key in [k for k in self._inflight if isinstance(k, tuple) and k[:size] == prefix]:
            # the running fetch finishes for its current awaiters but is no longer shared
            del self._inflight[key]
        logger.debug(f"Invalidated {len(stale)} cache entries for {prefix}")
        return len(stale)

    def invalidate_list(self, slug: str) -> int:
        return self.invalidate(LIST, slug)

    def invalidate_detail(self, slug: str, record_id: Any) -> int:
        return self.invalidate(*detail_key(slug, record_id))

    def clear(self) -> None:
        self._epoch += 1
        self._entries.clear()
        self._inflight.clear()

    def __len__(self) -> int:
        return len(self._entries)
