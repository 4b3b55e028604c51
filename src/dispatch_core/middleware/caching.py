"""CachingMiddleware — returns stored results for repeated identical messages."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable

    from ..dispatch.context import InvocationContext

logger = logging.getLogger("dispatch_core.middleware")


@dataclass
class _CacheEntry:
    value: Any
    created_at: float
    last_accessed: float


class ResultCache:
    """Thread-safe result store owned by the hosting application.

    Entries expire ``ttl`` seconds after creation, or after the last hit
    when ``sliding`` is set. Expired entries are swept once the store grows
    past ``max_entries``.
    """

    def __init__(
        self,
        *,
        ttl: float = 300.0,
        sliding: bool = False,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self.ttl = ttl
        self.sliding = sliding
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry] = {}
        self._lock = threading.Lock()

    def _is_expired(self, entry: _CacheEntry, now: float) -> bool:
        anchor = entry.last_accessed if self.sliding else entry.created_at
        return now - anchor > self.ttl

    def _purge_expired(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for k in expired:
            del self._entries[k]

    def get(self, key: Hashable) -> tuple[bool, Any]:
        """Return ``(hit, value)`` for *key*."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            if self._is_expired(entry, now):
                del self._entries[key]
                return False, None
            entry.last_accessed = now
            return True, entry.value

    def set(self, key: Hashable, value: Any) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = _CacheEntry(value, now, now)
            if len(self._entries) > self.max_entries:
                self._purge_expired(now)

    def invalidate(self, key: Hashable) -> None:
        """Remove a single entry, if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of live entries; expired ones are dropped first."""
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            return len(self._entries)


_TRACING_FIELDS = frozenset({"message_id", "correlation_id", "causation_id"})


def message_cache_key(message: Any) -> Hashable:
    """Key equal messages alike.

    Pydantic messages are keyed by their JSON form without tracing metadata,
    so two ``GetOrder(order_id=1)`` instances share an entry. Anything else
    is used as-is and must be hashable.
    """
    if isinstance(message, BaseModel):
        return (type(message), message.model_dump_json(exclude=set(_TRACING_FIELDS)))
    return message


class CachingMiddleware:
    """Caches handler results keyed by (handler name, message key).

    Messages without a hashable key pass straight through. The store is
    injected so that the application owns and can clear it::

        middleware.register(CachingMiddleware, order=100, explicit_only=True)
        services.register(CachingMiddleware, CachingMiddleware(ResultCache(ttl=60)))
    """

    def __init__(
        self,
        cache: ResultCache | None = None,
        *,
        key: Callable[[Any], Hashable] = message_cache_key,
    ) -> None:
        self._cache = cache if cache is not None else ResultCache()
        self._key = key

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def key_for(self, message: Any, handler_name: str) -> Hashable:
        return (handler_name, self._key(message))

    async def execute(
        self,
        message: Any,
        context: InvocationContext,
        call_next: Callable[[], Awaitable[Any]],
    ) -> Any:
        key = self.key_for(message, context.handler.name)
        try:
            hit, value = self._cache.get(key)
        except TypeError:
            logger.debug("%s is not hashable; not cached", type(message).__name__)
            return await call_next()

        if hit:
            logger.debug("Cache HIT for %s", type(message).__name__)
            return value

        logger.debug("Cache MISS for %s, executing handler", type(message).__name__)
        value = await call_next()
        self._cache.set(key, value)
        return value
