"""InstanceCache — process-lifetime store for lazily built instances."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

logger = logging.getLogger(__name__)


class InstanceCache:
    """Thread-safe get-or-create store that never evicts.

    Cached reads are plain dictionary lookups. On a miss the factory runs
    *outside* the lock, so concurrent first callers may each build an
    instance; the first one stored wins and every caller receives it.
    """

    def __init__(self) -> None:
        self._instances: dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the retained instance for *key*, building it on first use."""
        try:
            return self._instances[key]
        except KeyError:
            pass

        candidate = factory()
        with self._lock:
            instance = self._instances.setdefault(key, candidate)
        if instance is candidate:
            logger.debug("Cached instance for %s", _describe(key))
        else:
            logger.debug("Discarded duplicate instance for %s", _describe(key))
        return instance

    def __contains__(self, key: object) -> bool:
        return key in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def clear(self) -> None:
        """Drop every cached instance (testing utility)."""
        with self._lock:
            self._instances.clear()


def _describe(key: Hashable) -> str:
    return getattr(key, "__qualname__", None) or repr(key)
