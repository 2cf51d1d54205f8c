from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Callable, Optional, Protocol

from cachetools import TLRUCache

from ..core.constants import DEFAULT_CACHE_MAX_ENTRIES


class AnalyticsCache(Protocol):
    """Pull-through cache used by the analytics service. Values must be JSON serializable."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


def fingerprint(operation: str, **params: Any) -> str:
    """Deterministic key for ``operation`` and its parameters (order of kwargs does not matter)."""
    payload = json.dumps(params, sort_keys=True, default=str)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()[:32]
    return f"{operation}:{digest}"


class NullCache:
    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        return None

    def clear(self) -> None:
        return None


class InMemoryCache:
    """Process-local TTL cache backed by ``cachetools.TLRUCache``.

    Each entry expires ``ttl_seconds`` after it was set. Expired entries are
    purged on every write, and once ``maxsize`` entries are held the one
    least recently used is evicted. Values are stored serialized so callers
    never share mutable structures with the cache.
    """

    def __init__(self, *, maxsize: int = DEFAULT_CACHE_MAX_ENTRIES, clock: Callable[[], float] = time.monotonic):
        self._items: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._items.get(key)
        if item is None:
            return None
        return json.loads(item[1])

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        payload = json.dumps(value)
        with self._lock:
            self._items.expire()
            self._items[key] = (ttl_seconds, payload)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            self._items.expire()
            return len(self._items)


def _expires_at(key: str, item: tuple[int, str], now: float) -> float:
    return now + item[0]
