"""Thread-safe in-memory TTL cache."""

from __future__ import annotations

import threading
import time
from typing import Any


class TTLCache:
    """Simple dict-based cache with per-key TTL expiry."""

    def __init__(self, default_ttl: float = 300.0) -> None:
        self._store: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._default_ttl = default_ttl

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() > expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        with self._lock:
            expires_at = time.monotonic() + (ttl if ttl is not None else self._default_ttl)
            self._store[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns count removed."""
        with self._lock:
            keys = [k for k in self._store if k.startswith(prefix)]
            for k in keys:
                del self._store[k]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


# Household caches, keyed by household id
mutual_likes_cache = TTLCache(default_ttl=300)   # 5 min
activity_cache = TTLCache(default_ttl=120)       # 2 min
stats_cache = TTLCache(default_ttl=600)          # 10 min
map_cache = TTLCache(default_ttl=86400)          # 24 hr

HOUSEHOLD_CACHES = (mutual_likes_cache, activity_cache, stats_cache)


def clear_all_caches() -> None:
    for cache in (*HOUSEHOLD_CACHES, map_cache):
        cache.clear()
