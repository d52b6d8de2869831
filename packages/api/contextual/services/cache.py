# This project was developed with assistance from AI tools.
"""Cache port and the in-process TTL implementation.

The orchestrator receives a ``CachePort``; hosts with a shared object cache
plug in their own implementation. ``MemoryCache`` is safe for concurrent
readers and writers within one process.
"""

import hashlib
import json
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol


class CachePort(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...


def make_cache_key(prefix: str, params: dict[str, Any]) -> str:
    """Stable fingerprint of ``params`` (key order does not matter)."""
    encoded = json.dumps(params, sort_keys=True, default=str, ensure_ascii=False)
    return f"{prefix}_{hashlib.sha256(encoded.encode()).hexdigest()}"


class MemoryCache:
    """Dict-backed TTL cache with a size bound.

    Expired entries are dropped on read, and every ``sweep_interval`` seconds
    a write sweeps all of them. When ``max_entries`` is reached the entry that
    expires first is evicted.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        *,
        max_entries: int = 4096,
        sweep_interval: float = 60.0,
    ) -> None:
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._max_entries = max(1, max_entries)
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval

    def set(self, key: str, value: Any, ttl: int) -> None:
        # ttl <= 0 disables caching for this write.
        if ttl <= 0:
            return
        with self._lock:
            now = self._clock()
            full = key not in self._entries and len(self._entries) >= self._max_entries
            if full or now >= self._next_sweep:
                self._sweep(now)
            if key not in self._entries and len(self._entries) >= self._max_entries:
                soonest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[soonest]
            self._entries[key] = (now + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
