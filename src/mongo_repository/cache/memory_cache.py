"""
# In-Process Memory Cache

Bounded, thread-safe key/value cache used by the cached repositories. It is process-local and
never shared across processes.

## Expiry

An entry expires when any of these hold (all values from `CacheOptions`):

| Policy | Condition |
|---|---|
| Sliding | Not read for `sliding_expiration_seconds`. |
| Absolute | Stored more than `absolute_expiration_seconds` ago. |
| TTL | Stored more than `ttl_seconds` ago (`0` disables it). |

Expired entries are dropped lazily on access and by a sweep that runs at most once every
`expiration_scan_frequency_ms`.

## Capacity

At most `max_item_count` entries. When full, expired entries are purged first and then the least
recently used entries are evicted.

`None` is a valid cached value; `try_get` returns `(hit, value)` to tell it apart from a miss.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable

from mongo_repository.config import CacheOptions
from mongo_repository.managers.logging_manager import get_logger

logger = get_logger(prefix="[Cache]")


@runtime_checkable
class Cache(Protocol):
    def try_get(self, key: str) -> Tuple[bool, Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def invalidate(self, key: str) -> None: ...


class _CacheEntry:
    __slots__ = ("value", "created_at", "last_access")

    def __init__(self, value: Any, now: float):
        self.value = value
        self.created_at = now
        self.last_access = now


class MemoryCache:
    """
    LRU cache with sliding, absolute and TTL expiry.

    Args:
        options (`Optional[CacheOptions]`): Expiry policy and capacity; read from settings when omitted.
        clock (`Callable[[], float]`): Monotonic time source in seconds, injectable for tests.
    """

    def __init__(self, options: Optional[CacheOptions] = None, clock: Callable[[], float] = time.monotonic):
        self.options = options or CacheOptions.from_settings()
        self._clock = clock
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._last_scan = clock()

    @property
    def enabled(self) -> bool:
        return not self.options.disable_cache

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: _CacheEntry, now: float) -> bool:
        if now - entry.last_access >= self.options.sliding_expiration_seconds:
            return True
        if now - entry.created_at >= self.options.absolute_expiration_seconds:
            return True
        return self.options.ttl_seconds > 0 and now - entry.created_at >= self.options.ttl_seconds

    def _purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _scan_if_due(self, now: float) -> None:
        if (now - self._last_scan) * 1000 < self.options.expiration_scan_frequency_ms:
            return
        self._last_scan = now
        purged = self._purge_expired(now)
        if purged:
            logger.debug("Expired %d cache entries", purged)

    def _enforce_capacity(self, now: float) -> None:
        if len(self._entries) <= self.options.max_item_count:
            return
        self._purge_expired(now)
        while len(self._entries) > self.options.max_item_count:
            key, _ = self._entries.popitem(last=False)
            logger.debug("Evicted least recently used cache entry %s", key)

    def try_get(self, key: str) -> Tuple[bool, Any]:
        if not self.enabled:
            return False, None
        with self._lock:
            now = self._clock()
            self._scan_if_due(now)
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            if self._is_expired(entry, now):
                del self._entries[key]
                return False, None
            entry.last_access = now
            self._entries.move_to_end(key)
            return True, entry.value

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            now = self._clock()
            self._scan_if_due(now)
            self._entries[key] = _CacheEntry(value, now)
            self._entries.move_to_end(key)
            self._enforce_capacity(now)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
