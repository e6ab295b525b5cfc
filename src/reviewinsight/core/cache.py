"""In-memory expiring key/value store."""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .constants import CacheConstants

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class TTLCache:
    """Expiring map with a fixed TTL per entry.

    Expired entries are purged lazily on access. With `max_entries` set the
    cache also evicts the least recently used entry on insert; without it the
    cache grows until entries expire.

    Not thread-safe. Callers sharing one instance across threads must
    serialize access themselves.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic,
                 max_entries: Optional[int] = None):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = float(ttl_seconds)
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def _expired(self, entry: CacheEntry) -> bool:
        return self._clock() > entry.expires_at

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            logger.debug(f"Cache entry expired: {key[:CacheConstants.CACHE_KEY_LENGTH]}")
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._live_entry(key)
        if entry is None:
            return default
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(key, value, self._clock() + self.ttl)
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache entry evicted: {evicted[:CacheConstants.CACHE_KEY_LENGTH]}")

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self):
        return [k for k, e in self._entries.items() if not self._expired(e)]

    @property
    def size(self) -> int:
        """Number of entries that have not expired."""
        return sum(1 for e in self._entries.values() if not self._expired(e))

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return self.size
