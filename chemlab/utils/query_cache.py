"""Bounded in-process query cache with time-based expiry."""

import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from .logger import get_app_logger


DEFAULT_MAX_SIZE = 100
DEFAULT_TTL = 300


def make_cache_key(operation: str, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Build a deterministic cache key from an operation name and its parameters.

    Args:
        operation: Operation name, e.g. "chemicals" or "search_chemicals_acid"
        params: Query parameters

    Returns:
        Cache key string
    """
    serialized = json.dumps(params or {}, sort_keys=True, default=str)
    return f"{operation}_{serialized}"


class QueryCache:
    """
    Size-bounded cache where entries expire a fixed time after insertion.

    When full, the entry inserted earliest is evicted. Reads do not extend
    an entry's lifetime.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl: float = DEFAULT_TTL,
        name: str = "query",
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of entries
            ttl: Seconds an entry stays valid
            name: Name used in logs and stats
            clock: Time source returning seconds
        """
        self.max_size = max_size
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self.logger = get_app_logger()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or an expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, stored_at = entry
            if self._clock() - stored_at > self.ttl:
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return value

    def set(self, key: str, value: Any) -> None:
        """Store a value, evicting the oldest-inserted entry when full."""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self.logger.debug(f"[{self.name} cache] Evicted {evicted}")

            self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        self.logger.info(f"[{self.name} cache] Cleared")

    def size(self) -> int:
        """Number of stored entries, expired ones included until read."""
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Snapshot of size and hit counters."""
        with self._lock:
            return {
                "name": self.name,
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl": self.ttl,
                "hits": self._hits,
                "misses": self._misses,
            }
