"""Result Cache - bounded, time-limited, insertion-order eviction"""
import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog

from infrastructure import config

logger = structlog.get_logger(__name__)


def canonical_key(params: Dict[str, Any]) -> str:
    """Stable serialisation of request parameters.

    Keys are sorted, list values are sorted, and unset values (None or empty
    lists) are dropped, so logically identical requests share one key.
    """
    canonical = {}
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            value = sorted(str(v) for v in value)
        elif hasattr(value, "value"):
            value = value.value
        canonical[name] = value
    return json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    written_at: float


class ResultCache:
    """FIFO cache with TTL.

    When full, the oldest *inserted* entry is evicted, not the least recently
    used one, so a frequently read entry can be evicted before a cold one.
    """

    def __init__(
        self,
        ttl_seconds: float = config.SEARCH_CACHE_TTL_SECONDS,
        capacity: int = config.SEARCH_CACHE_CAPACITY,
        clock: Callable[[], float] = time.monotonic
    ):
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if self._clock() - entry.written_at > self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                logger.debug("Search cache entry expired", key=key)
                return None
            self.hits += 1
            return entry.payload

    def put(self, key: str, payload: Any) -> None:
        with self._lock:
            # A rewrite counts as a fresh insertion
            self._entries.pop(key, None)
            while len(self._entries) >= self.capacity:
                evicted_key, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Search cache eviction", key=evicted_key)
            self._entries[key] = CacheEntry(key=key, payload=payload, written_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
