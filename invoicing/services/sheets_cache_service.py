"""
In-process read cache for spreadsheet ranges.

Entries expire after a TTL and are evicted least-recently-used once the cache
is full. Any write to a spreadsheet invalidates every cached range of that
spreadsheet.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


class SheetsCacheService:
    """
    TTL + LRU cache of sheet values grids.

    Keys are ``(principal, spreadsheet_id, range_name)`` so data read with
    one caller's credentials is never served to another caller.

    Example:
        >>> cache = SheetsCacheService(ttl_seconds=60, max_size=100)
        >>> values = cache.get_or_load(
        ...     "user-hash", "spreadsheet-id", "Clients!A:Z",
        ...     lambda: sheets.read_values("spreadsheet-id", "Clients!A:Z"),
        ... )
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_size: int = 200,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.enabled = enabled
        self._clock = clock

        self._entries: "OrderedDict[CacheKey, Tuple[float, List[List[Any]]]]" = (
            OrderedDict()
        )
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0, "invalidations": 0}

    def get(self, principal: str, spreadsheet_id: str, range_name: str) -> Optional[List[List[Any]]]:
        """Return cached values, or None when absent or expired."""
        if not self.enabled:
            return None

        key = (principal, spreadsheet_id, range_name)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            stored_at, values = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self._stats["misses"] += 1
                return None

            self._entries.move_to_end(key)
            self._stats["hits"] += 1
            return values

    def put(
        self, principal: str, spreadsheet_id: str, range_name: str, values: List[List[Any]]
    ) -> None:
        if not self.enabled:
            return

        key = (principal, spreadsheet_id, range_name)
        with self._lock:
            self._entries[key] = (self._clock(), values)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug(f"Evicted cache entry {evicted[1]}:{evicted[2]}")

    def get_or_load(
        self,
        principal: str,
        spreadsheet_id: str,
        range_name: str,
        loader: Callable[[], List[List[Any]]],
    ) -> List[List[Any]]:
        """Return cached values or call ``loader`` and cache its result."""
        values = self.get(principal, spreadsheet_id, range_name)
        if values is not None:
            logger.debug(f"Cache hit for {spreadsheet_id}:{range_name}")
            return values

        values = loader()
        self.put(principal, spreadsheet_id, range_name, values)
        return values

    def invalidate_spreadsheet(self, spreadsheet_id: str) -> int:
        """Drop every cached range of a spreadsheet, for all principals."""
        with self._lock:
            keys = [k for k in self._entries if k[1] == spreadsheet_id]
            for key in keys:
                del self._entries[key]
            self._stats["invalidations"] += len(keys)

        if keys:
            logger.debug(f"Invalidated {len(keys)} cached ranges of {spreadsheet_id}")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_cache_statistics(self) -> Dict[str, Any]:
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                "enabled": self.enabled,
                "entries": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hit_rate_percent": round(self._stats["hits"] / total * 100, 2)
                if total
                else 0.0,
                **self._stats,
            }


_cache: Optional[SheetsCacheService] = None


def get_sheets_cache(config=None) -> SheetsCacheService:
    """Get the process-wide cache, creating it from configuration on first use."""
    global _cache
    if _cache is None:
        if config is None:
            from invoicing.config import get_config

            config = get_config()
        _cache = SheetsCacheService(
            ttl_seconds=config.cache_ttl_seconds,
            max_size=config.cache_max_size,
            enabled=config.enable_sheets_cache,
        )
    return _cache


def reset_sheets_cache() -> None:
    """Discard the process-wide cache (used by tests and config reloads)."""
    global _cache
    _cache = None
