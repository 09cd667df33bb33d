"""
In-memory TTL cache for engine results.

Simple interface:
    cache.get(key) -> value or None
    cache.set(key, value, ttl=None)

Entries expire lazily on read, or in bulk through clean(). Owned by whoever
constructs it; nothing here is module-level state.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from config import CACHE_TTL

logger = logging.getLogger(__name__)


def cache_key(symbol: str, interval: str) -> str:
    return f"quant:{symbol.upper()}:{interval}"


class ResultCache:
    def __init__(self, default_ttl: float = CACHE_TTL,
                 clock: Callable[[], datetime] = datetime.now):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, datetime, timedelta]] = {}

    def _expired(self, stored_at: datetime, ttl: timedelta, now: datetime) -> bool:
        return now - stored_at > ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at, ttl = entry
        if self._expired(stored_at, ttl, self._clock()):
            del self._entries[key]
            logger.debug(f"Cache expired: {key}")
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        seconds = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock(), timedelta(seconds=seconds))

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def clean(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        stale = [k for k, (_, ts, ttl) in self._entries.items() if self._expired(ts, ttl, now)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Cache cleaned {len(stale)} expired entries")
        return len(stale)

    def size(self) -> int:
        return len(self._entries)
