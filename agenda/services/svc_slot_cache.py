"""Short-lived cache of resolved days.

Pattern: (scope, professional_id, yyyy-MM-dd)-keyed cache with TTL. The scope
names the tenant the day was fetched for (the tenant id on internal routes,
the public slug on booking routes), so a day is only ever served back to the
tenant whose upstream call produced it. Entries are dropped when they go
stale, when a booking for that day succeeds, and for every day of a
professional when their rules change.
"""
import threading
import time
from datetime import date
from typing import Callable, Dict, Optional, Tuple, Union

from agenda.configuration.config import Config
from agenda.models.mod_availability import DaySlots

CacheKey = Tuple[str, str, str]


class SlotCache:
    def __init__(self, ttl: float = 30, max_size: int = 1000, clock: Callable[[], float] = time.monotonic):
        """
        Initialize slot cache.

        Args:
            ttl: Staleness window in seconds (default: 30 seconds, the
                 refresh interval of the booking screens)
            max_size: Maximum entries before the oldest are evicted
            clock: Monotonic time source, replaceable in tests
        """
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[DaySlots, float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _day_key(day: Union[date, str]) -> str:
        return day.isoformat() if isinstance(day, date) else str(day)[:10]

    @staticmethod
    def _key(scope: str, professional_id: str, day: Union[date, str]) -> CacheKey:
        return (str(scope), str(professional_id), SlotCache._day_key(day))

    def _is_expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at > self.ttl

    def get(self, scope: str, professional_id: str, day: Union[date, str]) -> Optional[DaySlots]:
        """Cached day for that scope, or None if missing or stale."""
        key = self._key(scope, professional_id, day)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            day_slots, stored_at = entry
            if self._is_expired(stored_at):
                del self._entries[key]
                return None
            return day_slots

    def set(self, scope: str, day_slots: DaySlots):
        key = self._key(scope, day_slots.professional_id, day_slots.date)
        with self._lock:
            self._entries[key] = (day_slots, self._clock())
            self._evict_if_needed()

    def invalidate(self, professional_id: str, day: Union[date, str]) -> int:
        """Drop one day of a professional in every scope. Returns how many were dropped."""
        professional_id, day_key = str(professional_id), self._day_key(day)
        with self._lock:
            keys = [key for key in self._entries if key[1:] == (professional_id, day_key)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def invalidate_professional(self, professional_id: str) -> int:
        """Drop every cached day of a professional. Returns how many were dropped."""
        professional_id = str(professional_id)
        with self._lock:
            keys = [key for key in self._entries if key[1] == professional_id]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        with self._lock:
            return self._drop_expired()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _drop_expired(self) -> int:
        expired = [key for key, (_, stored_at) in self._entries.items() if self._is_expired(stored_at)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_if_needed(self):
        if len(self._entries) <= self.max_size:
            return
        self._drop_expired()
        if len(self._entries) > self.max_size:
            oldest = sorted(self._entries.items(), key=lambda item: item[1][1])
            for key, _ in oldest[:len(self._entries) - self.max_size]:
                del self._entries[key]


# Singleton instance
slot_cache = SlotCache(ttl=Config.SLOT_CACHE_TTL_SECONDS, max_size=Config.SLOT_CACHE_MAX_SIZE)
