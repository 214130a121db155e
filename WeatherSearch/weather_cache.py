"""
In-memory TTL cache for weather readings.

Keeps repeated lookups for the same coordinates from reaching the weather
API more than once per freshness window.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from weather_data import WeatherReading

WEATHER_CACHE_TTL_SECONDS = 120


def cache_key(latitude: str, longitude: str) -> str:
    """
    Build the cache key for a pair of coordinates.

    The coordinates are used exactly as given, so "50.20" and "50.200" are
    different keys.
    """
    return f"LAT:{latitude} LON: {longitude}"


@dataclass(frozen=True)
class _CacheEntry:
    reading: WeatherReading
    fetched_at: float


class WeatherCache:
    """
    Time-based cache of weather readings keyed by coordinate string.

    All reads and writes go through one lock, so the cache can be shared by
    coroutines on the event loop and by worker threads.
    """

    def __init__(
        self,
        ttl_seconds: float = WEATHER_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[WeatherReading]:
        """Return the reading for key if it is younger than the TTL, else None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.fetched_at < self.ttl_seconds:
                return entry.reading
            # expired, drop it lazily
            del self._entries[key]
            return None

    def put(self, key: str, reading: WeatherReading) -> None:
        """Store reading under key, replacing any previous entry."""
        with self._lock:
            self._entries[key] = _CacheEntry(reading=reading, fetched_at=self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
