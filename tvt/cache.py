"""In-process TTL cache for provider responses.

One instance is owned by the process (see tvt.data_fetcher.get_fetcher) and
injected into the fetcher; tests pass their own instance with a fake clock.
"""

import threading
import time
from typing import Any, Callable, Hashable, Optional


class TTLCache:
    """Thread-safe key/value cache where every entry carries its own lifetime."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._entries: dict[Hashable, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def put(self, key: Hashable, value: Any, ttl: float) -> None:
        """Store a value for ttl seconds."""
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
