"""
Per-client request limiting kept in process memory.
Counters are not shared between server processes.
"""
import time
from collections import defaultdict
from threading import Lock
from typing import Tuple


class InMemoryRateLimiter:
    """Sliding-window limiter: at most `limit` hits per key within `window_seconds`."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        self._hits: dict = defaultdict(list)
        self._lock = Lock()

    def _cleanup(self, key: str, now: float):
        """Drop timestamps outside the window; forget the key once none are left."""
        cutoff = now - self.window_seconds
        recent = [ts for ts in self._hits.get(key, ()) if ts > cutoff]
        if recent:
            self._hits[key] = recent
        else:
            self._hits.pop(key, None)

    def hit(self, key: str) -> Tuple[bool, int]:
        """
        Record a request for `key` if it is within the limit.

        Returns: (allowed, remaining_count)
        """
        now = time.monotonic()
        with self._lock:
            self._cleanup(key, now)
            used = len(self._hits.get(key, ()))
            if used >= self.limit:
                return False, 0
            self._hits[key].append(now)
            return True, self.limit - used - 1

    def get_count(self, key: str) -> int:
        """Requests recorded for `key` within the current window."""
        with self._lock:
            self._cleanup(key, time.monotonic())
            return len(self._hits.get(key, ()))

    def reset(self):
        with self._lock:
            self._hits.clear()
