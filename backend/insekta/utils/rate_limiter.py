import threading
import time
from collections import defaultdict, deque
from insekta.config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW, API_RATE_LIMIT, API_RATE_WINDOW


class RateLimiter:
    """Sliding-window limiter keyed by client IP (login brute force, API flooding)"""
    def __init__(self, max_attempts: int = 5, window_seconds: int = 300):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._hits = defaultdict(deque)
        self._lock = threading.Lock()

    def _prune(self, identifier: str, now: float):
        hits = self._hits[identifier]
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()
        return hits

    def is_allowed(self, identifier: str) -> bool:
        """Record a hit; False when the identifier is over its budget"""
        now = time.monotonic()
        with self._lock:
            hits = self._prune(identifier, now)
            if len(hits) >= self.max_attempts:
                return False
            hits.append(now)
            return True

    def get_remaining_time(self, identifier: str) -> int:
        """Seconds until the oldest hit leaves the window"""
        now = time.monotonic()
        with self._lock:
            hits = self._prune(identifier, now)
            if len(hits) < self.max_attempts:
                return 0
            return max(0, int(hits[0] + self.window_seconds - now))

    def reset(self):
        with self._lock:
            self._hits.clear()


login_limiter = RateLimiter(max_attempts=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW)
api_limiter = RateLimiter(max_attempts=API_RATE_LIMIT, window_seconds=API_RATE_WINDOW)
