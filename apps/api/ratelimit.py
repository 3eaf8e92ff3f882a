import threading
import time
from typing import Callable, Optional

from jobfeed.settings import settings

# Stale windows are swept once this many clients are tracked
_SWEEP_AT = 10_000


class FixedWindowRateLimiter:
    """Per-client request counter over fixed windows; limit <= 0 disables it."""

    def __init__(
        self,
        limit: int,
        window_s: float = 60.0,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_s = window_s
        self._now = now
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Optional[float]:
        """Count one request for key. Returns seconds until the window resets when over the limit."""
        if self.limit <= 0:
            return None
        with self._lock:
            now = self._now()
            if len(self._windows) >= _SWEEP_AT:
                self._windows = {
                    k: w for k, w in self._windows.items() if now - w[0] < self.window_s
                }
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_s:
                started, count = now, 0
            if count >= self.limit:
                return self.window_s - (now - started)
            self._windows[key] = (started, count + 1)
            return None


def build_rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(limit=settings.RATE_LIMIT_REQUESTS, window_s=settings.RATE_LIMIT_WINDOW_S)
