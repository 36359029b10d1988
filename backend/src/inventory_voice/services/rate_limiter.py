"""Sliding-window admission control for outbound oracle calls."""

import threading
import time
from typing import Callable

from inventory_voice.errors import RateLimitedError
from inventory_voice.logging_config import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Admit at most ``max_requests`` calls per ``window_seconds``.

    Safe for concurrent callers: a watchdog may read ``remaining_requests``
    while a turn is acquiring.
    """

    def __init__(
        self,
        max_requests: int = 15,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._timestamps: list[float] = []
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def _prune(self, now: float) -> None:
        """Drop timestamps outside the window. Must be called with lock held."""
        window_start = now - self._window
        self._timestamps = [t for t in self._timestamps if t >= window_start]

    def try_acquire(self) -> bool:
        """Record a request and return True, or return False when the budget is spent."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._timestamps) >= self._max_requests:
                logger.warning(
                    "rate_limit_reached",
                    requests=len(self._timestamps),
                    max_requests=self._max_requests,
                )
                return False
            self._timestamps.append(now)
            return True

    def acquire(self) -> None:
        """Like try_acquire, but raise RateLimitedError when the budget is spent."""
        if not self.try_acquire():
            raise RateLimitedError(
                "Rate limit reached",
                context={"max_requests": self._max_requests, "window_seconds": self._window},
            )

    def remaining_requests(self) -> int:
        with self._lock:
            self._prune(self._clock())
            return self._max_requests - len(self._timestamps)
