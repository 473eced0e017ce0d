"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards check-and-increment for every key.
- Bounded: expired windows are swept lazily and the table never holds more
  than ``max_keys`` clients.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from code_commenter.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    Each client's window starts with its first request and lasts
    ``window_seconds``. Within a window at most ``limit`` requests are
    allowed; refused requests do not extend or consume the window.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        max_keys: int = 10000,
        sweep_interval_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed requests per window.
            window_seconds: Size of the window in seconds.
            max_keys: Maximum number of tracked clients.
            sweep_interval_seconds: Minimum time between expired-window sweeps.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If any numeric argument is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if max_keys < 1:
            raise ValueError("max_keys must be >= 1")
        if sweep_interval_seconds < 1:
            raise ValueError("sweep_interval_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._max_keys = max_keys
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._lock = threading.RLock()
        # Insertion order == window creation order, oldest first.
        self._state_by_key: OrderedDict[str, _WindowState] = OrderedDict()
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def check(self, key: str) -> RateLimitResult:
        """Check and consume one request from ``key``'s budget.

        Args:
            key: Unique identifier for rate limiting.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            self._maybe_sweep_locked(now)

            state = self._state_by_key.get(key)
            if state is None or now > state.reset_at:
                self._state_by_key.pop(key, None)
                state = _WindowState(count=1, reset_at=now + self._window_seconds)
                self._state_by_key[key] = state
                self._evict_if_over_capacity_locked()
                return self._allowed(state)

            if state.count >= self._limit:
                return RateLimitResult(
                    allowed=False,
                    limit=self._limit,
                    remaining=0,
                    reset_at=state.reset_at,
                    retry_after_seconds=max(0, math.ceil(state.reset_at - now)),
                )

            state.count += 1
            return self._allowed(state)

    def reset(self) -> None:
        """Forget every tracked window."""
        with self._lock:
            self._state_by_key.clear()
            self._last_sweep = self._clock()

    def _allowed(self, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=state.reset_at,
            retry_after_seconds=None,
        )

    def _maybe_sweep_locked(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        expired = [k for k, s in self._state_by_key.items() if now > s.reset_at]
        for key in expired:
            del self._state_by_key[key]
        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"evicted": len(expired), "tracked": len(self._state_by_key)},
            )

    def _evict_if_over_capacity_locked(self) -> None:
        while len(self._state_by_key) > self._max_keys:
            # popitem(last=False) drops the oldest window
            self._state_by_key.popitem(last=False)
