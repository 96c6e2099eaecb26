# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from lionherd_core.libs.concurrency import Lock, current_time

__all__ = ("AcquireResult", "RateLimitConfig", "SlidingWindowRateLimiter")

logger = logging.getLogger(__name__)

ONE_MINUTE = 60.0


@dataclass(slots=True)
class RateLimitConfig:
    """Sliding window rate limiting configuration."""

    max_requests: int  # Admissions allowed per window
    window: float = ONE_MINUTE  # Window length in seconds

    def __post_init__(self):
        if self.max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if self.window <= 0:
            raise ValueError("window must be > 0")


@dataclass(slots=True, frozen=True)
class AcquireResult:
    """Outcome of a single admission check.

    Attributes:
        allowed: Whether the request was admitted (and recorded)
        wait_time: Seconds until the oldest admission leaves the window.
            Only set when the request was rejected.
    """

    allowed: bool
    wait_time: float | None = None


class SlidingWindowRateLimiter:
    """Admits at most `max_requests` requests in any trailing window.

    Admission instants are kept in arrival order; entries older than the
    window are pruned on every check, so the deque never holds more than
    `max_requests` timestamps.
    """

    def __init__(
        self,
        config: RateLimitConfig | int,
        *,
        clock: Callable[[], float] | None = None,
    ):
        if isinstance(config, int):
            config = RateLimitConfig(max_requests=config)
        self.max_requests = config.max_requests
        self.window = config.window
        self._clock = clock or current_time
        self._timestamps: deque[float] = deque()
        self._lock = Lock()

    @property
    def in_window(self) -> int:
        """Number of admissions currently retained."""
        return len(self._timestamps)

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    async def try_acquire(self) -> AcquireResult:
        """Admit the request if the window has room. Never waits.

        Rejected attempts are not recorded.
        """
        async with self._lock:
            now = self._clock()
            self._prune(now)

            if len(self._timestamps) >= self.max_requests:
                wait_time = self.window - (now - self._timestamps[0])
                logger.warning(
                    f"Rate limit reached ({self.max_requests}/{self.window:.0f}s), "
                    f"next slot in {wait_time:.2f}s"
                )
                return AcquireResult(allowed=False, wait_time=wait_time)

            self._timestamps.append(now)
            logger.debug(
                f"Admitted request, {len(self._timestamps)}/{self.max_requests} in window"
            )
            return AcquireResult(allowed=True)

    def to_dict(self) -> dict:
        """Serialize limiter configuration and current occupancy."""
        return {
            "max_requests": self.max_requests,
            "window": self.window,
            "in_window": len(self._timestamps),
        }
