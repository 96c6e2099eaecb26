# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import math
import random
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from lionherd_core.errors import ConnectionError
from lionherd_core.libs.concurrency import Lock, current_time, sleep

__all__ = (
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "RetryConfig",
    "backoff_delay",
    "retry_with_backoff",
)

T = TypeVar("T")
logger = logging.getLogger(__name__)

# Most recent state transitions kept in CircuitBreaker.metrics
STATE_HISTORY_LIMIT = 100


class CircuitState(Enum):
    """Circuit breaker states.

    Values:
        CLOSED: Normal operation, requests pass through
        OPEN: Service failing, rejecting requests immediately
        HALF_OPEN: Probing recovery, one failure reopens the circuit
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(ConnectionError):
    """Exception raised when a circuit breaker is open.

    Inherits from ConnectionError as circuit breaker prevents connections
    to failing services, conceptually similar to connection unavailability.
    """

    default_message = "Circuit breaker is open"
    default_retryable = True

    def __init__(
        self,
        message: str | None = None,
        *,
        retry_after: float | None = None,
        state: CircuitState = CircuitState.OPEN,
        next_attempt_time: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize with message and the breaker's recovery estimate.

        Args:
            message: Error message (uses default_message if None)
            retry_after: Seconds until the breaker will let a trial call through
            state: Breaker state at the time of rejection
            next_attempt_time: Clock value at which probing resumes
            details: Additional context dict
        """
        details = dict(details or {})
        details["state"] = state.value
        if retry_after is not None:
            details["retry_after"] = retry_after

        super().__init__(message=message, details=details, retryable=True)
        self.retry_after = retry_after
        self.state = state
        self.next_attempt_time = next_attempt_time


class CircuitBreaker:
    """Fail-fast circuit breaker for service resilience.
    States: CLOSED → OPEN → HALF_OPEN → CLOSED (or back to OPEN)."""

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30.0,
        success_threshold: int = 2,
        excluded_exceptions: set[type[Exception]] | None = None,
        name: str = "default",
        *,
        clock: Callable[[], float] | None = None,
    ):
        """Initialize circuit breaker.

        Args:
            failure_threshold: Consecutive CLOSED failures that open the circuit
            reset_timeout: Seconds to stay OPEN before probing (OPEN → HALF_OPEN)
            success_threshold: Consecutive HALF_OPEN successes that close the circuit
            excluded_exceptions: Exception types that never count as failures
            name: Label used in logs and errors
            clock: Monotonic time source in seconds
        """
        if failure_threshold <= 0:
            raise ValueError("failure_threshold must be > 0")
        if reset_timeout <= 0:
            raise ValueError("reset_timeout must be > 0")
        if success_threshold <= 0:
            raise ValueError("success_threshold must be > 0")

        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.success_threshold = success_threshold
        self.excluded_exceptions = excluded_exceptions or set()
        self.name = name
        self._clock = clock or current_time

        # State variables
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = 0.0
        self.next_attempt_time = 0.0
        self._lock = Lock()

        # Metrics
        self._metrics = {
            "success_count": 0,
            "failure_count": 0,
            "rejected_count": 0,
            "state_changes": deque(maxlen=STATE_HISTORY_LIMIT),
        }

        logger.info(
            f"Initialized CircuitBreaker '{self.name}' with failure_threshold={failure_threshold}, "
            f"reset_timeout={reset_timeout}, success_threshold={success_threshold}"
        )

    @property
    def metrics(self) -> dict[str, Any]:
        """Get circuit breaker metrics.

        `state_changes` holds the last `STATE_HISTORY_LIMIT` transitions.
        """
        metrics = self._metrics.copy()
        metrics["state_changes"] = [dict(c) for c in self._metrics["state_changes"]]
        return metrics

    def to_dict(self) -> dict[str, Any]:
        """Serialize circuit breaker configuration."""
        return {
            "failure_threshold": self.failure_threshold,
            "reset_timeout": self.reset_timeout,
            "success_threshold": self.success_threshold,
            "name": self.name,
        }

    def get_status(self) -> dict[str, Any]:
        """Current state and counters. Read-only."""
        return {
            "state": self.state,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "next_attempt_time": (
                self.next_attempt_time if self.state == CircuitState.OPEN else None
            ),
        }

    def _change_state(self, new_state: CircuitState, now: float) -> None:
        """Change state with logging. Caller holds the lock."""
        old_state = self.state
        if new_state == old_state:
            return

        self.state = new_state
        self._metrics["state_changes"].append(
            {"time": now, "from": old_state.value, "to": new_state.value}
        )
        logger.info(
            f"Circuit '{self.name}' state changed from {old_state.value} to {new_state.value}"
        )

        if new_state == CircuitState.HALF_OPEN:
            self.success_count = 0
        elif new_state == CircuitState.OPEN:
            self.success_count = 0
            self.next_attempt_time = now + self.reset_timeout
        elif new_state == CircuitState.CLOSED:
            self.failure_count = 0
            self.success_count = 0
            self.last_failure_time = 0.0
            self.next_attempt_time = 0.0

    async def _check_state(self) -> tuple[bool, float]:
        """Check if request can proceed.

        Returns:
            Tuple of (can_proceed, retry_after_seconds)
        """
        async with self._lock:
            now = self._clock()

            if self.state == CircuitState.OPEN and now >= self.next_attempt_time:
                self._change_state(CircuitState.HALF_OPEN, now)

            if self.state == CircuitState.OPEN:
                retry_after = self.next_attempt_time - now
                self._metrics["rejected_count"] += 1
                logger.warning(
                    f"Circuit '{self.name}' is OPEN, rejecting request. "
                    f"Try again in {retry_after:.2f}s"
                )
                return False, retry_after

            return True, 0.0

    async def _on_success(self) -> None:
        async with self._lock:
            self._metrics["success_count"] += 1

            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                logger.debug(
                    f"Circuit '{self.name}' HALF_OPEN success "
                    f"{self.success_count}/{self.success_threshold}"
                )
                if self.success_count >= self.success_threshold:
                    self._change_state(CircuitState.CLOSED, self._clock())
            elif self.state == CircuitState.CLOSED and self.failure_count:
                logger.debug(
                    f"Circuit '{self.name}' resetting failure count from {self.failure_count}"
                )
                self.failure_count = 0

    async def _on_failure(self, exc: Exception) -> None:
        async with self._lock:
            now = self._clock()
            self.failure_count += 1
            self.last_failure_time = now
            self._metrics["failure_count"] += 1

            logger.warning(
                f"Circuit '{self.name}' failure: {exc}. "
                f"Count: {self.failure_count}/{self.failure_threshold}"
            )

            if self.state == CircuitState.HALF_OPEN or (
                self.state == CircuitState.CLOSED
                and self.failure_count >= self.failure_threshold
            ):
                self._change_state(CircuitState.OPEN, now)

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute with circuit breaker protection.

        Raises:
            CircuitBreakerOpenError: If the circuit is OPEN; `func` is not called.
            Exception: Whatever `func` raised, after recording the failure.
        """
        can_proceed, retry_after = await self._check_state()
        if not can_proceed:
            raise CircuitBreakerOpenError(
                f"Circuit breaker '{self.name}' is open - API temporarily unavailable. "
                f"Try again in {math.ceil(retry_after)}s",
                retry_after=retry_after,
                state=CircuitState.OPEN,
                next_attempt_time=self.next_attempt_time,
            )

        try:
            logger.debug(
                f"Executing {getattr(func, '__name__', func)!s} with circuit "
                f"'{self.name}' state: {self.state.value}"
            )
            result = await func(*args, **kwargs)
        except Exception as e:
            if not any(isinstance(e, exc_type) for exc_type in self.excluded_exceptions):
                await self._on_failure(e)
            raise

        await self._on_success()
        return result


def backoff_delay(
    attempt: int,
    *,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
) -> float:
    """Delay before retry `attempt` (0-indexed), capped at `max_delay`.

    With jitter the delay is scaled by a random factor in [0.5, 1.0].
    """
    delay = min(initial_delay * (exponential_base**attempt), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)
    return delay


@dataclass
class RetryConfig:
    """Retry configuration with exponential backoff.

    Attributes:
        max_retries: Maximum number of retry attempts after the first call
        initial_delay: Delay in seconds before the first retry
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation
        jitter: Whether to scale delays by a random factor in [0.5, 1.0]
        retry_on: Exception types that trigger a retry. Defaults to transient
            errors only; programming errors (TypeError, ValueError, ...) and
            CircuitBreakerOpenError propagate on first occurrence.
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = False
    retry_on: tuple[type[Exception], ...] = field(
        default_factory=lambda: (ConnectionError, TimeoutError, OSError)
    )

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff + optional jitter.

        Args:
            attempt: Current retry attempt number (0-indexed)

        Returns:
            Delay in seconds before next retry
        """
        return backoff_delay(
            attempt,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            exponential_base=self.exponential_base,
            jitter=self.jitter,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize config to dict."""
        return {
            "max_retries": self.max_retries,
            "initial_delay": self.initial_delay,
            "max_delay": self.max_delay,
            "exponential_base": self.exponential_base,
            "jitter": self.jitter,
            "retry_on": self.retry_on,
        }

    def as_kwargs(self) -> dict[str, Any]:
        """Convert config to kwargs for retry_with_backoff."""
        return self.to_dict()


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
    retry_on: tuple[type[Exception], ...] = (
        ConnectionError,
        TimeoutError,
        OSError,
    ),
    sleep_func: Callable[[float], Awaitable[Any]] | None = None,
    **kwargs,
) -> T:
    """Retry async function with exponential backoff.

    The delay before retry `i` (0-indexed) is
    `min(initial_delay * exponential_base**i, max_delay)`, so the defaults
    give 1s, 2s, 4s. Exceptions outside `retry_on` propagate immediately.

    Args:
        func: Async function to retry
        *args: Positional arguments for func
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay cap in seconds (default: 60.0)
        exponential_base: Base for exponential calculation (default: 2.0)
        jitter: Scale each delay by a random factor in [0.5, 1.0] (default: False)
        retry_on: Tuple of exception types that should trigger retries
        sleep_func: Awaitable sleep used between attempts (default:
            lionherd_core sleep); tests pass a recorder here
        **kwargs: Keyword arguments for func

    Returns:
        Result from successful func execution

    Raises:
        Last exception if all retries exhausted
    """
    pause = sleep_func or sleep
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt >= max_retries:
                logger.error(f"All {max_retries} retry attempts exhausted for {name}: {e}")
                raise

            delay = backoff_delay(
                attempt,
                initial_delay=initial_delay,
                max_delay=max_delay,
                exponential_base=exponential_base,
                jitter=jitter,
            )

            logger.warning(
                f"Retry attempt {attempt + 1}/{max_retries} for {name} after {delay:.2f}s: {e}"
            )
            await pause(delay)

    raise RuntimeError("Unexpected retry loop exit")
