# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Utilities for service resilience and rate limiting."""

from .log_config import configure_logging
from .path_params import PathParamBuilder, PathParamError, encode_path
from .rate_limiter import AcquireResult, RateLimitConfig, SlidingWindowRateLimiter
from .resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitState,
    RetryConfig,
    backoff_delay,
    retry_with_backoff,
)

__all__ = (
    "AcquireResult",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "PathParamBuilder",
    "PathParamError",
    "RateLimitConfig",
    "RetryConfig",
    "SlidingWindowRateLimiter",
    "backoff_delay",
    "configure_logging",
    "encode_path",
    "retry_with_backoff",
)
