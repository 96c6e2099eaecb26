# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Resilient client layer for the UnusualWhales data API."""

from .services import (
    ApiResponse,
    CircuitBreaker,
    Endpoint,
    EndpointConfig,
    SlidingWindowRateLimiter,
    ToolRegistry,
)

__version__ = "0.1.0"

__all__ = (
    "ApiResponse",
    "CircuitBreaker",
    "Endpoint",
    "EndpointConfig",
    "SlidingWindowRateLimiter",
    "ToolRegistry",
)
