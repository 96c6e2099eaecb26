# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Services layer - endpoint, response envelope, resilience patterns."""

from .types import (
    ApiResponse,
    Endpoint,
    EndpointConfig,
    Tool,
    ToolRegistry,
    ToolResponse,
    TransientRequestError,
    build_query,
    create_tool_handler,
    format_error,
    format_response,
    format_tool_error,
    format_tool_response,
)
from .utilities import (
    AcquireResult,
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitState,
    PathParamBuilder,
    PathParamError,
    RateLimitConfig,
    RetryConfig,
    SlidingWindowRateLimiter,
    configure_logging,
    encode_path,
    retry_with_backoff,
)

__all__ = (
    # Types
    "ApiResponse",
    "Endpoint",
    "EndpointConfig",
    "Tool",
    "ToolRegistry",
    "ToolResponse",
    "TransientRequestError",
    "build_query",
    "create_tool_handler",
    "format_error",
    "format_response",
    "format_tool_error",
    "format_tool_response",
    # Utilities
    "AcquireResult",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "PathParamBuilder",
    "PathParamError",
    "RateLimitConfig",
    "RetryConfig",
    "SlidingWindowRateLimiter",
    "configure_logging",
    "encode_path",
    "retry_with_backoff",
)
