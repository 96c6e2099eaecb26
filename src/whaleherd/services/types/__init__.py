# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Service types and abstractions."""

from .endpoint import Endpoint, EndpointConfig, TransientRequestError, build_query
from .registry import ToolRegistry
from .response import (
    ApiResponse,
    ToolResponse,
    format_error,
    format_response,
    format_tool_error,
    format_tool_response,
)
from .tool import Tool, action_names, create_tool_handler, format_validation_error

__all__ = (
    "ApiResponse",
    "Endpoint",
    "EndpointConfig",
    "Tool",
    "ToolRegistry",
    "ToolResponse",
    "TransientRequestError",
    "action_names",
    "build_query",
    "create_tool_handler",
    "format_error",
    "format_response",
    "format_tool_error",
    "format_tool_response",
    "format_validation_error",
)
