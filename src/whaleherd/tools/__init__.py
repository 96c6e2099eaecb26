# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""UnusualWhales tool groups.

Each group is a set of actions described by a tagged union and bound to an
Endpoint, which supplies rate limiting, circuit breaking and retries.
"""

from ..services.types.endpoint import Endpoint
from ..services.types.registry import ToolRegistry
from .congress import create_congress_tool
from .darkpool import create_darkpool_tool
from .news import create_news_tool
from .stock import create_stock_tool

__all__ = (
    "build_default_registry",
    "create_congress_tool",
    "create_darkpool_tool",
    "create_news_tool",
    "create_stock_tool",
)

TOOL_FACTORIES = (
    create_stock_tool,
    create_darkpool_tool,
    create_congress_tool,
    create_news_tool,
)


def build_default_registry(endpoint: Endpoint | None = None) -> ToolRegistry:
    """Register every tool group against one shared endpoint.

    With no endpoint given, one is composed from the environment.
    """
    endpoint = endpoint or Endpoint.from_env()
    registry = ToolRegistry()
    for factory in TOOL_FACTORIES:
        registry.register(factory(endpoint))
    return registry
