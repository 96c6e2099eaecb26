# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .response import ToolResponse, format_tool_error
from .tool import Tool

__all__ = ("ToolRegistry",)

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-indexed collection of tools with a never-raising `call`."""

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool, update: bool = False) -> str:
        """Register tool by name. Set update=True to replace existing."""
        if tool.name in self._tools and not update:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool
        return tool.name

    def unregister(self, name: str) -> Tool:
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' not found")
        return self._tools.pop(name)

    def get(self, name: str) -> Tool:
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' not found")
        return self._tools[name]

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[dict[str, Any]]:
        """Tool definitions as advertised to callers."""
        return [tool.to_dict() for tool in self._tools.values()]

    async def call(self, name: str, args: Mapping[str, Any] | None = None) -> ToolResponse:
        """Dispatch to the named tool; unknown names become an error response."""
        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"Call to unknown tool '{name}'")
            return format_tool_error(f"Unknown tool: {name}")
        logger.debug(f"Calling tool '{name}' with action={(args or {}).get('action')!r}")
        return await tool.call(args or {})

    def clear(self) -> None:
        self._tools.clear()

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"ToolRegistry(count={len(self)})"
