# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Literal

from ..services.types.endpoint import Endpoint
from ..services.types.tool import Tool, create_tool_handler
from .common import ActionInput, Limit, Ticker

__all__ = ("NewsHeadlines", "create_news_tool")


class NewsHeadlines(ActionInput):
    action: Literal["headlines"]
    ticker: Ticker | None = None
    limit: Limit | None = None


def create_news_tool(endpoint: Endpoint) -> Tool:
    async def headlines(data: NewsHeadlines):
        return await endpoint.fetch("/api/news/headlines", data.query_params())

    return Tool(
        name="uw_news",
        description=(
            "Access UnusualWhales news headlines.\n\n"
            "Available actions:\n"
            "- headlines: Get news headlines with optional ticker filter"
        ),
        schema=NewsHeadlines,
        handler=create_tool_handler(NewsHeadlines, {"headlines": headlines}),
        annotations={"readOnlyHint": True, "openWorldHint": True},
    )
