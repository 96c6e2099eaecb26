# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from ..services.types.endpoint import Endpoint
from ..services.types.tool import Tool, create_tool_handler
from .common import ActionInput, DateStr, Limit, Ticker

__all__ = (
    "CongressInput",
    "CongressLateReports",
    "CongressRecentTrades",
    "CongressTrader",
    "create_congress_tool",
)


class _CongressFilters(ActionInput):
    ticker: Ticker | None = None
    date: DateStr | None = None
    limit: Limit | None = Field(None, description="Maximum number of results (default 100, max 200)")


class CongressRecentTrades(_CongressFilters):
    action: Literal["recent_trades"]


class CongressLateReports(_CongressFilters):
    action: Literal["late_reports"]


class CongressTrader(_CongressFilters):
    action: Literal["congress_trader"]
    name: str = Field(..., min_length=1, description="Congress member name")


CongressInput = Annotated[
    CongressRecentTrades | CongressLateReports | CongressTrader,
    Field(discriminator="action"),
]


def create_congress_tool(endpoint: Endpoint) -> Tool:
    async def recent_trades(data: CongressRecentTrades):
        return await endpoint.fetch("/api/congress/recent-trades", data.query_params())

    async def late_reports(data: CongressLateReports):
        return await endpoint.fetch("/api/congress/late-reports", data.query_params())

    async def congress_trader(data: CongressTrader):
        return await endpoint.fetch("/api/congress/congress-trader", data.query_params())

    return Tool(
        name="uw_congress",
        description=(
            "Access UnusualWhales congress trading data including trades by congress members.\n\n"
            "Available actions:\n"
            "- recent_trades: Get recent trades by congress members\n"
            "- late_reports: Get recent late reports by congress members\n"
            "- congress_trader: Get trades by a specific congress member (name required)"
        ),
        schema=CongressInput,
        handler=create_tool_handler(
            CongressInput,
            {
                "recent_trades": recent_trades,
                "late_reports": late_reports,
                "congress_trader": congress_trader,
            },
        ),
    )
