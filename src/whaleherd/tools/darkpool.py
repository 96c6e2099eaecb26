# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import Field

from ..services.types.endpoint import Endpoint
from ..services.types.tool import Tool, create_tool_handler
from ..services.utilities.path_params import PathParamBuilder
from .common import ActionInput, DateStr, NonNegativeInt, Ticker

__all__ = ("DarkpoolInput", "DarkpoolRecent", "DarkpoolTicker", "create_darkpool_tool")


class _DarkpoolFilters(ActionInput):
    date: DateStr | None = None
    newer_than: str | None = Field(None, description="Filter trades newer than timestamp")
    older_than: str | None = Field(None, description="Filter trades older than timestamp")
    min_premium: NonNegativeInt | None = Field(None, description="Minimum trade premium")
    max_premium: NonNegativeInt | None = Field(None, description="Maximum trade premium")
    min_size: NonNegativeInt | None = Field(None, description="Minimum trade size")
    max_size: NonNegativeInt | None = Field(None, description="Maximum trade size")
    min_volume: NonNegativeInt | None = Field(None, description="Minimum contract volume")
    max_volume: NonNegativeInt | None = Field(None, description="Maximum contract volume")


class DarkpoolRecent(_DarkpoolFilters):
    action: Literal["recent"]
    limit: Annotated[int, Field(ge=1, le=200)] | None = None


class DarkpoolTicker(_DarkpoolFilters):
    path_fields: ClassVar[frozenset[str]] = frozenset({"ticker"})

    action: Literal["ticker"]
    ticker: Ticker
    limit: Annotated[int, Field(ge=1, le=500)] | None = None


DarkpoolInput = Annotated[DarkpoolRecent | DarkpoolTicker, Field(discriminator="action")]


def create_darkpool_tool(endpoint: Endpoint) -> Tool:
    async def recent(data: DarkpoolRecent):
        return await endpoint.fetch("/api/darkpool/recent", data.query_params())

    async def ticker(data: DarkpoolTicker):
        path = PathParamBuilder().add("ticker", data.ticker).build("/api/darkpool/{ticker}")
        return await endpoint.fetch(path, data.query_params())

    return Tool(
        name="uw_darkpool",
        description=(
            "Access UnusualWhales darkpool trade data.\n\n"
            "Available actions:\n"
            "- recent: Get recent darkpool trades across the market\n"
            "- ticker: Get darkpool trades for a specific ticker\n\n"
            "Filtering options include premium range, size range, and volume range."
        ),
        schema=DarkpoolInput,
        handler=create_tool_handler(DarkpoolInput, {"recent": recent, "ticker": ticker}),
    )
