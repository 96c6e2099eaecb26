# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import Field

from ..services.types.endpoint import Endpoint
from ..services.types.tool import Tool, create_tool_handler
from ..services.utilities.path_params import PathParamBuilder, encode_path
from .common import ActionInput, CandleSize, DateStr, Limit, Ticker

__all__ = (
    "StockInfo",
    "StockInput",
    "StockOhlc",
    "StockState",
    "TickerExchanges",
    "TickersBySector",
    "create_stock_tool",
)


class StockInfo(ActionInput):
    path_fields: ClassVar[frozenset[str]] = frozenset({"ticker"})

    action: Literal["info"]
    ticker: Ticker


class StockOhlc(ActionInput):
    path_fields: ClassVar[frozenset[str]] = frozenset({"ticker", "candle_size"})

    action: Literal["ohlc"]
    ticker: Ticker
    candle_size: CandleSize
    date: DateStr | None = None
    end_date: DateStr | None = Field(None, description="End date for OHLC data")
    timeframe: str | None = Field(None, description="Timeframe, e.g. '1y', '6m', '1m'")
    limit: Limit | None = None


class StockState(ActionInput):
    path_fields: ClassVar[frozenset[str]] = frozenset({"ticker"})

    action: Literal["stock_state"]
    ticker: Ticker
    date: DateStr | None = None


class TickersBySector(ActionInput):
    path_fields: ClassVar[frozenset[str]] = frozenset({"sector"})

    action: Literal["tickers_by_sector"]
    sector: str = Field(..., min_length=1, description="Market sector")


class TickerExchanges(ActionInput):
    action: Literal["ticker_exchanges"]


StockInput = Annotated[
    StockInfo | StockOhlc | StockState | TickersBySector | TickerExchanges,
    Field(discriminator="action"),
]


def create_stock_tool(endpoint: Endpoint) -> Tool:
    async def info(data: StockInfo):
        return await endpoint.fetch(f"/api/stock/{encode_path(data.ticker)}/info")

    async def ohlc(data: StockOhlc):
        path = (
            PathParamBuilder()
            .add("ticker", data.ticker)
            .add("candle_size", data.candle_size)
            .build("/api/stock/{ticker}/ohlc/{candle_size}")
        )
        return await endpoint.fetch(path, data.query_params())

    async def stock_state(data: StockState):
        path = f"/api/stock/{encode_path(data.ticker)}/stock-state"
        return await endpoint.fetch(path, data.query_params())

    async def tickers_by_sector(data: TickersBySector):
        return await endpoint.fetch(f"/api/stock/{encode_path(data.sector)}/tickers")

    async def ticker_exchanges(data: TickerExchanges):
        return await endpoint.fetch("/api/stock-directory/ticker-exchanges")

    return Tool(
        name="uw_stock",
        description=(
            "Access UnusualWhales stock data.\n\n"
            "Available actions:\n"
            "- info: Get stock information (ticker required)\n"
            "- ohlc: Get OHLC candles (ticker, candle_size required; date, timeframe, "
            "end_date, limit optional)\n"
            "- stock_state: Get stock state (ticker required; date optional)\n"
            "- tickers_by_sector: Get tickers in sector (sector required)\n"
            "- ticker_exchanges: Get mapping of all tickers to their exchanges"
        ),
        schema=StockInput,
        handler=create_tool_handler(
            StockInput,
            {
                "info": info,
                "ohlc": ohlc,
                "stock_state": stock_state,
                "tickers_by_sector": tickers_by_sector,
                "ticker_exchanges": ticker_exchanges,
            },
        ),
        annotations={"readOnlyHint": True, "openWorldHint": True},
    )
