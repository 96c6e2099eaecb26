# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for the UnusualWhales tool groups and the default registry."""

from __future__ import annotations

import json

import httpx
import pytest

from whaleherd.services.types import Endpoint
from whaleherd.services.utilities import SlidingWindowRateLimiter
from whaleherd.tools import (
    build_default_registry,
    create_congress_tool,
    create_darkpool_tool,
    create_news_tool,
    create_stock_tool,
)


class RecordingUpstream:
    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"data": [], "path": request.url.path})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def endpoint(upstream, clock, recording_sleep) -> Endpoint:
    return Endpoint(
        {"api_key": "test-key", "client_kwargs": {"transport": httpx.MockTransport(upstream)}},
        rate_limiter=SlidingWindowRateLimiter(1000, clock=clock),
        sleep_func=recording_sleep,
    )


def error_of(result) -> str:
    assert result.is_error is True
    return json.loads(result.text)["error"]


class TestStockTool:
    @pytest.mark.asyncio
    async def test_info(self, endpoint, upstream):
        tool = create_stock_tool(endpoint)

        result = await tool.call({"action": "info", "ticker": "AAPL"})

        assert result.is_error is False
        assert upstream.last.url.path == "/api/stock/AAPL/info"
        assert upstream.last.url.params.multi_items() == []

    @pytest.mark.asyncio
    async def test_ohlc_path_and_query(self, endpoint, upstream):
        tool = create_stock_tool(endpoint)

        await tool.call(
            {
                "action": "ohlc",
                "ticker": "MSFT",
                "candle_size": "1d",
                "date": "2024-01-02",
                "limit": 50,
            }
        )

        assert upstream.last.url.path == "/api/stock/MSFT/ohlc/1d"
        assert upstream.last.url.params.multi_items() == [
            ("date", "2024-01-02"),
            ("limit", "50"),
        ]

    @pytest.mark.asyncio
    async def test_ohlc_rejects_unknown_candle(self, endpoint, upstream):
        tool = create_stock_tool(endpoint)

        result = await tool.call({"action": "ohlc", "ticker": "MSFT", "candle_size": "2d"})

        assert error_of(result).startswith("Invalid input:")
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_stock_state_and_sector(self, endpoint, upstream):
        tool = create_stock_tool(endpoint)

        await tool.call({"action": "stock_state", "ticker": "TSLA"})
        assert upstream.last.url.path == "/api/stock/TSLA/stock-state"

        await tool.call({"action": "tickers_by_sector", "sector": "Technology"})
        assert upstream.last.url.path == "/api/stock/Technology/tickers"

        await tool.call({"action": "ticker_exchanges"})
        assert upstream.last.url.path == "/api/stock-directory/ticker-exchanges"

    @pytest.mark.asyncio
    async def test_path_traversal_is_rejected(self, endpoint, upstream):
        tool = create_stock_tool(endpoint)

        result = await tool.call({"action": "info", "ticker": "../admin"})

        assert error_of(result) == "Error executing info: Invalid path parameter"
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_ohlc_traversal_names_parameter(self, endpoint, upstream):
        tool = create_stock_tool(endpoint)

        result = await tool.call({"action": "ohlc", "ticker": "a/b", "candle_size": "1d"})

        assert error_of(result) == (
            "Error executing ohlc: Invalid ticker: contains path characters"
        )

    @pytest.mark.asyncio
    async def test_missing_ticker(self, endpoint):
        result = await create_stock_tool(endpoint).call({"action": "info"})

        assert "ticker" in error_of(result)

    def test_actions(self, endpoint):
        assert create_stock_tool(endpoint).actions == [
            "info",
            "ohlc",
            "stock_state",
            "tickers_by_sector",
            "ticker_exchanges",
        ]


class TestDarkpoolTool:
    @pytest.mark.asyncio
    async def test_recent_with_filters(self, endpoint, upstream):
        tool = create_darkpool_tool(endpoint)

        result = await tool.call({"action": "recent", "limit": 10, "min_premium": 100000})

        assert result.is_error is False
        assert upstream.last.url.path == "/api/darkpool/recent"
        assert upstream.last.url.params.multi_items() == [
            ("min_premium", "100000"),
            ("limit", "10"),
        ]

    @pytest.mark.asyncio
    async def test_recent_limit_bounds(self, endpoint, upstream):
        tool = create_darkpool_tool(endpoint)

        result = await tool.call({"action": "recent", "limit": 201})

        message = error_of(result)
        assert message.startswith("Invalid input:")
        assert "limit" in message
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_ticker_allows_larger_limit(self, endpoint, upstream):
        tool = create_darkpool_tool(endpoint)

        await tool.call({"action": "ticker", "ticker": "NVDA", "limit": 500})

        assert upstream.last.url.path == "/api/darkpool/NVDA"
        assert ("ticker", "NVDA") not in upstream.last.url.params.multi_items()

    @pytest.mark.asyncio
    async def test_negative_premium_rejected(self, endpoint):
        result = await create_darkpool_tool(endpoint).call(
            {"action": "recent", "min_premium": -1}
        )
        assert "min_premium" in error_of(result)


class TestCongressTool:
    @pytest.mark.asyncio
    async def test_routes(self, endpoint, upstream):
        tool = create_congress_tool(endpoint)

        await tool.call({"action": "recent_trades", "ticker": "AAPL"})
        assert upstream.last.url.path == "/api/congress/recent-trades"
        assert upstream.last.url.params.multi_items() == [("ticker", "AAPL")]

        await tool.call({"action": "late_reports"})
        assert upstream.last.url.path == "/api/congress/late-reports"

        await tool.call({"action": "congress_trader", "name": "Nancy Pelosi"})
        assert upstream.last.url.path == "/api/congress/congress-trader"
        assert upstream.last.url.params["name"] == "Nancy Pelosi"

    @pytest.mark.asyncio
    async def test_trader_requires_name(self, endpoint, upstream):
        result = await create_congress_tool(endpoint).call({"action": "congress_trader"})

        assert "name" in error_of(result)
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_bad_date_rejected(self, endpoint):
        result = await create_congress_tool(endpoint).call(
            {"action": "recent_trades", "date": "01/02/2024"}
        )
        assert "date" in error_of(result)


class TestNewsTool:
    @pytest.mark.asyncio
    async def test_headlines(self, endpoint, upstream):
        tool = create_news_tool(endpoint)

        result = await tool.call({"action": "headlines", "ticker": "AMD", "limit": 5})

        assert result.structured_content["path"] == "/api/news/headlines"
        assert upstream.last.url.params.multi_items() == [("ticker", "AMD"), ("limit", "5")]

    def test_annotations_omit_idempotent_hint(self, endpoint):
        tool = create_news_tool(endpoint)
        assert tool.annotations == {"readOnlyHint": True, "openWorldHint": True}


class TestDefaultRegistry:
    def test_registers_every_group(self, endpoint):
        registry = build_default_registry(endpoint)

        assert registry.list_names() == ["uw_stock", "uw_darkpool", "uw_congress", "uw_news"]

    def test_builds_endpoint_from_environment(self, monkeypatch):
        monkeypatch.setenv("UW_API_KEY", "env-key")
        monkeypatch.setenv("UW_RATE_LIMIT_PER_MINUTE", "60")

        registry = build_default_registry()

        assert len(registry) == 4

    @pytest.mark.asyncio
    async def test_dispatch_through_registry(self, endpoint, upstream):
        registry = build_default_registry(endpoint)

        result = await registry.call("uw_darkpool", {"action": "ticker", "ticker": "SPY"})

        assert result.is_error is False
        assert upstream.last.url.path == "/api/darkpool/SPY"

    @pytest.mark.asyncio
    async def test_missing_key_surfaces_as_tool_error(self, monkeypatch):
        monkeypatch.delenv("UW_API_KEY", raising=False)
        registry = build_default_registry()

        result = await registry.call("uw_news", {"action": "headlines"})

        assert error_of(result) == "UW_API_KEY environment variable is not set"

    def test_tool_definitions_are_serializable(self, endpoint):
        for definition in build_default_registry(endpoint).list_tools():
            json.dumps(definition)
