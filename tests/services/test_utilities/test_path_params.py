# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for path parameter validation and encoding."""

import pytest

from whaleherd.services.utilities import PathParamBuilder, PathParamError, encode_path


class TestEncodePath:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("AAPL", "AAPL"),
            ("BRK.B", "BRK.B"),
            ("Consumer Cyclical", "Consumer%20Cyclical"),
            ("a&b=c", "a%26b%3Dc"),
            ("it's", "it's"),
            (42, "42"),
        ],
    )
    def test_encodes_segment(self, value, expected):
        assert encode_path(value) == expected

    @pytest.mark.parametrize("value", ["../etc/passwd", "a/b", "a\\b", "..", "x..y"])
    def test_rejects_path_characters(self, value):
        with pytest.raises(PathParamError, match="Invalid path parameter"):
            encode_path(value)

    def test_rejects_none(self):
        with pytest.raises(PathParamError, match="Path parameter is required"):
            encode_path(None)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            encode_path("a/b")


class TestPathParamBuilder:
    def test_builds_template(self):
        path = (
            PathParamBuilder()
            .add("ticker", "AAPL")
            .add("candle_size", "1d")
            .build("/api/stock/{ticker}/ohlc/{candle_size}")
        )
        assert path == "/api/stock/AAPL/ohlc/1d"

    def test_encodes_values(self):
        path = PathParamBuilder().add("sector", "Real Estate").build("/api/stock/{sector}/tickers")
        assert path == "/api/stock/Real%20Estate/tickers"

    def test_required_missing(self):
        with pytest.raises(PathParamError, match="ticker is required"):
            PathParamBuilder().add("ticker", None)

    def test_optional_missing_is_skipped(self):
        builder = PathParamBuilder().add("date", None, required=False)
        assert builder.build("/api/x") == "/api/x"

    def test_rejects_traversal(self):
        with pytest.raises(PathParamError, match="Invalid ticker: contains path characters"):
            PathParamBuilder().add("ticker", "../admin")

    def test_rejects_empty(self):
        with pytest.raises(PathParamError, match="ticker cannot be empty"):
            PathParamBuilder().add("ticker", "")

    def test_unfilled_placeholder(self):
        with pytest.raises(PathParamError, match="Missing required parameter: candle_size"):
            PathParamBuilder().add("ticker", "AAPL").build("/api/stock/{ticker}/ohlc/{candle_size}")

    def test_clear_allows_reuse(self):
        builder = PathParamBuilder().add("ticker", "AAPL")
        assert builder.build("/{ticker}") == "/AAPL"

        builder.clear()
        with pytest.raises(PathParamError):
            builder.build("/{ticker}")
