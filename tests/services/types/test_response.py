# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for the response envelope and its formatters."""

import json

import pytest
from pydantic import ValidationError

from whaleherd.services.types import (
    ApiResponse,
    format_error,
    format_response,
    format_tool_error,
    format_tool_response,
)


class TestApiResponse:
    def test_success(self):
        result = ApiResponse(data={"a": 1})

        assert result.ok is True
        assert result.payload == {"a": 1}
        assert result.to_dict() == {"data": {"a": 1}}

    def test_error(self):
        result = ApiResponse(error="boom")

        assert result.ok is False
        assert result.data is None
        assert result.to_dict() == {"error": "boom"}

    def test_empty_success_payload_is_empty_object(self):
        result = ApiResponse()

        assert result.ok is True
        assert result.payload == {}

    def test_rejects_data_and_error_together(self):
        with pytest.raises(ValidationError, match="both data and error"):
            ApiResponse(data={"a": 1}, error="boom")

    def test_frozen(self):
        result = ApiResponse(data=[1])
        with pytest.raises(ValidationError):
            result.error = "late"

    def test_falsy_data_is_preserved(self):
        assert ApiResponse(data=[]).payload == []
        assert ApiResponse(data=0).payload == 0


class TestFormatResponse:
    def test_success_is_pretty_printed_data(self):
        text = format_response(ApiResponse(data={"ticker": "AAPL", "price": 1.5}))

        assert text == json.dumps({"ticker": "AAPL", "price": 1.5}, indent=2)

    def test_error_is_pretty_printed_object(self):
        text = format_response(ApiResponse(error="API error (404): Not Found"))

        assert text == '{\n  "error": "API error (404): Not Found"\n}'

    def test_empty_success_renders_braces(self):
        assert format_response(ApiResponse()) == "{}"

    def test_format_error_is_compact(self):
        assert format_error("bad") == '{"error": "bad"}'


class TestFormatToolResponse:
    def test_success_carries_structured_content(self):
        result = format_tool_response(ApiResponse(data=[{"id": 1}]))

        assert result.is_error is False
        assert result.structured_content == [{"id": 1}]
        assert json.loads(result.text) == [{"id": 1}]

    def test_error_flagged(self):
        result = format_tool_response(ApiResponse(error="Request timed out"))

        assert result.is_error is True
        assert result.structured_content is None
        assert json.loads(result.text) == {"error": "Request timed out"}

    def test_format_tool_error(self):
        result = format_tool_error("Unknown tool: x")

        assert result.is_error is True
        assert result.text == json.dumps({"error": "Unknown tool: x"}, indent=2)


class TestNonAsciiRendering:
    def test_format_response_keeps_unicode(self):
        text = format_response(ApiResponse(data={"n": "Zoë", "sym": "€"}))

        assert '"n": "Zoë"' in text
        assert "\\u" not in text

    def test_error_renderers_keep_unicode(self):
        assert format_error("Ticker 'ÄB' not found") == '{"error": "Ticker \'ÄB\' not found"}'
        assert "Zoë" in format_response(ApiResponse(error="Zoë"))
        assert "Zoë" in format_tool_error("Zoë").text

    def test_tool_response_keeps_unicode(self):
        result = format_tool_response(ApiResponse(data=["naïve"]))

        assert "naïve" in result.text
        assert result.structured_content == ["naïve"]
