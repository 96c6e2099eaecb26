# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Validation and encoding for values interpolated into URL paths.

Query parameters are encoded by the HTTP client; path segments are not, so
anything user-supplied (tickers, sectors, candle sizes) goes through here.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

__all__ = ("PathParamBuilder", "PathParamError", "encode_path")

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


class PathParamError(ValueError):
    """A path parameter was missing or contained path characters."""


def _has_path_chars(value: str) -> bool:
    return "/" in value or "\\" in value or ".." in value


def _quote_segment(value: str) -> str:
    # Same unreserved set as JavaScript's encodeURIComponent
    return quote(value, safe="-_.!~*'()")


def encode_path(value: Any) -> str:
    """Validate and percent-encode a single path segment.

    Raises:
        PathParamError: If value is None or contains `/`, `\\` or `..`
    """
    if value is None:
        raise PathParamError("Path parameter is required")

    text = str(value)
    if _has_path_chars(text):
        raise PathParamError("Invalid path parameter")

    return _quote_segment(text)


class PathParamBuilder:
    """Fluent builder for URL paths with validated, encoded parameters.

    Example:
        >>> PathParamBuilder().add("ticker", "AAPL").build("/api/stock/{ticker}/info")
        '/api/stock/AAPL/info'
    """

    def __init__(self):
        self._params: dict[str, str] = {}

    def add(self, name: str, value: Any, required: bool = True) -> PathParamBuilder:
        """Add a parameter; optional missing values are skipped."""
        if value is None:
            if required:
                raise PathParamError(f"{name} is required")
            return self

        text = str(value)
        if _has_path_chars(text):
            raise PathParamError(f"Invalid {name}: contains path characters")
        if not text:
            raise PathParamError(f"{name} cannot be empty")

        self._params[name] = _quote_segment(text)
        return self

    def build(self, template: str) -> str:
        """Replace every `{placeholder}` in template with its encoded value."""

        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in self._params:
                raise PathParamError(f"Missing required parameter: {name}")
            return self._params[name]

        return _PLACEHOLDER.sub(_substitute, template)

    def clear(self) -> PathParamBuilder:
        """Drop all parameters so the builder can be reused."""
        self._params.clear()
        return self
