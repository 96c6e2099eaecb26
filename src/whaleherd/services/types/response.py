# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = (
    "ApiResponse",
    "ToolResponse",
    "format_error",
    "format_response",
    "format_tool_error",
    "format_tool_response",
)


class ApiResponse(BaseModel):
    """Uniform result of every upstream call.

    Exactly one of `data` and `error` is set. An envelope with neither is an
    empty success and renders as `{}`.
    """

    model_config = ConfigDict(frozen=True)

    data: Any = Field(None, description="Opaque response payload")
    error: str | None = Field(None, description="Human-readable failure description")

    @model_validator(mode="after")
    def _validate_exclusive(self):
        if self.error is not None and self.data is not None:
            raise ValueError("ApiResponse cannot carry both data and error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def payload(self) -> Any:
        """Data with the empty-success case normalized to `{}`."""
        return {} if self.data is None else self.data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict (alias for model_dump)."""
        return self.model_dump(exclude_none=True)


class ToolResponse(BaseModel):
    """Rendered envelope for tool callers.

    `structured_content` holds the raw payload on success so callers do not
    have to re-parse `text`.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    structured_content: Any = None
    is_error: bool = False


def format_response(result: ApiResponse) -> str:
    """Pretty-printed error object if `error` is set, else the pretty-printed data."""
    if result.error:
        return json.dumps({"error": result.error}, indent=2, ensure_ascii=False)
    return json.dumps(result.payload, indent=2, ensure_ascii=False)


def format_error(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


def format_tool_response(result: ApiResponse) -> ToolResponse:
    if result.error:
        return format_tool_error(result.error)
    return ToolResponse(
        text=json.dumps(result.payload, indent=2, ensure_ascii=False),
        structured_content=result.payload,
    )


def format_tool_error(message: str) -> ToolResponse:
    return ToolResponse(
        text=json.dumps({"error": message}, indent=2, ensure_ascii=False),
        is_error=True,
    )
