# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Field types and base model shared by the tool input schemas."""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, Field

__all__ = (
    "ActionInput",
    "CandleSize",
    "DateStr",
    "Limit",
    "NonNegativeInt",
    "Ticker",
)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

Ticker = Annotated[
    str,
    Field(min_length=1, max_length=10, description="Stock ticker symbol (e.g., AAPL, MSFT)"),
]
DateStr = Annotated[str, Field(pattern=DATE_PATTERN, description="Date in YYYY-MM-DD format")]
Limit = Annotated[int, Field(gt=0, le=500, description="Maximum number of results")]
NonNegativeInt = Annotated[int, Field(ge=0)]
CandleSize = Literal["1m", "5m", "10m", "15m", "30m", "1h", "4h", "1d"]


class ActionInput(BaseModel):
    """Base for one action's validated arguments.

    Fields named in `path_fields` are interpolated into the URL path;
    everything else except the action tag becomes a query parameter.
    """

    path_fields: ClassVar[frozenset[str]] = frozenset()

    def query_params(self) -> dict[str, Any]:
        return self.model_dump(exclude={"action", *self.path_fields})
