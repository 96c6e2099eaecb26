# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from .response import ApiResponse, ToolResponse, format_tool_error, format_tool_response

__all__ = (
    "ActionHandler",
    "Tool",
    "ToolHandler",
    "action_names",
    "create_tool_handler",
    "format_validation_error",
)

logger = logging.getLogger(__name__)

ActionHandler = Callable[[Any], Awaitable[ApiResponse]]
ToolHandler = Callable[[Mapping[str, Any]], Awaitable[ToolResponse]]

DISCRIMINATOR = "action"

READ_ONLY_ANNOTATIONS = {
    "readOnlyHint": True,
    "idempotentHint": True,
    "openWorldHint": True,
}


def _union_members(schema: Any) -> tuple[type[BaseModel], ...]:
    if get_origin(schema) is Annotated:
        schema = get_args(schema)[0]
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return (schema,)
    return get_args(schema)


def action_names(schema: Any, discriminator: str = DISCRIMINATOR) -> list[str]:
    """List the action literals declared by each member of a tagged union.

    Args:
        schema: A single model, or `Annotated[A | B, Field(discriminator=...)]`
        discriminator: Name of the tag field on every member

    Returns:
        Action names in declaration order
    """
    names: list[str] = []
    for model in _union_members(schema):
        tag = model.model_fields.get(discriminator)
        if tag is None:
            raise ValueError(f"{model.__name__} has no '{discriminator}' field")
        names.extend(get_args(tag.annotation))
    return names


def format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into `loc: msg; ...`."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def create_tool_handler(
    schema: Any,
    handlers: Mapping[str, ActionHandler],
    discriminator: str = DISCRIMINATOR,
) -> ToolHandler:
    """Build a tool handler that validates, routes by action, and formats.

    Every action in `schema` must have a handler and every handler must name
    an action in `schema`; a mismatch is a construction error so new actions
    cannot fall through at runtime.

    Args:
        schema: Tagged union (or single model) describing the tool's input
        handlers: Map of action name to async handler taking the validated model
        discriminator: Tag field name shared by all members

    Returns:
        Async callable taking the raw argument dict and returning a ToolResponse
    """
    declared = action_names(schema, discriminator)
    missing = sorted(set(declared) - set(handlers))
    unknown = sorted(set(handlers) - set(declared))
    if missing:
        raise ValueError(f"No handler for actions: {', '.join(missing)}")
    if unknown:
        raise ValueError(f"Handlers for undeclared actions: {', '.join(unknown)}")

    adapter = TypeAdapter(schema)

    async def handle(args: Mapping[str, Any]) -> ToolResponse:
        try:
            data = adapter.validate_python(dict(args or {}))
        except ValidationError as e:
            return format_tool_error(f"Invalid input: {format_validation_error(e)}")

        action = getattr(data, discriminator)
        try:
            result = await handlers[action](data)
        except Exception as e:
            logger.warning(f"Action '{action}' failed: {e}")
            return format_tool_error(f"Error executing {action}: {e}")
        return format_tool_response(result)

    return handle


@dataclass(slots=True)
class Tool:
    """A named, schema-described group of actions against the API."""

    name: str
    description: str
    schema: Any
    handler: ToolHandler
    annotations: dict[str, bool] = field(default_factory=lambda: dict(READ_ONLY_ANNOTATIONS))

    def __post_init__(self):
        if not self.name:
            raise ValueError("Tool name must be specified")

    @property
    def actions(self) -> list[str]:
        return action_names(self.schema)

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's arguments."""
        return TypeAdapter(self.schema).json_schema()

    async def call(self, args: Mapping[str, Any]) -> ToolResponse:
        return await self.handler(args)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "annotations": self.annotations,
        }
