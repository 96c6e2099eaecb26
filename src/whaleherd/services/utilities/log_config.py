# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import UTC, datetime
from typing import IO, Any

__all__ = ("JsonLineFormatter", "configure_logging", "resolve_level")

ROOT_LOGGER = "whaleherd"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def resolve_level(level: str | int | None = None) -> int:
    """Map a level name (or LOG_LEVEL) to a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL") or "info").strip().lower()
    return _LEVELS.get(name, logging.INFO)


def _serialize_exception(exc_info) -> dict[str, Any]:
    exc_type, exc, tb = exc_info
    return {
        "name": exc_type.__name__ if exc_type else None,
        "message": str(exc),
        "stack": "".join(traceback.format_exception(exc_type, exc, tb)),
    }


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_"):
                continue
            if isinstance(value, BaseException):
                value = _serialize_exception((type(value), value, value.__traceback__))
            entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["error"] = _serialize_exception(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: str | int | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a JSON-lines handler to the package logger.

    Output defaults to stderr so stdout stays free for a stdio transport.
    Repeated calls replace the handler instead of stacking another one.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolve_level(level))

    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JsonLineFormatter):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonLineFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
