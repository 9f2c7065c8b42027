"""Logging setup for AVL link tools.

Records go to stderr, either as plain text lines or, for log shippers, as one
JSON object per line.
"""

from __future__ import annotations

import msgspec
import logging
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any

from .model import LinkConfig

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def _serialise_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        # Packet bytes are binary; render as [75 65 01 ...]
        return f"[{' '.join(f'{b:02X}' for b in bytes(value))}]"
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Emit one JSON object per record, without the ``avlcomms.`` logger prefix."""

    PREFIX = "avlcomms."

    def format(self, record: logging.LogRecord) -> str:
        logger_name = record.name.removeprefix(self.PREFIX)

        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": logger_name,
            "message": record.getMessage(),
        }

        extras = {
            key: _serialise_value(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if extras:
            payload["extra"] = extras

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return msgspec.json.encode(payload).decode("utf-8")


def configure_logging(config: LinkConfig, *, json_output: bool = False) -> None:
    """Send root logging to stderr at the level ``config`` asks for."""

    level_name = "DEBUG" if config.debug_logging else "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": PLAIN_FORMAT},
                "structured": {
                    "()": "avlcomms.config.logging.StructuredLogFormatter",
                },
            },
            "handlers": {
                "avlcomms": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": level_name,
                    "formatter": "structured" if json_output else "plain",
                }
            },
            "root": {
                "level": level_name,
                "handlers": ["avlcomms"],
            },
        }
    )

    logging.getLogger("avlcomms").debug("Logging configured at level %s", level_name)


__all__ = ["StructuredLogFormatter", "configure_logging"]
