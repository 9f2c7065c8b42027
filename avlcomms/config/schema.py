"""Marshmallow schema for LinkConfig validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import Schema, fields, post_load, pre_load, validate

from .const import (
    COMMS_CHANNEL_CHOICES,
    DEFAULT_COMMS_CHANNEL,
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_HEXDUMP_PACKETS,
    DEFAULT_MAX_BUFFER_BYTES,
    DEFAULT_RESYNC_ON_ERROR,
    MIN_BUFFER_BYTES,
)
from .model import LinkConfig


class LinkConfigSchema(Schema):
    """Declarative validation schema for link configuration."""

    resync_on_error = fields.Bool(load_default=DEFAULT_RESYNC_ON_ERROR)
    max_buffer_bytes = fields.Int(
        load_default=DEFAULT_MAX_BUFFER_BYTES,
        validate=validate.Range(min=MIN_BUFFER_BYTES),
    )
    default_comms_channel = fields.Str(
        load_default=DEFAULT_COMMS_CHANNEL,
        validate=validate.OneOf(COMMS_CHANNEL_CHOICES),
    )
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)
    hexdump_packets = fields.Bool(load_default=DEFAULT_HEXDUMP_PACKETS)

    @pre_load
    def normalize_channel(self, data: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        channel = data.get("default_comms_channel")
        if isinstance(channel, str):
            data = dict(data)
            data["default_comms_channel"] = channel.strip().lower()
        return data

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> LinkConfig:
        return LinkConfig(**data)
