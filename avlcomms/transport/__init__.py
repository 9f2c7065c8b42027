"""Byte-stream transport helpers."""

from .stream import PacketStreamBuffer

__all__ = ["PacketStreamBuffer"]
