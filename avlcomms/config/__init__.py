"""Configuration helpers for AVL links."""

from .model import LinkConfig
from .settings import build_link_config, load_link_config
from . import logging  # noqa: F401  # pyright: ignore[reportUnusedImport]

__all__ = ["LinkConfig", "build_link_config", "load_link_config"]
