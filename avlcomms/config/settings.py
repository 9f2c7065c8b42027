"""Settings loader for AVL links.

Configuration comes from the ``[avlcomms]`` table of a TOML file. The file
path is taken from the argument, then from ``$AVLCOMMS_CONFIG``; with no
file, defaults apply. ``$AVLCOMMS_DEBUG`` forces debug logging on or off.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from marshmallow import ValidationError

from ..util import parse_bool
from .const import CONFIG_PATH_ENV, CONFIG_SECTION, DEBUG_ENV
from .model import LinkConfig
from .schema import LinkConfigSchema

logger = logging.getLogger("avlcomms.config")


def _read_section(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc

    section = document.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ValueError(f"[{CONFIG_SECTION}] in {path} must be a table")
    return dict(section)


def build_link_config(raw: Mapping[str, Any]) -> LinkConfig:
    """Validate raw settings and build a LinkConfig."""
    try:
        return LinkConfigSchema().load(dict(raw))
    except ValidationError as exc:
        problems = "; ".join(f"{key}: {', '.join(map(str, messages))}" for key, messages in _flatten(exc.messages))
        raise ValueError(f"Invalid link configuration: {problems}") from exc


def _flatten(messages: Any) -> list[tuple[str, list[Any]]]:
    if isinstance(messages, dict):
        return [(str(key), value if isinstance(value, list) else [value]) for key, value in messages.items()]
    return [("_schema", messages if isinstance(messages, list) else [messages])]


def load_link_config(path: str | os.PathLike[str] | None = None) -> LinkConfig:
    """Load configuration from TOML/defaults."""
    candidate = path if path is not None else os.environ.get(CONFIG_PATH_ENV)
    raw: dict[str, Any] = {}
    if candidate:
        config_path = Path(candidate)
        if config_path.exists():
            raw = _read_section(config_path)
            logger.debug("Loaded link configuration from %s", config_path)
        else:
            logger.warning("Config file %s not found; using defaults", config_path)

    debug_override = os.environ.get(DEBUG_ENV)
    if debug_override is not None:
        raw["debug_logging"] = parse_bool(debug_override)

    return build_link_config(raw)


__all__ = ["LinkConfig", "build_link_config", "load_link_config"]
