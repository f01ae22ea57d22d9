"""Load node options from a JSON file."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from udpnode.config.schema import NodeOptions
from udpnode.errors import InvalidArgumentError


def load_options(path: str | Path) -> NodeOptions:
    """Read ``NodeOptions`` from *path*.

    A missing file yields empty options so every field takes its default.
    """
    path = Path(path).expanduser()
    if not path.exists():
        logger.debug("[UdpNode/Config] no config at {}, using defaults", path)
        return NodeOptions()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        raise InvalidArgumentError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Config file {path} must contain a JSON object")

    try:
        options = NodeOptions.model_validate(data)
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid config in {path}: {exc}") from exc

    logger.info("[UdpNode/Config] loaded options from {}", path)
    return options
