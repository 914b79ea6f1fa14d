"""
Configuration surface for the world feed.

Values come from defaults, ``WILLOWFINDER_*`` environment variables (a ``.env``
file is honored through python-dotenv) and explicit overrides, in that order.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

ENV_PREFIX = "WILLOWFINDER_"
_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ConfigError(ValueError):
    """Raised when configuration values are invalid."""


class WillowFinderConfig(BaseModel):
    """Runtime settings for scanning, overlay and the broadcast endpoint."""

    model_config = {"frozen": True}

    enable_websocket: bool = True
    host: str = "127.0.0.1"
    port: int = 8765

    highlight_color: str = "#00FF00"
    bank_highlight_color: str = "#FFFF00"
    mining_highlight_color: str = "#00FFFF"
    show_distance: bool = True

    outbound_queue_size: int = 16
    ping_interval: Optional[float] = 20.0
    ping_timeout: Optional[float] = 20.0
    send_timeout: float = 10.0

    tick_budget_ms: float = 50.0
    chat_capacity: int = 10
    log_dir: Optional[Path] = None

    @field_validator("highlight_color", "bank_highlight_color", "mining_highlight_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        if not _COLOR_PATTERN.match(value):
            raise ValueError(f"expected a #RRGGBB color, got {value!r}")
        return value.upper()

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 <= value <= 65535:
            raise ValueError(f"port out of range: {value}")
        return value

    @field_validator("outbound_queue_size", "chat_capacity")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def websocket_url(self) -> str:
        return f"ws://{self.host}:{self.port}"


def _read_environment(environ: Dict[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for field_name in WillowFinderConfig.model_fields:
        raw = environ.get(ENV_PREFIX + field_name.upper())
        if raw is None:
            continue
        if raw.strip().lower() in ("none", "") and field_name in ("ping_interval", "ping_timeout", "log_dir"):
            values[field_name] = None
        else:
            values[field_name] = raw
    return values


def load_config(
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Dict[str, str]] = None,
    use_dotenv: bool = True,
) -> WillowFinderConfig:
    """Build the configuration from the environment and explicit overrides.

    Args:
        overrides: Values that take precedence over the environment. ``None``
            entries are ignored so unset CLI options fall through.
        environ: Mapping to read variables from instead of ``os.environ``.
        use_dotenv: Whether to load a ``.env`` file into the process environment first.

    Returns:
        WillowFinderConfig: The validated configuration.

    Raises:
        ConfigError: If any value fails validation.
    """
    if use_dotenv and environ is None:
        load_dotenv()
    values = _read_environment(dict(os.environ) if environ is None else environ)
    if overrides:
        values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return WillowFinderConfig(**values)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
