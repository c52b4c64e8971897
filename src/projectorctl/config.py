"""
Service configuration for the projector HTTP façade.

Settings come from an optional YAML file; anything the file leaves out falls
back to :mod:`~projectorctl.constants`::

    device: /dev/ttyUSB0
    timeout: 2.0
    host: 0.0.0.0
    port: 43880
    log_level: INFO
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .constants import (
    DEFAULT_DEVICE,
    DEFAULT_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TIMEOUT,
)
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ServerConfig:
    """Validated service configuration."""

    device: str = DEFAULT_DEVICE
    timeout: float = DEFAULT_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_HTTP_PORT
    log_level: str = DEFAULT_LOG_LEVEL


def load_config(path: str | Path) -> ServerConfig:
    """Load and validate a service configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated :class:`ServerConfig`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ConfigError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    unknown = sorted(set(raw) - set(ServerConfig.__dataclass_fields__))
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(map(str, unknown))}")

    config = ServerConfig(
        device=_require_str(raw, "device", DEFAULT_DEVICE),
        timeout=_require_timeout(raw),
        host=_require_str(raw, "host", DEFAULT_HOST),
        port=_require_port(raw),
        log_level=_require_log_level(raw),
    )
    logger.debug("Loaded config from %s: %s", path, config)
    return config


def _require_str(raw: dict, key: str, default: str) -> str:
    value = raw.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{key}' must be a non-empty string")
    return value


def _require_timeout(raw: dict) -> float:
    value = raw.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'timeout' must be a positive number, got {value!r}")
    return float(value)


def _require_port(raw: dict) -> int:
    value = raw.get("port", DEFAULT_HTTP_PORT)
    if isinstance(value, bool) or not isinstance(value, int) or not (1 <= value <= 65535):
        raise ConfigError(f"'port' must be an integer 1-65535, got {value!r}")
    return value


def _require_log_level(raw: dict) -> str:
    value = raw.get("log_level", DEFAULT_LOG_LEVEL)
    if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
        raise ConfigError(f"'log_level' must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
    return value.upper()
