"""Core module — config, types, logging."""

from src.core.config import Settings, get_settings, load_settings, reset_settings
from src.core.exceptions import ConfigError, RelayError
from src.core.logging import setup_logging
from src.core.types import (
    STATE_TRANSITION_TYPES,
    UNKNOWN,
    AlertData,
    AlertEvent,
    AlertTarget,
)

__all__ = [
    "STATE_TRANSITION_TYPES",
    "UNKNOWN",
    "AlertData",
    "AlertEvent",
    "AlertTarget",
    "ConfigError",
    "RelayError",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
