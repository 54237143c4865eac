"""Exception hierarchy for the alert relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all relay errors."""


class ConfigError(RelayError):
    """Configuration values that the relay cannot run with."""
