"""Domain types for outbound chat notifications."""

from __future__ import annotations

import time
from enum import IntEnum

from pydantic import BaseModel, Field


class Severity(IntEnum):
    """Alert severity — ordered so comparisons work naturally."""

    OK = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class AlertMessage(BaseModel):
    """Rendered alert ready for delivery to chat channels."""

    severity: Severity
    level: str
    title: str
    text: str
    url: str = ""
    target_name: str = ""
    resolved: bool = False
    fields: dict[str, str] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)
