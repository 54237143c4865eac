"""Domain types for inbound alert webhooks.

Payloads follow the Komodo alerter shape::

    {
        "level": "CRITICAL",
        "resolved": false,
        "target": {"type": "stack", "id": "abc123"},
        "data": {
            "type": "StackStateChange",
            "data": {"name": "web", "from": "running", "to": "unhealthy"}
        }
    }

Parsing is deliberately lenient: a relay must never drop an alert because an
optional field is missing, null, or of an unexpected scalar type.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Placeholder used wherever an identifying field is missing.
UNKNOWN = "unknown"

# ``data.type`` values describing a transition between resource states.
STATE_TRANSITION_TYPES: frozenset[str] = frozenset(
    {"StateTransition", "ContainerStateChange", "StackStateChange"}
)


def _text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class AlertTarget(BaseModel):
    """Resource the alert is about."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = UNKNOWN
    id: str = UNKNOWN

    @field_validator("type", "id", mode="before")
    @classmethod
    def _placeholder(cls, value: Any) -> str:
        return _text_or_none(value) or UNKNOWN


class AlertData(BaseModel):
    """Event-type discriminant plus its type-specific payload."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = ""
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _type_text(cls, value: Any) -> str:
        return _text_or_none(value) or ""

    @field_validator("data", mode="before")
    @classmethod
    def _data_map(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}


class AlertEvent(BaseModel):
    """A single alert received from the monitoring platform."""

    model_config = ConfigDict(frozen=True, extra="allow")

    level: str | None = None
    resolved: bool = False
    target: AlertTarget = Field(default_factory=AlertTarget)
    data: AlertData = Field(default_factory=AlertData)

    @field_validator("level", mode="before")
    @classmethod
    def _level_text(cls, value: Any) -> str | None:
        return _text_or_none(value)

    @field_validator("resolved", mode="before")
    @classmethod
    def _resolved_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    @field_validator("target", mode="before")
    @classmethod
    def _target_map(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, AlertTarget)) else {}

    @field_validator("data", mode="before")
    @classmethod
    def _data_map(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, AlertData)) else {}

    # ── Derived views ────────────────────────────────────────────

    @property
    def event_type(self) -> str:
        return self.data.type

    @property
    def is_state_transition(self) -> bool:
        return self.data.type in STATE_TRANSITION_TYPES

    @property
    def to_state(self) -> str:
        """Destination state of a transition, or the placeholder."""
        return _text_or_none(self.data.data.get("to")) or UNKNOWN

    @property
    def from_state(self) -> str:
        return _text_or_none(self.data.data.get("from")) or UNKNOWN

    @property
    def name(self) -> str:
        return _text_or_none(self.data.data.get("name")) or "Unnamed"
