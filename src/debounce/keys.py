"""Alert identity derivation — pure functions, never raise."""

from __future__ import annotations

from src.core.types import UNKNOWN, AlertEvent

STATE_INFIX = "state"


def state_family_prefix(event: AlertEvent) -> str:
    """Prefix shared by every state-transition key of the event's target."""
    return f"{event.target.type}:{event.target.id}:{STATE_INFIX}:"


def derive_key(event: AlertEvent) -> str:
    """Map an alert to the identity used for coalescing.

    State transitions are keyed by destination state so that repeated
    transitions into the same state coalesce while transitions into
    different states stay distinct. Everything else is keyed by level.
    """
    if event.is_state_transition:
        return state_family_prefix(event) + event.to_state
    return f"{event.target.type}:{event.target.id}:{event.level or UNKNOWN}"
