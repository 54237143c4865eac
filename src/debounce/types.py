"""Outcome types returned by the coalescing engine."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class DecisionStatus(StrEnum):
    """What the engine did with an incoming alert."""

    SCHEDULED = "scheduled"
    SUPPRESSED = "suppressed"
    BULK_CANCELLED = "bulk_cancelled"
    REJECTED = "rejected"


class Decision(BaseModel):
    """Result of admitting one alert.

    ``count`` carries the number of entries removed for ``bulk_cancelled``
    and ``suppressed``, and the table size for ``rejected``.
    """

    status: DecisionStatus
    key: str
    detail: str = ""
    count: int = 0
    cancelled_keys: list[str] = Field(default_factory=list)
