"""DebounceTable — bounded mapping of alert keys to pending notifications."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Iterator

from src.core.types import AlertEvent


@dataclass
class PendingEntry:
    """A notification that has been armed but has not fired yet."""

    key: str
    payload: AlertEvent
    handle: asyncio.TimerHandle
    deadline: float
    armed_at: float
    updates: int = 1
    first_armed_at: float = 0.0
    generation: int = 0


class DebounceTable:
    """Key → PendingEntry mapping with a hard capacity bound.

    The table itself never evicts; callers check :meth:`is_full` before
    inserting a new key. All access happens on the owning event loop.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._max_entries = max_entries
        self._entries: dict[str, PendingEntry] = {}

    # ── Properties ────────────────────────────────────────────────

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def is_full(self) -> bool:
        return len(self._entries) >= self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    # ── Access ────────────────────────────────────────────────────

    def get(self, key: str) -> PendingEntry | None:
        return self._entries.get(key)

    def put(self, entry: PendingEntry) -> None:
        self._entries[entry.key] = entry

    def pop(self, key: str) -> PendingEntry | None:
        return self._entries.pop(key, None)

    def entries(self) -> list[PendingEntry]:
        return list(self._entries.values())

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [k for k in self._entries if k.startswith(prefix)]
