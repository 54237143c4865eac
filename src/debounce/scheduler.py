"""Per-key timer management on top of the DebounceTable.

All methods must be called from the event loop that owns the table. Timer
callbacks run on the same loop, so arm, cancel and fire never interleave.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Callable

import structlog

from src.core.types import AlertEvent
from src.debounce.table import DebounceTable, PendingEntry

logger = structlog.get_logger(__name__)

FireCallback = Callable[[PendingEntry], None]


class DebounceScheduler:
    """Arms, replaces and cancels one timer per alert key.

    ``on_fire`` is called at most once per :meth:`arm`, after the entry has
    already been removed from the table.
    """

    def __init__(
        self,
        table: DebounceTable,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._table = table
        self._loop = loop
        self._generations = itertools.count(1)

    @property
    def table(self) -> DebounceTable:
        return self._table

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        """Current time on the scheduler's clock (event-loop time)."""
        return self._get_loop().time()

    # ── Arm / cancel ─────────────────────────────────────────────

    def arm(
        self,
        key: str,
        payload: AlertEvent,
        duration: float,
        on_fire: FireCallback,
    ) -> PendingEntry:
        """Start (or restart) the timer for *key* with the given payload."""
        loop = self._get_loop()
        previous = self._table.pop(key)
        if previous is not None:
            previous.handle.cancel()

        now = loop.time()
        generation = next(self._generations)
        handle = loop.call_later(duration, self._fire, key, generation, on_fire)
        entry = PendingEntry(
            key=key,
            payload=payload,
            handle=handle,
            deadline=now + duration,
            armed_at=now,
            updates=previous.updates + 1 if previous else 1,
            first_armed_at=previous.first_armed_at if previous else now,
            generation=generation,
        )
        self._table.put(entry)
        return entry

    def cancel(self, key: str) -> bool:
        """Cancel the timer for *key*. Returns False if nothing was pending."""
        entry = self._table.pop(key)
        if entry is None:
            return False
        entry.handle.cancel()
        return True

    def cancel_prefix(self, prefix: str) -> list[str]:
        """Cancel every pending key starting with *prefix*; returns the keys."""
        cancelled = []
        for key in self._table.keys_with_prefix(prefix):
            if self.cancel(key):
                cancelled.append(key)
        return cancelled

    def close(self) -> int:
        """Cancel all pending timers. Returns how many were dropped."""
        dropped = 0
        for key in self._table:
            if self.cancel(key):
                dropped += 1
        return dropped

    # ── Timer callback ───────────────────────────────────────────

    def _fire(self, key: str, generation: int, on_fire: FireCallback) -> None:
        entry = self._table.get(key)
        if entry is None or entry.generation != generation:
            # Superseded or cancelled after the loop had already queued us.
            logger.debug("stale_timer_ignored", key=key, generation=generation)
            return
        self._table.pop(key)
        on_fire(entry)
