"""CoalescingEngine — decides whether and when each alert is notified."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import structlog

from src.core.exceptions import ConfigError
from src.core.types import AlertEvent
from src.debounce.keys import derive_key, state_family_prefix
from src.debounce.scheduler import DebounceScheduler
from src.debounce.table import DebounceTable, PendingEntry
from src.debounce.types import Decision, DecisionStatus

# Dedicated structured logger for decision records.
decision_logger = structlog.get_logger("decision_log")

logger = structlog.get_logger(__name__)

NotifyFn = Callable[[AlertEvent], Awaitable[bool]]


class CoalescingEngine:
    """Debounces alerts per identity and hands the final payload to a notifier.

    Rules, in precedence order:

    1. A transition into the healthy state cancels every pending
       state-transition alert for the same target.
    2. A resolved alert cancels the pending alert with its own key and is
       never notified itself.
    3. A repeat of a pending key replaces its payload and restarts its window.
    4. A new key is armed unless the table is full, in which case the new
       alert is rejected and existing entries are kept.

    ``admit`` must run on the event loop that owns the engine. Notifier calls
    run in background tasks after the entry has left the table, so a slow or
    failing delivery never blocks admission.

    Usage::

        engine = CoalescingEngine(notify=notifier.notify, window_secs=60)
        decision = engine.admit(event)
        ...
        await engine.close()
    """

    def __init__(
        self,
        notify: NotifyFn,
        window_secs: float = 60,
        max_pending: int = 1000,
        healthy_state: str = "running",
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if window_secs <= 0:
            raise ConfigError(f"debounce window must be positive, got {window_secs}")
        if max_pending <= 0:
            raise ConfigError(f"max_pending must be positive, got {max_pending}")

        self._notify = notify
        self._window_secs = float(window_secs)
        self._healthy_state = healthy_state.lower()
        self._table = DebounceTable(max_entries=max_pending)
        self._scheduler = DebounceScheduler(self._table, loop=loop)
        self._inflight: set[asyncio.Task[None]] = set()
        self._stats: dict[str, int] = {
            "received": 0,
            "scheduled": 0,
            "superseded": 0,
            "suppressed": 0,
            "bulk_cancelled": 0,
            "rejected": 0,
            "fired": 0,
            "delivered": 0,
            "delivery_failed": 0,
        }

    # ── Properties ────────────────────────────────────────────────

    @property
    def window_secs(self) -> float:
        return self._window_secs

    @property
    def max_pending(self) -> int:
        return self._table.max_entries

    @property
    def table(self) -> DebounceTable:
        return self._table

    def __len__(self) -> int:
        return len(self._table)

    def pending(self, key: str) -> PendingEntry | None:
        """The pending entry for *key*, if any."""
        return self._table.get(key)

    # ── Admission ────────────────────────────────────────────────

    def admit(self, event: AlertEvent) -> Decision:
        """Apply the coalescing rules to one alert and return the outcome."""
        key = derive_key(event)
        self._stats["received"] += 1
        decision = self._decide(event, key)
        self._log_decision(event, decision)
        return decision

    def schedule_alert(self, event: AlertEvent) -> dict[str, Any]:
        """Admit *event* and return the decision as a JSON-ready dict."""
        return self.admit(event).model_dump(mode="json")

    def _decide(self, event: AlertEvent, key: str) -> Decision:
        if event.is_state_transition and event.to_state.lower() == self._healthy_state:
            cancelled = self._scheduler.cancel_prefix(state_family_prefix(event))
            self._stats["bulk_cancelled"] += len(cancelled)
            return Decision(
                status=DecisionStatus.BULK_CANCELLED,
                key=key,
                detail="recovered",
                count=len(cancelled),
                cancelled_keys=cancelled,
            )

        if event.resolved:
            removed = self._scheduler.cancel(key)
            self._stats["suppressed"] += 1
            return Decision(
                status=DecisionStatus.SUPPRESSED,
                key=key,
                detail="resolved",
                count=1 if removed else 0,
                cancelled_keys=[key] if removed else [],
            )

        superseding = key in self._table
        if not superseding and self._table.is_full():
            self._stats["rejected"] += 1
            return Decision(
                status=DecisionStatus.REJECTED,
                key=key,
                detail="capacity",
                count=len(self._table),
            )

        entry = self._scheduler.arm(key, event, self._window_secs, self._on_fire)
        if superseding:
            self._stats["superseded"] += 1
        else:
            self._stats["scheduled"] += 1
        return Decision(
            status=DecisionStatus.SCHEDULED,
            key=key,
            detail="superseded" if superseding else "new",
            count=entry.updates,
        )

    def _log_decision(self, event: AlertEvent, decision: Decision) -> None:
        decision_logger.info(
            "decision",
            status=decision.status.value,
            key=decision.key,
            detail=decision.detail,
            count=decision.count,
            level=event.level,
            event_type=event.event_type,
            resolved=event.resolved,
            pending=len(self._table),
        )
        if decision.status == DecisionStatus.REJECTED:
            logger.warning(
                "alert_rejected_capacity",
                key=decision.key,
                max_pending=self._table.max_entries,
            )

    # ── Firing ───────────────────────────────────────────────────

    def _on_fire(self, entry: PendingEntry) -> None:
        self._stats["fired"] += 1
        logger.info(
            "alert_fired",
            key=entry.key,
            updates=entry.updates,
            level=entry.payload.level,
        )
        task = asyncio.get_running_loop().create_task(self._deliver(entry))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _deliver(self, entry: PendingEntry) -> None:
        try:
            ok = await self._notify(entry.payload)
        except Exception:
            self._stats["delivery_failed"] += 1
            logger.exception("alert_notify_error", key=entry.key)
            return

        if ok:
            self._stats["delivered"] += 1
        else:
            self._stats["delivery_failed"] += 1
            logger.warning("alert_notify_failed", key=entry.key)

    # ── Introspection ────────────────────────────────────────────

    def snapshot(self) -> dict[str, object]:
        """Point-in-time view of the table and counters."""
        oldest = min((e.first_armed_at for e in self._table.entries()), default=None)
        return {
            "pending": len(self._table),
            "oldest_pending_secs": (
                round(self._scheduler.now() - oldest, 3) if oldest is not None else 0.0
            ),
            "max_pending": self._table.max_entries,
            "window_secs": self._window_secs,
            "inflight": len(self._inflight),
            **self._stats,
        }

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self, timeout: float = 5.0) -> None:
        """Drop pending timers and wait briefly for in-flight deliveries."""
        dropped = self._scheduler.close()
        if dropped:
            logger.warning("pending_alerts_dropped", count=dropped)

        if not self._inflight:
            return
        _, still_running = await asyncio.wait(set(self._inflight), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("inflight_deliveries_cancelled", count=len(still_running))
