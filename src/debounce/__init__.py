"""Alert debouncing — identity derivation, pending table, coalescing policy."""

from src.debounce.engine import CoalescingEngine, NotifyFn
from src.debounce.keys import derive_key, state_family_prefix
from src.debounce.scheduler import DebounceScheduler
from src.debounce.table import DebounceTable, PendingEntry
from src.debounce.types import Decision, DecisionStatus

__all__ = [
    "CoalescingEngine",
    "DebounceScheduler",
    "DebounceTable",
    "Decision",
    "DecisionStatus",
    "NotifyFn",
    "PendingEntry",
    "derive_key",
    "state_family_prefix",
]
