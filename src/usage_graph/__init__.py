"""Track which content items reference which, and how often."""

__version__ = "0.1.0"

from .engine import DiffStats, ReferenceDiffEngine
from .errors import InvalidDeletionScopeError, SnapshotMismatchError, UnknownExtractorError, UsageGraphError
from .events import EventDispatcher, UsageEvent
from .ledger import UsageLedger
from .lifecycle import UsageTracker
from .models import DeletionScope, EdgeKey, ExtractedTuple, ItemState, Slot, SlotKind, UsageEdge
from .recompute import RecomputeDriver, RecomputeProgress
from .store import SQLiteLedgerStore
from .tracking import TrackingConfig

__all__ = [
    "__version__",
    "DiffStats",
    "ReferenceDiffEngine",
    "InvalidDeletionScopeError",
    "SnapshotMismatchError",
    "UnknownExtractorError",
    "UsageGraphError",
    "EventDispatcher",
    "UsageEvent",
    "UsageLedger",
    "UsageTracker",
    "DeletionScope",
    "EdgeKey",
    "ExtractedTuple",
    "ItemState",
    "Slot",
    "SlotKind",
    "UsageEdge",
    "RecomputeDriver",
    "RecomputeProgress",
    "SQLiteLedgerStore",
    "TrackingConfig",
]
