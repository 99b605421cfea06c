"""Core incident state: models, bounded store, subscription hub. Engine and scheduler live in core.engine / core.scheduler."""

from core.models import (
    Incident,
    UnitHistoryEntry,
    SystemStatus,
    UnitAddition,
    Priority,
    IncidentStatus,
    HistoryAction,
    UnitStatus,
    Health,
)
from core.store import IncidentStore
from core.publisher import SubscriptionHub

__all__ = [
    "Incident",
    "UnitHistoryEntry",
    "SystemStatus",
    "UnitAddition",
    "Priority",
    "IncidentStatus",
    "HistoryAction",
    "UnitStatus",
    "Health",
    "IncidentStore",
    "SubscriptionHub",
]
