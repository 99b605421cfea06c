"""Incident state models: canonical incidents, append-only unit history, system status."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

ALL_UNITS = "ALL_UNITS"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class IncidentStatus(str, Enum):
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"
    EN_ROUTE = "EN_ROUTE"
    ON_SCENE = "ON_SCENE"
    RESOLVED = "RESOLVED"


class UnitStatus(str, Enum):
    DISPATCHED = "DISPATCHED"
    EN_ROUTE = "EN_ROUTE"
    ON_SCENE = "ON_SCENE"
    AVAILABLE = "AVAILABLE"


class HistoryAction(str, Enum):
    ADDED = "ADDED"
    REMOVED = "REMOVED"
    STATUS_CHANGE = "STATUS_CHANGE"


class Health(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    ERROR = "ERROR"


def format_ts(ts: Optional[datetime]) -> Optional[str]:
    """ISO-8601 UTC with Z suffix (naive datetimes are taken as UTC)."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class UnitHistoryEntry:
    timestamp: datetime
    action: HistoryAction
    unit: str  # unit code, or ALL_UNITS for incident-wide entries
    status: Optional[UnitStatus] = None
    notes: Optional[str] = None

    def to_dict(self):
        d = {
            "timestamp": format_ts(self.timestamp),
            "action": self.action.value,
            "unit": self.unit,
        }
        if self.status is not None:
            d["status"] = self.status.value
        if self.notes is not None:
            d["notes"] = self.notes
        return d


@dataclass(frozen=True)
class RawFields:
    """Upstream values kept for traceability; never interpreted after normalization."""
    incident_type: str = ""
    district: str = ""
    units: str = ""
    call_time: Optional[str] = None
    closed_time: Optional[str] = None
    motor_vehicle_incident: Optional[str] = None

    def to_dict(self):
        return {
            "incident_type": self.incident_type,
            "district": self.district,
            "responding_units": self.units,
            "call_time": self.call_time,
            "closed_time": self.closed_time,
            "motor_vehicle_incident": self.motor_vehicle_incident,
        }


@dataclass(frozen=True)
class Incident:
    """
    One dispatched call tracked by id. Values are immutable: updates build a new
    Incident with dataclasses.replace and swap it into the store, so readers never
    see a half-updated record.
    """
    id: str
    timestamp: datetime
    type: str
    priority: Priority
    status: IncidentStatus
    neighborhood: str = "Unknown"
    address: str = "Location not specified"
    units: tuple = ()  # unit codes, assignment order, no duplicates
    unit_history: tuple = ()  # UnitHistoryEntry, append-only
    closed_time: Optional[datetime] = None
    raw: RawFields = field(default_factory=RawFields)

    @property
    def is_resolved(self) -> bool:
        return self.status == IncidentStatus.RESOLVED

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": format_ts(self.timestamp),
            "neighborhood": self.neighborhood,
            "address": self.address,
            "units": list(self.units),
            "type": self.type,
            "priority": self.priority.value,
            "status": self.status.value,
            "closed_time": format_ts(self.closed_time),
            "unit_history": [e.to_dict() for e in self.unit_history],
            "raw": self.raw.to_dict(),
        }


@dataclass(frozen=True)
class SystemStatus:
    feed: Health = Health.ONLINE  # scraper health
    store: Health = Health.ONLINE

    def to_dict(self):
        return {"feed": self.feed.value, "store": self.store.value}


@dataclass(frozen=True)
class UnitAddition:
    incident_id: str
    units: tuple

    def to_dict(self):
        return {"incident_id": self.incident_id, "units": list(self.units)}
