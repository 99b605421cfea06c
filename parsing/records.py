"""
Raw CAD record -> canonical Incident with seed unit history.

Malformed fields fall back instead of failing: a bad call time becomes "now",
a bad closed time is treated as absent, blank locations fall back to the ward
label. Only a record with no identifier is dropped, since it cannot be keyed.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from core.models import (
    ALL_UNITS,
    HistoryAction,
    Incident,
    IncidentStatus,
    RawFields,
    UnitHistoryEntry,
    UnitStatus,
)
from parsing.classifier import classify
from parsing.units import parse_units

logger = logging.getLogger("dispatch_watch.parsing.records")

MOTOR_VEHICLE_PREFIX = "Motor Vehicle Incident – "
INITIAL_DISPATCH_NOTE = "Initial dispatch"
RESOLVED_NOTE = "Incident resolved - all units available"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (with or without offset / Z). Naive values are UTC. Bad input -> None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("unparseable timestamp %r", s)
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _text(record: dict, key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _location(neighbourhood: str, ward: str, fallback: str) -> str:
    if neighbourhood:
        return neighbourhood
    if ward:
        return f"Ward {ward}"
    return fallback


def normalize_record(record: dict, now: datetime) -> Optional[Incident]:
    """Convert one raw feed record into an Incident. Returns None if the record has no identifier."""
    if not isinstance(record, dict):
        logger.warning("skipping non-object record type=%s", type(record).__name__)
        return None
    incident_id = _text(record, "incident_number")
    if not incident_id:
        logger.warning("skipping record without incident_number keys=%s", sorted(record.keys()))
        return None

    raw_type = _text(record, "incident_type")
    raw_units = _text(record, "units")
    neighbourhood = _text(record, "neighbourhood")
    ward = _text(record, "ward")
    mvi_flag = record.get("motor_vehicle_incident")

    call_time = parse_timestamp(record.get("call_time")) or now
    closed_time = parse_timestamp(record.get("closed_time"))

    units = parse_units(raw_units)
    incident_type, priority = classify(raw_type, len(units))
    if mvi_flag == "YES":
        incident_type = MOTOR_VEHICLE_PREFIX + incident_type

    status = IncidentStatus.RESOLVED if closed_time is not None else IncidentStatus.DISPATCHED

    history = [
        UnitHistoryEntry(
            timestamp=call_time,
            action=HistoryAction.ADDED,
            unit=unit,
            status=UnitStatus.DISPATCHED,
            notes=INITIAL_DISPATCH_NOTE,
        )
        for unit in units
    ]
    if closed_time is not None:
        history.append(resolution_entry(closed_time))

    return Incident(
        id=incident_id,
        timestamp=call_time,
        type=incident_type,
        priority=priority,
        status=status,
        neighborhood=_location(neighbourhood, ward, "Unknown"),
        address=_location(neighbourhood, ward, "Location not specified"),
        units=tuple(units),
        unit_history=tuple(history),
        closed_time=closed_time,
        raw=RawFields(
            incident_type=raw_type,
            district=ward,
            units=raw_units,
            call_time=record.get("call_time"),
            closed_time=record.get("closed_time"),
            motor_vehicle_incident=mvi_flag,
        ),
    )


def resolution_entry(ts: datetime) -> UnitHistoryEntry:
    """Synthetic incident-wide entry appended once when an incident resolves."""
    return UnitHistoryEntry(
        timestamp=ts,
        action=HistoryAction.STATUS_CHANGE,
        unit=ALL_UNITS,
        status=UnitStatus.AVAILABLE,
        notes=RESOLVED_NOTE,
    )


def normalize_batch(records: Iterable[dict], now: datetime) -> list[Incident]:
    """Normalize a feed batch. Records without an id are skipped; for duplicate ids the first wins."""
    out: list[Incident] = []
    seen: set[str] = set()
    skipped = 0
    for record in records or []:
        incident = normalize_record(record, now)
        if incident is None or incident.id in seen:
            skipped += 1
            continue
        seen.add(incident.id)
        out.append(incident)
    logger.info("normalized batch incidents=%d skipped=%d", len(out), skipped)
    return out
