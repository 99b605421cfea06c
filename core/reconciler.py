"""
Reconciliation: diff a freshly normalized batch against the current store contents.

The feed is a snapshot of currently tracked incidents, so an id missing from a
batch is carried forward untouched, never deleted. Upstream is authoritative for
status; transitions are recorded as reported, not validated.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from core.models import (
    HistoryAction,
    Incident,
    IncidentStatus,
    UnitAddition,
    UnitHistoryEntry,
    UnitStatus,
)
from parsing.classifier import escalate_priority
from parsing.records import resolution_entry

logger = logging.getLogger("dispatch_watch.reconciler")

UNIT_ADDED_NOTE = "Unit added to incident"
UNIT_REMOVED_NOTE = "Unit removed from incident"


@dataclass
class IncidentDelta:
    added_units: list = field(default_factory=list)
    removed_units: list = field(default_factory=list)
    status_changed: bool = False
    closed_time_changed: bool = False
    resolved_now: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.added_units or self.removed_units or self.status_changed or self.closed_time_changed)


@dataclass
class ReconcileResult:
    incidents: list  # merged order, not yet truncated to the store cap
    new_ids: list = field(default_factory=list)
    updated_ids: list = field(default_factory=list)
    unit_additions: list = field(default_factory=list)  # UnitAddition

    @property
    def changed(self) -> bool:
        return bool(self.new_ids or self.updated_ids)


def diff_incident(stored: Incident, incoming: Incident) -> IncidentDelta:
    stored_units = set(stored.units)
    incoming_units = set(incoming.units)
    return IncidentDelta(
        added_units=[u for u in incoming.units if u not in stored_units],
        removed_units=[u for u in stored.units if u not in incoming_units],
        status_changed=stored.status != incoming.status,
        closed_time_changed=stored.closed_time != incoming.closed_time,
        # a manual RESOLVED carries no closed time, so the upstream close still counts
        resolved_now=(
            incoming.status == IncidentStatus.RESOLVED
            and (stored.status != IncidentStatus.RESOLVED or stored.closed_time is None)
        ),
    )


def apply_delta(stored: Incident, incoming: Incident, delta: IncidentDelta, now: datetime) -> Incident:
    """Build the updated incident: history appended, units/status/priority/closed_time from incoming."""
    history = list(stored.unit_history)
    for unit in delta.added_units:
        history.append(UnitHistoryEntry(
            timestamp=now,
            action=HistoryAction.ADDED,
            unit=unit,
            status=UnitStatus.DISPATCHED,
            notes=UNIT_ADDED_NOTE,
        ))
    for unit in delta.removed_units:
        history.append(UnitHistoryEntry(
            timestamp=now,
            action=HistoryAction.REMOVED,
            unit=unit,
            notes=UNIT_REMOVED_NOTE,
        ))
    if delta.resolved_now:
        history.append(resolution_entry(incoming.closed_time or now))

    return dataclasses.replace(
        stored,
        units=incoming.units,
        status=incoming.status,
        priority=escalate_priority(incoming.type, len(incoming.units), incoming.priority),
        closed_time=incoming.closed_time,
        unit_history=tuple(history),
    )


def reconcile(current: Iterable[Incident], batch: Iterable[Incident], now: datetime) -> ReconcileResult:
    """
    Merge order: truly new (batch order) ++ existing ids present in the batch
    (batch order, updated or not) ++ stored incidents absent from the batch
    (previous order). Pure: the caller installs result.incidents into the store.
    """
    current = list(current)
    existing = {inc.id: inc for inc in current}
    result = ReconcileResult(incidents=[])
    fresh: list[Incident] = []
    touched: list[Incident] = []
    batch_ids: set[str] = set()

    for incoming in batch:
        if incoming.id in batch_ids:
            continue
        batch_ids.add(incoming.id)

        stored = existing.get(incoming.id)
        if stored is None:
            fresh.append(incoming)
            result.new_ids.append(incoming.id)
            continue

        delta = diff_incident(stored, incoming)
        if not delta.changed:
            touched.append(stored)
            continue

        updated = apply_delta(stored, incoming, delta, now)
        touched.append(updated)
        result.updated_ids.append(incoming.id)
        if delta.added_units:
            result.unit_additions.append(UnitAddition(incoming.id, tuple(delta.added_units)))
        logger.info(
            "incident updated id=%s added=%s removed=%s status=%s",
            incoming.id, ",".join(delta.added_units) or "-", ",".join(delta.removed_units) or "-",
            incoming.status.value,
        )

    carried = [inc for inc in current if inc.id not in batch_ids]
    result.incidents = fresh + touched + carried
    return result
