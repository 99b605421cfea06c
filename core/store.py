"""
Bounded, order-preserving incident store.

Order is cycle-arrival order as decided by reconciliation (head = most recently
touched). Whenever the store holds more than max_incidents, entries are dropped
from the tail. This eviction is lossy: an evicted incident and its unit history
are gone, and if its id shows up again later it is treated as brand new.
"""

import logging
from collections import OrderedDict
from typing import Iterable, Optional

from core.config import DEFAULT_MAX_INCIDENTS
from core.models import Incident

logger = logging.getLogger("dispatch_watch.store")


class IncidentStore:
    def __init__(self, max_incidents: int = DEFAULT_MAX_INCIDENTS):
        if max_incidents < 1:
            raise ValueError("max_incidents must be >= 1")
        self.max_incidents = max_incidents
        self._items: "OrderedDict[str, Incident]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, incident_id) -> bool:
        return incident_id in self._items

    def get(self, incident_id: str) -> Optional[Incident]:
        return self._items.get(incident_id)

    def ids(self) -> list[str]:
        return list(self._items.keys())

    def snapshot(self) -> list[Incident]:
        """Ordered copy of the stored incidents; safe to hand to observers."""
        return list(self._items.values())

    def replace_all(self, incidents: Iterable[Incident]) -> list[str]:
        """
        Install a new ordering. Duplicate ids keep their first occurrence.
        Returns the ids evicted by the cap (tail of the given order).
        """
        ordered: "OrderedDict[str, Incident]" = OrderedDict()
        for incident in incidents:
            if incident.id not in ordered:
                ordered[incident.id] = incident
        self._items = ordered
        return self._evict()

    def swap(self, incident: Incident) -> Incident:
        """Replace the stored value for incident.id in place (same position). Returns the previous value."""
        if incident.id not in self._items:
            raise KeyError(incident.id)
        previous = self._items[incident.id]
        self._items[incident.id] = incident
        return previous

    def add_front(self, incident: Incident) -> list[str]:
        """Insert (or move) an incident to the head. Returns evicted ids."""
        self._items[incident.id] = incident
        self._items.move_to_end(incident.id, last=False)
        return self._evict()

    def _evict(self) -> list[str]:
        evicted = []
        while len(self._items) > self.max_incidents:
            incident_id, _ = self._items.popitem(last=True)
            evicted.append(incident_id)
        if evicted:
            logger.info("store evicted count=%d max=%d", len(evicted), self.max_incidents)
        return evicted
