"""
Subscription hub: fan-out of incident snapshots, system status and unit-addition events.

Delivery is synchronous and in registration order. Incident and status
subscribers get the latest value immediately on subscribe (replay); unit-addition
subscribers only see future events. A failing observer is logged and skipped so
the others still receive the event.
"""

import logging
from typing import Callable

from core.models import Incident, SystemStatus, UnitAddition

logger = logging.getLogger("dispatch_watch.publisher")

IncidentsCallback = Callable[[list[Incident]], None]
StatusCallback = Callable[[SystemStatus], None]
UnitsCallback = Callable[[str, list[str]], None]


class SubscriptionHub:
    def __init__(self, incidents: list[Incident] | None = None, status: SystemStatus | None = None):
        self._incidents: list[Incident] = list(incidents or [])
        self._status: SystemStatus = status or SystemStatus()
        self._incident_subs: list[IncidentsCallback] = []
        self._status_subs: list[StatusCallback] = []
        self._unit_subs: list[UnitsCallback] = []

    @property
    def incidents(self) -> list[Incident]:
        return list(self._incidents)

    @property
    def status(self) -> SystemStatus:
        return self._status

    def subscribe_incidents(self, callback: IncidentsCallback) -> Callable[[], None]:
        self._incident_subs.append(callback)
        self._deliver(callback, "incidents", list(self._incidents))
        return self._unsubscriber(self._incident_subs, callback)

    def subscribe_status(self, callback: StatusCallback) -> Callable[[], None]:
        self._status_subs.append(callback)
        self._deliver(callback, "status", self._status)
        return self._unsubscriber(self._status_subs, callback)

    def subscribe_unit_additions(self, callback: UnitsCallback) -> Callable[[], None]:
        self._unit_subs.append(callback)
        return self._unsubscriber(self._unit_subs, callback)

    def publish_incidents(self, incidents: list[Incident]) -> None:
        self._incidents = list(incidents)
        for cb in list(self._incident_subs):
            self._deliver(cb, "incidents", list(self._incidents))

    def publish_status(self, status: SystemStatus) -> None:
        self._status = status
        for cb in list(self._status_subs):
            self._deliver(cb, "status", status)

    def publish_unit_addition(self, event: UnitAddition) -> None:
        for cb in list(self._unit_subs):
            self._deliver(cb, "units_added", event.incident_id, list(event.units))

    def subscriber_counts(self) -> dict[str, int]:
        return {
            "incidents": len(self._incident_subs),
            "status": len(self._status_subs),
            "units_added": len(self._unit_subs),
        }

    @staticmethod
    def _deliver(callback, channel: str, *args) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("subscriber failed channel=%s", channel)

    @staticmethod
    def _unsubscriber(subs: list, callback) -> Callable[[], None]:
        def unsubscribe() -> None:
            if callback in subs:
                subs.remove(callback)
        return unsubscribe
