"""
Reconciliation engine: fetch -> normalize -> reconcile -> publish, one cycle at a time.

An explicit instance built with its collaborators (feed client, clock, retention
cap, fetch timeout), so several engines can coexist. Cycles are serialized with an
asyncio.Lock: a forced refresh that arrives during a scheduled cycle waits for it.
"""

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from core.config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_INCIDENTS, EngineConfig
from core.models import (
    Health,
    HistoryAction,
    Incident,
    IncidentStatus,
    Priority,
    SystemStatus,
    UnitHistoryEntry,
    UnitStatus,
)
from core.publisher import SubscriptionHub
from core.reconciler import reconcile
from core.store import IncidentStore
from feed.client import CADFeedClient
from parsing.records import normalize_batch

logger = logging.getLogger("dispatch_watch.engine")


class FeedSource(Protocol):
    async def fetch(self) -> list[dict]:
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleReport:
    ok: bool
    fetched: int = 0
    new: int = 0
    updated: int = 0
    evicted: int = 0
    error: Optional[str] = None

    def to_dict(self):
        return dataclasses.asdict(self)


class ReconciliationEngine:
    def __init__(
        self,
        feed: FeedSource,
        clock: Callable[[], datetime] = utc_now,
        max_incidents: int = DEFAULT_MAX_INCIDENTS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        self.feed = feed
        self.clock = clock
        self.fetch_timeout = fetch_timeout
        self.store = IncidentStore(max_incidents=max_incidents)
        self.hub = SubscriptionHub()
        self._cycle_lock = asyncio.Lock()
        self.cycles = 0

    # ------------------------------------------------------------------
    # Observer hooks
    # ------------------------------------------------------------------
    def subscribe_incidents(self, callback):
        """Immediate replay of the current snapshot, then every published snapshot."""
        return self.hub.subscribe_incidents(callback)

    def subscribe_status(self, callback):
        """Immediate replay of the current status, then every status change."""
        return self.hub.subscribe_status(callback)

    def subscribe_unit_additions(self, callback):
        """Future-only (incident_id, added_units) events."""
        return self.hub.subscribe_unit_additions(callback)

    @property
    def status(self) -> SystemStatus:
        return self.hub.status

    def snapshot(self) -> list[Incident]:
        return self.store.snapshot()

    def get_incident(self, incident_id: str) -> Optional[Incident]:
        return self.store.get(incident_id)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    async def refresh(self) -> CycleReport:
        """Run one full cycle. Never raises for fetch problems; they surface as feed=ERROR."""
        async with self._cycle_lock:
            return await self._run_cycle()

    async def force_refresh(self) -> CycleReport:
        logger.info("force refresh requested")
        return await self.refresh()

    async def _run_cycle(self) -> CycleReport:
        self.cycles += 1
        try:
            records = await asyncio.wait_for(self.feed.fetch(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning("feed fetch timed out after %.1fs", self.fetch_timeout)
            self._set_feed_health(Health.ERROR)
            return CycleReport(ok=False, error="timeout")
        except asyncio.CancelledError:
            self._set_feed_health(Health.ERROR)
            raise
        except Exception as e:
            logger.warning("feed fetch failed: %s", e)
            self._set_feed_health(Health.ERROR)
            return CycleReport(ok=False, error=str(e))

        now = self.clock()
        batch = normalize_batch(records, now)
        result = reconcile(self.store.snapshot(), batch, now)
        order_before = self.store.ids()
        evicted = self.store.replace_all(result.incidents)

        # the hub's replay copy must match store order, which can change with no incident changing
        if result.changed or evicted or self.store.ids() != order_before:
            self.hub.publish_incidents(self.store.snapshot())
        for event in result.unit_additions:
            self.hub.publish_unit_addition(event)
        self._set_feed_health(Health.ONLINE)

        report = CycleReport(
            ok=True,
            fetched=len(records),
            new=len(result.new_ids),
            updated=len(result.updated_ids),
            evicted=len(evicted),
        )
        logger.info(
            "cycle done fetched=%d new=%d updated=%d evicted=%d stored=%d",
            report.fetched, report.new, report.updated, report.evicted, len(self.store),
        )
        return report

    def _set_feed_health(self, health: Health) -> None:
        if self.hub.status.feed != health:
            logger.info("feed status %s -> %s", self.hub.status.feed.value, health.value)
            self.hub.publish_status(dataclasses.replace(self.hub.status, feed=health))

    # ------------------------------------------------------------------
    # Mutations from the surrounding application
    # ------------------------------------------------------------------
    def update_incident_status(self, incident_id: str, status: IncidentStatus) -> Optional[Incident]:
        """
        Overwrite one incident's status (manual resolution). No history entry is
        written; the next upstream batch that disagrees wins. Returns None if unknown.
        """
        current = self.store.get(incident_id)
        if current is None:
            logger.debug("update_incident_status not_found id=%s", incident_id)
            return None
        updated = dataclasses.replace(current, status=IncidentStatus(status))
        self.store.swap(updated)
        logger.info("incident status set id=%s %s -> %s", incident_id, current.status.value, updated.status.value)
        self.hub.publish_incidents(self.store.snapshot())
        return updated

    def add_simulated_incident(self) -> Incident:
        """Insert a synthetic structure fire at the head of the store (for testing alert paths)."""
        now = self.clock()
        units = ("E1", "L1", "15")
        stamp = int(time.time() * 1000)
        while f"SIM-{stamp}" in self.store:
            stamp += 1
        incident = Incident(
            id=f"SIM-{stamp}",
            timestamp=now,
            type="Structure Fire",
            priority=Priority.CRITICAL,
            status=IncidentStatus.DISPATCHED,
            neighborhood="Downtown",
            address="123 Main Street",
            units=units,
            unit_history=tuple(
                UnitHistoryEntry(
                    timestamp=now,
                    action=HistoryAction.ADDED,
                    unit=u,
                    status=UnitStatus.DISPATCHED,
                    notes="Simulated dispatch",
                )
                for u in units
            ),
        )
        self.store.add_front(incident)
        logger.info("simulated incident added id=%s", incident.id)
        self.hub.publish_incidents(self.store.snapshot())
        return incident


def build_engine(config: EngineConfig) -> ReconciliationEngine:
    """Engine wired to the live CAD feed from configuration."""
    feed = CADFeedClient(url=config.feed_url, limit=config.feed_limit, timeout=config.fetch_timeout)
    return ReconciliationEngine(feed, max_incidents=config.max_incidents, fetch_timeout=config.fetch_timeout)
