"""Tests for the bounded incident store."""

import dataclasses
from datetime import datetime, timezone

import pytest

from core.models import Incident, IncidentStatus, Priority
from core.store import IncidentStore

TS = datetime(2025, 1, 15, 14, 0, tzinfo=timezone.utc)


def incident(incident_id: str) -> Incident:
    return Incident(id=incident_id, timestamp=TS, type="Medical Emergency",
                    priority=Priority.HIGH, status=IncidentStatus.DISPATCHED)


class TestIncidentStore:
    def test_rejects_zero_cap(self):
        with pytest.raises(ValueError):
            IncidentStore(max_incidents=0)

    def test_replace_all_keeps_order(self):
        store = IncidentStore()
        store.replace_all([incident("b"), incident("a"), incident("c")])
        assert store.ids() == ["b", "a", "c"]
        assert len(store) == 3
        assert "a" in store
        assert store.get("a").id == "a"
        assert store.get("zzz") is None

    def test_replace_all_duplicate_first_wins(self):
        store = IncidentStore()
        first = incident("a")
        second = dataclasses.replace(first, status=IncidentStatus.RESOLVED)
        store.replace_all([first, incident("b"), second])
        assert store.ids() == ["a", "b"]
        assert store.get("a") is first

    def test_cap_evicts_tail(self):
        store = IncidentStore(max_incidents=3)
        evicted = store.replace_all([incident(str(i)) for i in range(5)])
        assert store.ids() == ["0", "1", "2"]
        assert evicted == ["4", "3"]

    def test_swap_same_position(self):
        store = IncidentStore()
        store.replace_all([incident("a"), incident("b"), incident("c")])
        updated = dataclasses.replace(store.get("b"), status=IncidentStatus.RESOLVED)
        previous = store.swap(updated)
        assert previous.status == IncidentStatus.DISPATCHED
        assert store.ids() == ["a", "b", "c"]
        assert store.get("b").status == IncidentStatus.RESOLVED

    def test_swap_unknown_raises(self):
        with pytest.raises(KeyError):
            IncidentStore().swap(incident("nope"))

    def test_add_front(self):
        store = IncidentStore(max_incidents=2)
        store.replace_all([incident("a"), incident("b")])
        evicted = store.add_front(incident("new"))
        assert store.ids() == ["new", "a"]
        assert evicted == ["b"]

    def test_snapshot_is_a_copy(self):
        store = IncidentStore()
        store.replace_all([incident("a")])
        snap = store.snapshot()
        snap.clear()
        assert len(store) == 1
