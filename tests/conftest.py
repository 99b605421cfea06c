"""Pytest fixtures for dispatch-watch tests."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.engine import ReconciliationEngine


class FakeClock:
    """Deterministic clock; advance() moves time forward."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 30) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeFeed:
    """Feed client stand-in: each fetch() returns the next queued batch (or raises it if it is an exception)."""

    def __init__(self, batches=None):
        self.batches = list(batches or [])
        self.calls = 0
        self.last = []

    def push(self, batch) -> None:
        self.batches.append(batch)

    async def fetch(self) -> list[dict]:
        self.calls += 1
        if self.batches:
            self.last = self.batches.pop(0)
        if isinstance(self.last, BaseException):
            err, self.last = self.last, []
            raise err
        return list(self.last)


def make_record(
    incident_number="X1",
    call_time="2025-01-15T14:00:00.000",
    incident_type="Structure Fire",
    units="E1, L1",
    neighbourhood="Downtown",
    ward="Daniel McIntyre",
    closed_time=None,
    motor_vehicle_incident=None,
) -> dict:
    """Raw record shaped like the Winnipeg CAD feed."""
    record = {
        "incident_number": incident_number,
        "call_time": call_time,
        "incident_type": incident_type,
        "units": units,
        "neighbourhood": neighbourhood,
        "ward": ward,
    }
    if closed_time is not None:
        record["closed_time"] = closed_time
    if motor_vehicle_incident is not None:
        record["motor_vehicle_incident"] = motor_vehicle_incident
    return record


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 14, 5, tzinfo=timezone.utc))


@pytest.fixture
def feed():
    return FakeFeed()


@pytest.fixture
def engine(feed, clock):
    """Engine over a fake feed and clock, default 100-incident cap."""
    return ReconciliationEngine(feed, clock=clock, fetch_timeout=1.0)


@pytest.fixture
def app_client(engine):
    """FastAPI TestClient around a fresh engine; no background polling."""
    from fastapi.testclient import TestClient
    from api.main import create_app
    return TestClient(create_app(engine=engine, poll=False))
