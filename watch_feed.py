#!/usr/bin/env python3
"""
Console watcher: runs the reconciliation engine without the API and logs what changes.

  python watch_feed.py           # poll forever (POLL_INTERVAL_SECONDS, default 30s)
  python watch_feed.py --once    # single cycle, print a summary, exit
"""

import argparse
import asyncio
import logging
import os

from dotenv import load_dotenv

from analytics.incident_stats import call_type_counts, incident_stats
from core.config import EngineConfig
from core.engine import ReconciliationEngine, build_engine
from core.scheduler import PollScheduler

load_dotenv(override=True)

LOG = logging.getLogger("dispatch_watch.watch")


def attach_loggers(engine: ReconciliationEngine) -> None:
    seen: set[str] = set()

    def on_incidents(incidents):
        for incident in incidents:
            if incident.id in seen:
                continue
            seen.add(incident.id)
            LOG.info(
                "incident %s %s priority=%s status=%s units=%s where=%s",
                incident.id, incident.type, incident.priority.value, incident.status.value,
                ",".join(incident.units) or "-", incident.neighborhood,
            )

    def on_status(status):
        LOG.info("status feed=%s store=%s", status.feed.value, status.store.value)

    def on_units(incident_id, units):
        LOG.info("units added incident=%s units=%s", incident_id, ",".join(units))

    engine.subscribe_incidents(on_incidents)
    engine.subscribe_status(on_status)
    engine.subscribe_unit_additions(on_units)


def print_summary(engine: ReconciliationEngine) -> None:
    incidents = engine.snapshot()
    stats = incident_stats(incidents)
    print(f"Active: {stats['active']}  Critical: {stats['critical']}  "
          f"Resolved: {stats['resolved']}  Units deployed: {stats['units_deployed']}")
    for incident_type, count in call_type_counts(incidents):
        print(f"  {count:3d}  {incident_type}")


async def run(once: bool) -> None:
    config = EngineConfig.from_env()
    engine = build_engine(config)
    attach_loggers(engine)
    if once:
        report = await engine.refresh()
        if not report.ok:
            LOG.error("cycle failed: %s", report.error)
        print_summary(engine)
        return
    scheduler = PollScheduler(engine, interval=config.poll_interval)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


def main():
    parser = argparse.ArgumentParser(description="Watch the CAD dispatch feed")
    parser.add_argument("--once", action="store_true", help="run a single cycle and exit")
    args = parser.parse_args()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        asyncio.run(run(args.once))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
