"""
FastAPI backend: exposes the reconciliation engine's snapshot, status, history and
mutation hooks over HTTP, and its subscriptions over a WebSocket.
The poll scheduler runs inside the app lifespan on the same event loop as the handlers.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from analytics.incident_stats import call_type_counts, incident_stats
from core.config import EngineConfig
from core.engine import ReconciliationEngine, build_engine
from core.models import IncidentStatus
from core.scheduler import PollScheduler

load_dotenv(override=True)

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("dispatch_watch.api")

NO_CACHE_HEADERS = {"Cache-Control": "no-store, no-cache, must-revalidate", "Pragma": "no-cache"}
WS_QUEUE_SIZE = 32  # per-client backlog; oldest messages dropped beyond this


# -----------------------------------------------------------------------------
# Request models
# -----------------------------------------------------------------------------
class StatusUpdate(BaseModel):
    status: IncidentStatus


# -----------------------------------------------------------------------------
# Wiring
# -----------------------------------------------------------------------------
def get_engine(request: Request) -> ReconciliationEngine:
    return request.app.state.engine


def get_scheduler(request: Request) -> PollScheduler:
    return request.app.state.scheduler


router = APIRouter()


@router.get("/health")
async def health(engine: ReconciliationEngine = Depends(get_engine)):
    return JSONResponse(
        content={
            "status": "ok",
            "feed": engine.status.feed.value,
            "incidents": len(engine.store),
            "cycles": engine.cycles,
        },
        headers=NO_CACHE_HEADERS,
    )


@router.get("/status")
async def get_status(engine: ReconciliationEngine = Depends(get_engine)):
    return JSONResponse(content=engine.status.to_dict(), headers=NO_CACHE_HEADERS)


@router.get("/incidents")
async def list_incidents(active_only: bool = False, engine: ReconciliationEngine = Depends(get_engine)):
    """Current snapshot, store order (most recently touched first)."""
    incidents = engine.snapshot()
    if active_only:
        incidents = [i for i in incidents if not i.is_resolved]
    return JSONResponse(
        content={
            "incident_ids": [i.id for i in incidents],
            "incidents": [i.to_dict() for i in incidents],
        },
        headers=NO_CACHE_HEADERS,
    )


@router.get("/incident/{incident_id}")
async def get_incident(incident_id: str, engine: ReconciliationEngine = Depends(get_engine)):
    incident = engine.get_incident(incident_id)
    if incident is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    return JSONResponse(content=incident.to_dict(), headers=NO_CACHE_HEADERS)


@router.get("/incident/{incident_id}/history")
async def get_incident_history(incident_id: str, engine: ReconciliationEngine = Depends(get_engine)):
    """Unit history in storage order (append order)."""
    incident = engine.get_incident(incident_id)
    if incident is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    return JSONResponse(
        content={"incident_id": incident_id, "unit_history": [e.to_dict() for e in incident.unit_history]},
        headers=NO_CACHE_HEADERS,
    )


@router.post("/incident/{incident_id}/status")
async def update_incident_status(
    incident_id: str,
    body: StatusUpdate,
    engine: ReconciliationEngine = Depends(get_engine),
):
    updated = engine.update_incident_status(incident_id, body.status)
    if updated is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    return JSONResponse(content=updated.to_dict(), headers=NO_CACHE_HEADERS)


@router.post("/refresh")
async def force_refresh(scheduler: PollScheduler = Depends(get_scheduler)):
    report = await scheduler.force_refresh()
    return JSONResponse(content=report.to_dict(), headers=NO_CACHE_HEADERS)


@router.post("/simulate")
async def simulate_incident(engine: ReconciliationEngine = Depends(get_engine)):
    incident = engine.add_simulated_incident()
    return JSONResponse(content=incident.to_dict(), headers=NO_CACHE_HEADERS)


@router.get("/stats")
async def get_stats(engine: ReconciliationEngine = Depends(get_engine)):
    incidents = engine.snapshot()
    content = incident_stats(incidents)
    content["call_types"] = [{"type": t, "count": n} for t, n in call_type_counts(incidents)]
    content["resolved_call_types"] = [
        {"type": t, "count": n} for t, n in call_type_counts(incidents, resolved=True)
    ]
    return JSONResponse(content=content, headers=NO_CACHE_HEADERS)


def enqueue_latest(queue: asyncio.Queue, message: dict) -> None:
    """put_nowait that drops the oldest queued message when a slow client has filled the queue."""
    if queue.full():
        queue.get_nowait()
        logger.warning("ws client behind; dropped oldest message")
    queue.put_nowait(message)


@router.websocket("/ws")
async def stream(ws: WebSocket):
    """Push incidents/status/units_added messages; starts with the incidents and status replays."""
    engine: ReconciliationEngine = ws.app.state.engine
    await ws.accept()
    queue: asyncio.Queue = asyncio.Queue(maxsize=WS_QUEUE_SIZE)
    unsubscribers = [
        engine.subscribe_incidents(
            lambda incidents: enqueue_latest(
                queue, {"type": "incidents", "incidents": [i.to_dict() for i in incidents]}
            )
        ),
        engine.subscribe_status(
            lambda status: enqueue_latest(queue, {"type": "status", "status": status.to_dict()})
        ),
        engine.subscribe_unit_additions(
            lambda incident_id, units: enqueue_latest(
                queue, {"type": "units_added", "incident_id": incident_id, "units": units}
            )
        ),
    ]
    logger.info("ws client connected")

    async def pump():
        while True:
            await ws.send_json(await queue.get())

    sender = asyncio.create_task(pump())
    try:
        while True:
            await ws.receive_text()  # client messages are ignored
    except WebSocketDisconnect:
        logger.info("ws client disconnected")
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning("ws send failed: %s", e)


def create_app(
    engine: Optional[ReconciliationEngine] = None,
    config: Optional[EngineConfig] = None,
    poll: bool = True,
) -> FastAPI:
    """Build the app around an engine (a fresh one from env config if not given)."""
    config = config or EngineConfig.from_env()
    engine = engine or build_engine(config)
    scheduler = PollScheduler(engine, interval=config.poll_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if poll:
            scheduler.start()
        yield
        await scheduler.stop()

    app = FastAPI(title="Dispatch Watch API", lifespan=lifespan)
    app.state.engine = engine
    app.state.scheduler = scheduler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
