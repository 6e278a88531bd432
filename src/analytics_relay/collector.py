"""FastAPI application - development analytics collector.

Implements the receiving side of the batch contract so the relay can be
run end-to-end locally and exercised in integration tests. It keeps
everything in memory; it is not a production collector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator


logger = logging.getLogger(__name__)


# Request/response models
class EventModel(BaseModel):
    type: str = ""
    data: str = ""

    @field_validator("type", "data", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class EventsPayload(BaseModel):
    """Batch body POSTed by the relay."""
    events: list[EventModel] = []


class IngestResponse(BaseModel):
    status: str
    accepted: int


class HealthResponse(BaseModel):
    status: str
    batches_received: int
    events_received: int


@dataclass
class CollectorState:
    """What the collector has received, plus failure injection."""
    batches: list[list[dict[str, str]]] = field(default_factory=list)

    # Answer this status instead of accepting (e.g. 503 to exercise retries)
    fail_with_status: int | None = None

    # How many upcoming requests to fail (None = every request while set)
    fail_remaining: int | None = None

    def should_fail(self) -> int | None:
        if self.fail_with_status is None:
            return None
        if self.fail_remaining is None:
            return self.fail_with_status
        if self.fail_remaining <= 0:
            return None
        self.fail_remaining -= 1
        return self.fail_with_status

    @property
    def events(self) -> list[dict[str, str]]:
        return [event for batch in self.batches for event in batch]


def create_collector_app(state: CollectorState | None = None) -> FastAPI:
    """Create a collector app; pass ``state`` to inspect or inject failures."""
    state = state or CollectorState()

    app = FastAPI(
        title="Analytics Collector",
        description="Development collector for the analytics relay batch format.",
        version="0.1.0",
    )
    app.state.collector = state

    @app.post("/api/events", response_model=IngestResponse)
    async def ingest(payload: EventsPayload):
        status = state.should_fail()
        if status is not None:
            logger.warning(f"Rejecting batch of {len(payload.events)} events with {status}")
            raise HTTPException(status_code=status, detail="Injected failure")

        batch = [event.model_dump() for event in payload.events]
        state.batches.append(batch)
        logger.info(f"Received batch of {len(batch)} events")
        return IngestResponse(status="accepted", accepted=len(batch))

    @app.get("/api/events")
    async def list_events():
        return {"events": state.events, "batches": len(state.batches)}

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="healthy",
            batches_received=len(state.batches),
            events_received=len(state.events),
        )

    return app


def run(host: str = "127.0.0.1", port: int = 8080) -> None:
    """Run the collector with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(create_collector_app(), host=host, port=port)
