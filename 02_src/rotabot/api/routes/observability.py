"""Observability API routes."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ...app import Application
from ...storage import StorageError


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get dialog lifecycle events with optional filters."""
        after_dt = None
        if after:
            try:
                after_dt = datetime.fromisoformat(after)
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid after timestamp format")

        event_types = [event_type] if event_type else None

        try:
            events = await app.storage.get_trace_events(
                after=after_dt,
                event_types=event_types,
                actor=actor,
                limit=limit,
            )
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": e.id,
                "event_type": e.event_type,
                "actor": e.actor,
                "data": e.data,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in events
        ]

    return router
