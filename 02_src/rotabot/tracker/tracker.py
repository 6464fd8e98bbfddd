"""Tracker implementation for creating TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..logging_config import get_logger
from ..models import TraceEvent
from ..storage import IStorage, StorageError

logger = get_logger(__name__)


class ITracker(Protocol):
    """Creating TraceEvents for dialog lifecycle changes."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Creates TraceEvents via direct track() calls."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage.

        Tracing never fails the caller: a storage error is logged and the
        event is lost.
        """
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self._storage.save_trace_event(trace_event)
        except StorageError as e:
            logger.warning(
                "Failed to save trace event %s: %s",
                event_type,
                e,
                extra={"context": {"actor": actor, "data": data}},
            )
