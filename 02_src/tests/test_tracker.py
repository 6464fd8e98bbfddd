"""Tests for Tracker."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from rotabot.tracker import Tracker


class TestTrackerTrack:
    """Tests for Tracker.track() method."""

    @pytest.mark.asyncio
    async def test_track_creates_event(self, tracker, storage):
        """Test that track() creates a TraceEvent."""
        await tracker.track(
            event_type="dialog_started",
            actor="dispatcher",
            data={"user_id": 1, "command": "log"},
        )

        events = await storage.get_trace_events()
        assert len(events) == 1
        assert events[0].event_type == "dialog_started"
        assert events[0].actor == "dispatcher"
        assert events[0].data == {"user_id": 1, "command": "log"}

    @pytest.mark.asyncio
    async def test_track_generates_id_and_timestamp(self, tracker, storage):
        before = datetime.now(timezone.utc)
        await tracker.track(event_type="dialog_completed", actor="dispatcher", data={})
        after = datetime.now(timezone.utc)

        events = await storage.get_trace_events()
        assert events[0].id
        assert before <= events[0].timestamp <= after

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_raised(self, failing_storage):
        """Tracing never fails the caller."""
        tracker = Tracker(failing_storage)

        await tracker.track(event_type="dialog_started", actor="dispatcher", data={})

        failing_storage.save_trace_event.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        storage = Mock()
        storage.save_trace_event.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await Tracker(storage).track(event_type="x", actor="y", data={})
