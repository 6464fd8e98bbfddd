"""Commands answered in one message, without a dialog."""

from datetime import date

from ...logging_config import get_logger
from ...models import OutboundMessage, RareItemStat, Surface
from ...storage import IStorage, StorageError
from ..rotation import next_actor
from .base import STORAGE_ERROR, Clock

logger = get_logger(__name__)

LAST_EVENTS_LIMIT = 10
RARE_LIMIT = 10

HELP_TEXT = """Welcome! 📚

Available commands:
/new_item - Register a new item
/log - Record an event
/who_is_next - See whose turn is next
/last - Show the last 10 events
/report - View statistics
/rare - Show rarely used items"""


def _format_rare(stats: list[RareItemStat]) -> list[str]:
    if not stats:
        return ["No data available"]
    lines = []
    for i, stat in enumerate(stats, start=1):
        if stat.last_date is None:
            lines.append(f"{i}. {stat.item_name} (never)")
        else:
            lines.append(
                f"{i}. {stat.item_name} ({stat.days_since} days ago, last: {stat.last_date.isoformat()})"
            )
    return lines


class Commands:
    """Handlers of /start, /who_is_next, /last and /rare."""

    def __init__(self, storage: IStorage, today: Clock = date.today):
        self._storage = storage
        self._today = today

    async def start(self, surface: Surface) -> list[OutboundMessage]:
        return [OutboundMessage(surface, HELP_TEXT)]

    async def who_is_next(self, surface: Surface) -> list[OutboundMessage]:
        try:
            people = await self._storage.list_people()
            if not people:
                return [OutboundMessage(surface, "No people registered yet.")]
            events = await self._storage.get_last_events(1)
        except StorageError as e:
            logger.error("Failed to compute next actor: %s", e)
            return [OutboundMessage(surface, STORAGE_ERROR.format(action="compute the rotation"))]

        last_actor = events[0].actor_name if events else ""
        suggestion = next_actor(people, last_actor)
        if not suggestion:
            return [OutboundMessage(surface, "No followers registered, there is no rotation.")]

        return [OutboundMessage(surface, f"Next: {suggestion}")]

    async def last(self, surface: Surface) -> list[OutboundMessage]:
        try:
            events = await self._storage.get_last_events(LAST_EVENTS_LIMIT)
        except StorageError as e:
            logger.error("Failed to get last events: %s", e)
            return [OutboundMessage(surface, STORAGE_ERROR.format(action="load events"))]

        if not events:
            return [OutboundMessage(surface, "No events recorded yet.")]

        logger.info("Retrieved last events", extra={"context": {"event_count": len(events)}})
        lines = ["Last events:", ""]
        lines.extend(
            f"{i}. {event.date.isoformat()} - {event.item_name} ({event.actor_name})"
            for i, event in enumerate(events, start=1)
        )
        return [OutboundMessage(surface, "\n".join(lines))]

    async def rare(self, surface: Surface) -> list[OutboundMessage]:
        today = self._today()
        try:
            by_followers = await self._storage.get_rarely_read_items(RARE_LIMIT, True, today)
            overall = await self._storage.get_rarely_read_items(RARE_LIMIT, False, today)
        except StorageError as e:
            logger.error("Failed to get rarely used items: %s", e)
            return [OutboundMessage(surface, STORAGE_ERROR.format(action="load statistics"))]

        lines = ["📚 Rarely used items:", "", "🧒 By followers:"]
        lines.extend(_format_rare(by_followers))
        lines.extend(["", "👥 Overall:"])
        lines.extend(_format_rare(overall))
        return [OutboundMessage(surface, "\n".join(lines))]
