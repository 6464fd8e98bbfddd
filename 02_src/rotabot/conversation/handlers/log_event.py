"""/log: record that a person acted on an item on some day.

Step 1 waits for a date (buttons, or typed ``YYYY-MM-DD`` after "Custom
date"), step 2 for an item from a paged two-column grid, step 3 for the
actor.
"""

import re
from datetime import date, datetime, timedelta

from ...logging_config import get_logger
from ...models import (
    Button,
    Command,
    ConversationState,
    Item,
    OutboundMessage,
    Person,
    Surface,
)
from ...storage import IStorage, StorageError
from .base import (
    Clock,
    DialogStateError,
    StepResult,
    abort,
    columns,
    reply,
    require,
    stay,
)

logger = get_logger(__name__)

PAGE_SIZE = 20

DATE_OFFSETS = {
    "today": 0,
    "yesterday": 1,
    "2daysago": 2,
    "3daysago": 3,
}

DATE_KEYBOARD = [
    [Button("📆 Today", "date:today"), Button("⏮ Yesterday", "date:yesterday")],
    [Button("⏮⏮ 2 days ago", "date:2daysago"), Button("⏮⏮⏮ 3 days ago", "date:3daysago")],
    [Button("📝 Custom date", "date:custom")],
]

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

INVALID_DATE = "❌ Invalid date format. Please use YYYY-MM-DD\n\nExample: 2024-01-15"
USE_BUTTONS = "Please use the buttons above."
INVALID_ITEM = "❌ Invalid item selection. Please choose an item from the list."


def parse_exact_date(text: str) -> date | None:
    """Parse ``YYYY-MM-DD`` and nothing else, not even surrounding spaces."""
    if not _DATE_RE.fullmatch(text):
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def last_page(item_count: int) -> int:
    return max((item_count - 1) // PAGE_SIZE, 0)


def clamp_page(page: int, item_count: int) -> int:
    return min(max(page, 0), last_page(item_count))


def item_keyboard(items: list[Item], page: int) -> list[list[Button]]:
    """Two-column grid of ``item:<index>`` buttons for one page."""
    page = clamp_page(page, len(items))
    start = page * PAGE_SIZE

    buttons = [
        Button(item.name, f"item:{start + offset}")
        for offset, item in enumerate(items[start : start + PAGE_SIZE])
    ]
    rows = columns(buttons, 2)

    nav = []
    if page > 0:
        nav.append(Button("◀ Prev", f"page:{page - 1}"))
    if page < last_page(len(items)):
        nav.append(Button("Next ▶", f"page:{page + 1}"))
    if nav:
        rows.append(nav)
    return rows


def actor_keyboard(people: list[Person]) -> list[list[Button]]:
    """One ``actor:<name>`` button per row."""
    return [
        [Button(f"{'🧑' if person.leads else '🧒'} {person.name}", f"actor:{person.name}")]
        for person in people
    ]


class LogEventDialog:
    """Date → item → actor, then create the event."""

    command = Command.LOG_EVENT
    button_prefixes = ("date", "page", "item", "actor")

    def __init__(self, storage: IStorage, today: Clock = date.today):
        self._storage = storage
        self._today = today

    async def begin(self, surface: Surface) -> StepResult:
        try:
            items = await self._storage.list_readable_items()
        except StorageError as e:
            logger.error("Failed to list readable items: %s", e)
            return StepResult(None, [OutboundMessage(surface, "⚠️ Could not load items. Please try again later.")])

        if not items:
            return StepResult(
                None,
                [OutboundMessage(surface, "No readable items available. Please add items first with /new_item")],
            )

        state = ConversationState.new(self.command, surface)
        return StepResult(state, [OutboundMessage(surface, "📅 Select the date:", DATE_KEYBOARD)])

    async def on_text(self, state: ConversationState, text: str) -> StepResult:
        if state.step == 1:
            if not state.data.awaiting_custom_date:
                return stay(state, "Please pick a date using the buttons above.")
            day = parse_exact_date(text)
            if day is None:
                return stay(state, INVALID_DATE)
            return await self._show_items(state, day)

        if state.step in (2, 3):
            return stay(state, USE_BUTTONS)

        raise DialogStateError(f"log has no step {state.step}")

    async def on_button(
        self, state: ConversationState, prefix: str, value: str
    ) -> StepResult:
        expected_step = {"date": 1, "page": 2, "item": 2, "actor": 3}[prefix]
        if state.step != expected_step:
            logger.info(
                "Ignoring %s button on step %s",
                prefix,
                state.step,
                extra={"context": {"payload": f"{prefix}:{value}"}},
            )
            return StepResult(state)

        if prefix == "date":
            return await self._select_date(state, value)
        if prefix == "page":
            return await self._turn_page(state, value)
        if prefix == "item":
            return await self._select_item(state, value)
        return await self._select_actor(state, value)

    async def _select_date(self, state: ConversationState, value: str) -> StepResult:
        if value == "custom":
            return StepResult(
                state.update(awaiting_custom_date=True),
                [reply(state, "📝 Please enter the date in format YYYY-MM-DD\n\nExample: 2024-01-15")],
            )

        offset = DATE_OFFSETS.get(value)
        if offset is None:
            logger.warning("Unknown date option %r", value)
            return StepResult(state)

        # Read the clock now, not when the dialog started
        return await self._show_items(state, self._today() - timedelta(days=offset))

    async def _show_items(self, state: ConversationState, day: date) -> StepResult:
        try:
            items = await self._storage.list_readable_items()
        except StorageError as e:
            logger.error("Failed to list readable items: %s", e)
            return abort(state, "load items")

        if not items:
            return StepResult(
                state.completed(),
                [reply(state, "No readable items available. Please add items first with /new_item")],
            )

        new_state = state.advance(2, day=day, awaiting_custom_date=False, page=0)
        return StepResult(new_state, [reply(state, "📚 Select an item:", item_keyboard(items, 0))])

    async def _turn_page(self, state: ConversationState, value: str) -> StepResult:
        try:
            page = int(value)
        except ValueError:
            return StepResult(state)

        try:
            items = await self._storage.list_readable_items()
        except StorageError as e:
            logger.error("Failed to list readable items: %s", e)
            return abort(state, "load items")

        page = clamp_page(page, len(items))
        return StepResult(
            state.update(page=page),
            [reply(state, "📚 Select an item:", item_keyboard(items, page))],
        )

    async def _select_item(self, state: ConversationState, value: str) -> StepResult:
        try:
            index = int(value)
        except ValueError:
            return stay(state, INVALID_ITEM)

        # Re-read the list: the grid may be older than the current items
        try:
            items = await self._storage.list_readable_items()
        except StorageError as e:
            logger.error("Failed to list readable items: %s", e)
            return abort(state, "load items")

        if not 0 <= index < len(items):
            logger.info(
                "Item index out of range",
                extra={"context": {"index": index, "item_count": len(items)}},
            )
            return StepResult(
                state,
                [reply(state, INVALID_ITEM, item_keyboard(items, state.data.page))],
            )

        try:
            people = await self._storage.list_people()
        except StorageError as e:
            logger.error("Failed to list people: %s", e)
            return abort(state, "load people")

        if not people:
            return StepResult(
                state.completed(),
                [reply(state, "No people registered yet, nobody to record the event for.")],
            )

        item_name = items[index].name
        return StepResult(
            state.advance(3, item_name=item_name),
            [reply(state, f"📚 {item_name}\n\n👤 Who was it?", actor_keyboard(people))],
        )

    async def _select_actor(self, state: ConversationState, actor_name: str) -> StepResult:
        day = require(state.data.day, "day", state)
        item_name = require(state.data.item_name, "item_name", state)

        if not actor_name:
            return stay(state, "❌ Invalid selection. Please choose a person from the list.")

        try:
            await self._storage.create_event(day, item_name, actor_name)
        except StorageError as e:
            logger.error(
                "Failed to create event: %s",
                e,
                extra={"context": {"date": day.isoformat(), "item": item_name, "actor": actor_name}},
            )
            return abort(state, "record the event")

        logger.info(
            "Event recorded",
            extra={"context": {"date": day.isoformat(), "item": item_name, "actor": actor_name}},
        )
        text = (
            "✅ Event recorded!\n\n"
            f"📅 Date: {day.isoformat()}\n"
            f"📚 Item: {item_name}\n"
            f"👤 By: {actor_name}"
        )
        return StepResult(state.completed(), [reply(state, text)])
