"""/report: top items over a period, optionally for a single follower."""

import calendar
import re
from datetime import date

from ...logging_config import get_logger
from ...models import Button, Command, ConversationState, ItemStat, OutboundMessage, Role, Surface
from ...storage import IStorage, StorageError
from .base import Clock, DialogStateError, StepResult, abort, reply, require, stay

logger = get_logger(__name__)

TOP_LIMIT = 10

RELATIVE_PERIODS = {
    "last2": 2,
    "last3": 3,
    "last6": 6,
    "last12": 12,
}

PERIOD_KEYBOARD = [
    [Button("📅 Specific month", "period:month"), Button("📅 Calendar year", "period:year")],
    [Button("⏮ Last 2 months", "period:last2"), Button("⏮ Last 3 months", "period:last3")],
    [Button("⏮ Last 6 months", "period:last6"), Button("⏮ Last 12 months", "period:last12")],
]

_MONTH_RE = re.compile(r"([0-9]{4})-([0-9]{2})")
_YEAR_RE = re.compile(r"[0-9]{4}")

INVALID_MONTH = "❌ Invalid month format. Please use YYYY-MM\n\nExample: 2024-11"
INVALID_YEAR = "❌ Invalid year. Please enter a valid year\n\nExample: 2024"


def months_ago(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the length of that month."""
    year, month_index = divmod(day.year * 12 + day.month - 1 - months, 12)
    month = month_index + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def parse_month(text: str) -> tuple[date, date] | None:
    """``YYYY-MM`` → first and last day of that month."""
    match = _MONTH_RE.fullmatch(text)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month <= 12:
        return None
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def parse_year(text: str) -> tuple[date, date] | None:
    """``YYYY`` (1900-2100) → Jan 1 and Dec 31 of that year."""
    if not _YEAR_RE.fullmatch(text):
        return None
    year = int(text)
    if not 1900 <= year <= 2100:
        return None
    return date(year, 1, 1), date(year, 12, 31)


def render_report(
    stats: list[ItemStat], start: date, end: date, period_label: str, actor: str | None
) -> str:
    lines = [
        "📊 Statistics",
        "",
        f"📅 Period: {period_label}",
        f"   {start.isoformat()} - {end.isoformat()}",
        "",
        f"👥 Who: {actor or 'All followers'}",
        "",
        f"🏆 Top {TOP_LIMIT} items:",
        "",
    ]
    for i, stat in enumerate(stats, start=1):
        noun = "event" if stat.count == 1 else "events"
        lines.append(f"{i}. {stat.item_name} - {stat.count} {noun}")
    return "\n".join(lines)


class ReportDialog:
    """Period → actor filter, then render the ranked list."""

    command = Command.REPORT
    button_prefixes = ("period", "filter")

    def __init__(self, storage: IStorage, today: Clock = date.today):
        self._storage = storage
        self._today = today

    async def begin(self, surface: Surface) -> StepResult:
        state = ConversationState.new(self.command, surface)
        return StepResult(
            state,
            [OutboundMessage(surface, "📊 Select the time period:", PERIOD_KEYBOARD)],
        )

    async def on_text(self, state: ConversationState, text: str) -> StepResult:
        if state.step == 1:
            if state.data.awaiting_month:
                window = parse_month(text)
                if window is None:
                    return stay(state, INVALID_MONTH)
                start, end = window
                return await self._choose_filter(state, start, end, start.strftime("%B %Y"))

            if state.data.awaiting_year:
                window = parse_year(text)
                if window is None:
                    return stay(state, INVALID_YEAR)
                start, end = window
                return await self._choose_filter(state, start, end, f"Year {start.year}")

            return stay(state, "Please pick a period using the buttons above.")

        if state.step == 2:
            return stay(state, "Please use the buttons above.")

        raise DialogStateError(f"report has no step {state.step}")

    async def on_button(
        self, state: ConversationState, prefix: str, value: str
    ) -> StepResult:
        expected_step = 1 if prefix == "period" else 2
        if state.step != expected_step:
            logger.info(
                "Ignoring %s button on step %s",
                prefix,
                state.step,
                extra={"context": {"payload": f"{prefix}:{value}"}},
            )
            return StepResult(state)

        if prefix == "period":
            return await self._select_period(state, value)
        return await self._send_report(state, value)

    async def _select_period(self, state: ConversationState, value: str) -> StepResult:
        if value == "month":
            return StepResult(
                state.update(awaiting_month=True, awaiting_year=False),
                [reply(state, "📝 Please enter the month in format YYYY-MM\n\nExample: 2024-11")],
            )
        if value == "year":
            return StepResult(
                state.update(awaiting_month=False, awaiting_year=True),
                [reply(state, "📝 Please enter the year\n\nExample: 2024")],
            )

        months = RELATIVE_PERIODS.get(value)
        if months is None:
            logger.warning("Unknown period option %r", value)
            return StepResult(state)

        today = self._today()
        return await self._choose_filter(
            state, months_ago(today, months), today, f"Last {months} months"
        )

    async def _choose_filter(
        self, state: ConversationState, start: date, end: date, label: str
    ) -> StepResult:
        try:
            people = await self._storage.list_people()
        except StorageError as e:
            logger.error("Failed to list people: %s", e)
            return abort(state, "load people")

        rows = [[Button("👥 All followers", "filter:")]]
        rows.extend(
            [Button(f"🧒 {person.name}", f"filter:{person.name}")]
            for person in people
            if person.role is Role.FOLLOWS
        )

        new_state = state.advance(
            2,
            start=start,
            end=end,
            period_label=label,
            awaiting_month=False,
            awaiting_year=False,
        )
        return StepResult(new_state, [reply(state, "👥 Select who to report on:", rows)])

    async def _send_report(self, state: ConversationState, value: str) -> StepResult:
        start = require(state.data.start, "start", state)
        end = require(state.data.end, "end", state)
        label = require(state.data.period_label, "period_label", state)
        actor = value or None

        try:
            stats = await self._storage.get_ranked_items(TOP_LIMIT, start, end, actor)
        except StorageError as e:
            logger.error(
                "Failed to get ranked items: %s",
                e,
                extra={"context": {"start": start.isoformat(), "end": end.isoformat(), "actor": actor}},
            )
            return abort(state, "build the report")

        if not stats:
            logger.info(
                "No events for report period",
                extra={"context": {"start": start.isoformat(), "end": end.isoformat(), "actor": actor}},
            )
            return StepResult(
                state.completed(),
                [reply(state, "No events found for the selected period.")],
            )

        logger.info(
            "Generated report",
            extra={"context": {"item_count": len(stats), "actor": actor}},
        )
        return StepResult(
            state.completed(),
            [reply(state, render_report(stats, start, end, label, actor))],
        )
