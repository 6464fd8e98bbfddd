"""Conversation state models.

A dialog's inter-step memory is a tagged union: every command owns exactly
one data class, and ``ConversationState`` refuses data that belongs to a
different command.
"""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum

from .messages import Surface

COMPLETED = -1


class Command(str, Enum):
    """Multi-step top-level commands."""

    REGISTER_ITEM = "new_item"
    LOG_EVENT = "log"
    REPORT = "report"


@dataclass(frozen=True)
class RegisterItemData:
    """Register-item keeps nothing between steps."""


@dataclass(frozen=True)
class LogEventData:
    """Values collected by the log-event dialog."""

    day: date | None = None
    item_name: str | None = None
    awaiting_custom_date: bool = False
    page: int = 0


@dataclass(frozen=True)
class ReportData:
    """Values collected by the report dialog."""

    start: date | None = None
    end: date | None = None
    period_label: str | None = None
    awaiting_month: bool = False
    awaiting_year: bool = False


DialogData = RegisterItemData | LogEventData | ReportData

_DATA_TYPES: dict[Command, type] = {
    Command.REGISTER_ITEM: RegisterItemData,
    Command.LOG_EVENT: LogEventData,
    Command.REPORT: ReportData,
}


@dataclass(frozen=True)
class ConversationState:
    """Dialog state of one user."""

    command: Command
    step: int
    data: DialogData
    context: Surface

    def __post_init__(self) -> None:
        expected = _DATA_TYPES[self.command]
        if not isinstance(self.data, expected):
            raise TypeError(
                f"{self.command.value} dialog expects {expected.__name__}, "
                f"got {type(self.data).__name__}"
            )

    @classmethod
    def new(cls, command: Command, context: Surface) -> "ConversationState":
        """Fresh state at step 1."""
        return cls(command=command, step=1, data=_DATA_TYPES[command](), context=context)

    @property
    def is_completed(self) -> bool:
        return self.step == COMPLETED

    def advance(self, step: int, **changes) -> "ConversationState":
        """Return a copy at ``step`` with ``changes`` applied to the data."""
        data = replace(self.data, **changes) if changes else self.data
        return replace(self, step=step, data=data)

    def update(self, **changes) -> "ConversationState":
        """Return a copy on the same step with ``changes`` applied to the data."""
        return self.advance(self.step, **changes)

    def completed(self) -> "ConversationState":
        return replace(self, step=COMPLETED)
