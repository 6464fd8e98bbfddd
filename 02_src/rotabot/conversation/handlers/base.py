"""Shared pieces of the dialog step handlers."""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Protocol, Sequence, TypeVar

from ...models import Button, Command, ConversationState, OutboundMessage, Surface

T = TypeVar("T")

Clock = Callable[[], date]

GENERIC_ERROR = "⚠️ Something went wrong. Please try again."
STORAGE_ERROR = "⚠️ Could not {action}. Please try again later."


class DialogStateError(Exception):
    """A step needs a value that an earlier step should have stored."""


@dataclass
class StepResult:
    """Outcome of one step: the next state and the replies to send.

    ``state`` is None when no dialog should remain (one-shot answers, or a
    command that could not start).
    """

    state: ConversationState | None
    messages: list[OutboundMessage] = field(default_factory=list)


class IDialogHandler(Protocol):
    """State machine of one multi-step command."""

    command: Command
    button_prefixes: tuple[str, ...]

    async def begin(self, surface: Surface) -> StepResult:
        """Entry point, run when the command token arrives."""
        ...

    async def on_text(self, state: ConversationState, text: str) -> StepResult:
        """Handle free text while the dialog is active."""
        ...

    async def on_button(
        self, state: ConversationState, prefix: str, value: str
    ) -> StepResult:
        """Handle a button click routed to one of ``button_prefixes``."""
        ...


def require(value: T | None, name: str, state: ConversationState) -> T:
    """Return a value stored by an earlier step or fail the dialog."""
    if value is None:
        raise DialogStateError(
            f"{state.command.value} step {state.step} is missing {name!r}"
        )
    return value


def reply(
    state: ConversationState,
    text: str,
    buttons: list[list[Button]] | None = None,
) -> OutboundMessage:
    """A message addressed to the surface the dialog was started from."""
    return OutboundMessage(surface=state.context, text=text, buttons=buttons)


def stay(state: ConversationState, text: str) -> StepResult:
    """Re-prompt without changing the state."""
    return StepResult(state, [reply(state, text)])


def abort(state: ConversationState, action: str) -> StepResult:
    """End the dialog after a collaborator failure."""
    return StepResult(state.completed(), [reply(state, STORAGE_ERROR.format(action=action))])


def columns(buttons: Sequence[Button], width: int = 2) -> list[list[Button]]:
    """Lay buttons out in rows of ``width``."""
    return [list(buttons[i : i + width]) for i in range(0, len(buttons), width)]
