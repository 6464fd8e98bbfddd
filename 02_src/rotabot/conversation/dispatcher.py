"""Update dispatcher: the single entry point for inbound events."""

import asyncio
from typing import Awaitable, Callable, Iterable, Protocol

from ..logging_config import get_logger
from ..models import (
    ButtonClick,
    ConversationState,
    InboundEvent,
    OutboundMessage,
    Surface,
    TextInput,
)
from ..tracker import ITracker
from .handlers import (
    GENERIC_ERROR,
    Commands,
    DialogStateError,
    IDialogHandler,
    StepResult,
)
from .state_store import ConversationStateStore

logger = get_logger(__name__)

DENIAL_TEXT = "Sorry, you are not authorized to use this bot."
UNKNOWN_COMMAND_TEXT = "Unknown command. Use /start to see available commands."

OneShot = Callable[[Surface], Awaitable[list[OutboundMessage]]]


class IAuthorizer(Protocol):
    """Decides which users may talk to the bot."""

    def is_allowed(self, user_id: int) -> bool:
        ...


class AllowList:
    """Fixed set of user ids."""

    def __init__(self, user_ids: Iterable[int]):
        self._user_ids = frozenset(user_ids)

    def is_allowed(self, user_id: int) -> bool:
        return user_id in self._user_ids

    def __contains__(self, user_id: int) -> bool:
        return self.is_allowed(user_id)


class IMessenger(Protocol):
    """Outbound side of the messaging gateway."""

    async def send(self, message: OutboundMessage) -> None:
        """Deliver one message."""
        ...

    async def answer_button(self, callback_id: str) -> None:
        """Acknowledge a button click so the client stops waiting."""
        ...


def parse_command(text: str) -> str | None:
    """Return the command name of ``/name@bot args``, or None for plain text."""
    if not text.startswith("/"):
        return None
    parts = text[1:].split(maxsplit=1)
    if not parts:
        return None
    name = parts[0].split("@", 1)[0].lower()
    return name or None


def _describe(event: InboundEvent) -> dict:
    if isinstance(event, TextInput):
        return {"type": "text", "text": event.text, "chat_id": event.surface.chat_id}
    return {"type": "button", "payload": event.payload, "chat_id": event.surface.chat_id}


class Dispatcher:
    """Routes inbound events to commands and dialog step handlers.

    Events of one user are processed one at a time; events of different
    users run concurrently. Nothing raised while handling an event escapes
    ``dispatch``.
    """

    def __init__(
        self,
        states: ConversationStateStore,
        authorizer: IAuthorizer,
        messenger: IMessenger,
        tracker: ITracker,
        dialogs: Iterable[IDialogHandler],
        commands: Commands,
        notify_unauthorized: bool = False,
    ):
        self._states = states
        self._authorizer = authorizer
        self._messenger = messenger
        self._tracker = tracker
        self._notify_unauthorized = notify_unauthorized

        self._dialogs: dict[str, IDialogHandler] = {}
        self._prefixes: dict[str, IDialogHandler] = {}
        for dialog in dialogs:
            self._dialogs[dialog.command.value] = dialog
            for prefix in dialog.button_prefixes:
                self._prefixes[prefix] = dialog

        self._one_shots: dict[str, OneShot] = {
            "start": commands.start,
            "help": commands.start,
            "who_is_next": commands.who_is_next,
            "last": commands.last,
            "rare": commands.rare,
        }

        self._user_locks: dict[int, asyncio.Lock] = {}

    async def dispatch(self, user_id: int, event: InboundEvent) -> None:
        """Handle one inbound event and send the replies."""
        if not self._authorizer.is_allowed(user_id):
            await self._reject(user_id, event)
            return

        if isinstance(event, ButtonClick) and event.callback_id:
            await self._answer_button(event)

        async with self._lock_for(user_id):
            try:
                messages = await self._handle(user_id, event)
            except DialogStateError as e:
                self._states.delete(user_id)
                logger.error(
                    "Dialog aborted: %s",
                    e,
                    extra={"context": {"user_id": user_id, "event": _describe(event)}},
                )
                await self._safe_track("dialog_aborted", {"user_id": user_id, "reason": str(e)})
                messages = [OutboundMessage(event.surface, GENERIC_ERROR)]
            except Exception as e:
                context = self._failure_context(user_id, event)
                logger.exception("Unhandled error while dispatching event", extra={"context": context})
                await self._safe_track("dispatch_failed", {**context, "error": repr(e)})
                messages = [OutboundMessage(event.surface, GENERIC_ERROR)]

            await self._send_all(user_id, messages)

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    async def _handle(self, user_id: int, event: InboundEvent) -> list[OutboundMessage]:
        state = self._states.get(user_id)

        if isinstance(event, TextInput):
            command = parse_command(event.text)
            if command is not None:
                if state is not None:
                    self._states.delete(user_id)
                    if not state.is_completed:
                        await self._tracker.track(
                            "dialog_preempted",
                            "dispatcher",
                            {"user_id": user_id, "command": state.command.value, "step": state.step, "by": command},
                        )
                return await self._run_command(user_id, command, event.surface)

            if state is None:
                logger.debug("Ignoring text outside of a dialog", extra={"context": {"user_id": user_id}})
                return []
            if state.is_completed:
                self._states.delete(user_id)
                return []

            dialog = self._dialogs[state.command.value]
            result = await dialog.on_text(state, event.text)
            return await self._apply(user_id, result)

        prefix, sep, value = event.payload.partition(":")
        dialog = self._prefixes.get(prefix) if sep else None
        if dialog is None:
            logger.warning(
                "Dropping button with unknown payload",
                extra={"context": {"user_id": user_id, "payload": event.payload}},
            )
            return []

        if state is None or state.is_completed:
            if state is not None:
                self._states.delete(user_id)
            logger.info(
                "Dropping button click without an active dialog",
                extra={"context": {"user_id": user_id, "payload": event.payload}},
            )
            return []

        if dialog.command is not state.command:
            logger.info(
                "Dropping button of another dialog",
                extra={"context": {"user_id": user_id, "payload": event.payload, "command": state.command.value}},
            )
            return []

        result = await dialog.on_button(state, prefix, value)
        return await self._apply(user_id, result)

    async def _run_command(
        self, user_id: int, command: str, surface: Surface
    ) -> list[OutboundMessage]:
        dialog = self._dialogs.get(command)
        if dialog is not None:
            result = await dialog.begin(surface)
            if result.state is not None:
                self._states.set(user_id, result.state)
                await self._tracker.track(
                    "dialog_started",
                    "dispatcher",
                    {"user_id": user_id, "command": command},
                )
            return result.messages

        one_shot = self._one_shots.get(command)
        if one_shot is not None:
            return await one_shot(surface)

        return [OutboundMessage(surface, UNKNOWN_COMMAND_TEXT)]

    async def _apply(self, user_id: int, result: StepResult) -> list[OutboundMessage]:
        """Store the new state, or drop it if the dialog is over."""
        state = result.state
        if state is None or state.is_completed:
            self._states.delete(user_id)
            if state is not None:
                await self._tracker.track(
                    "dialog_completed",
                    "dispatcher",
                    {"user_id": user_id, "command": state.command.value},
                )
        else:
            self._states.set(user_id, state)
        return result.messages

    async def _reject(self, user_id: int, event: InboundEvent) -> None:
        logger.info(
            "Rejected event from unauthorized user",
            extra={"context": {"user_id": user_id}},
        )
        await self._safe_track("unauthorized_event", {"user_id": user_id})
        if self._notify_unauthorized:
            await self._send_all(user_id, [OutboundMessage(event.surface, DENIAL_TEXT)])

    async def _answer_button(self, event: ButtonClick) -> None:
        try:
            await self._messenger.answer_button(event.callback_id)
        except Exception as e:
            logger.warning("Failed to answer button click: %s", e)

    async def _send_all(self, user_id: int, messages: list[OutboundMessage]) -> None:
        for message in messages:
            try:
                await self._messenger.send(message)
            except Exception as e:
                logger.error(
                    "Failed to send message: %s",
                    e,
                    extra={"context": {"user_id": user_id, "chat_id": message.surface.chat_id}},
                )

    async def _safe_track(self, event_type: str, data: dict) -> None:
        try:
            await self._tracker.track(event_type, "dispatcher", data)
        except Exception as e:
            logger.warning("Failed to track %s: %s", event_type, e)

    def _failure_context(self, user_id: int, event: InboundEvent) -> dict:
        state: ConversationState | None = self._states.get(user_id)
        return {
            "user_id": user_id,
            "event": _describe(event),
            "command": state.command.value if state else None,
            "step": state.step if state else None,
        }
