"""/new_item: register a new item by name."""

from ...logging_config import get_logger
from ...models import Command, ConversationState, OutboundMessage, Surface
from ...storage import IStorage, StorageError
from .base import DialogStateError, StepResult, abort, reply, stay

logger = get_logger(__name__)

MAX_NAME_LENGTH = 200


class RegisterItemDialog:
    """Single step: wait for a name, then create the item."""

    command = Command.REGISTER_ITEM
    button_prefixes: tuple[str, ...] = ()

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def begin(self, surface: Surface) -> StepResult:
        state = ConversationState.new(self.command, surface)
        return StepResult(state, [OutboundMessage(surface, "Please enter the item name:")])

    async def on_text(self, state: ConversationState, text: str) -> StepResult:
        if state.step != 1:
            raise DialogStateError(f"new_item has no step {state.step}")

        name = text.strip()
        if not name:
            return stay(state, "The name cannot be empty. Please enter the item name:")
        if len(name) > MAX_NAME_LENGTH:
            return stay(
                state,
                f"The name is too long (max {MAX_NAME_LENGTH} characters). Please enter a shorter name:",
            )

        try:
            await self._storage.create_item(name)
        except StorageError as e:
            logger.error(
                "Failed to create item: %s",
                e,
                extra={"context": {"item": name, "chat_id": state.context.chat_id}},
            )
            return abort(state, f"create item “{name}”")

        logger.info("Item created", extra={"context": {"item": name}})
        return StepResult(
            state.completed(),
            [reply(state, f"✅ Item created!\nName: {name}")],
        )

    async def on_button(
        self, state: ConversationState, prefix: str, value: str
    ) -> StepResult:
        return StepResult(state)
