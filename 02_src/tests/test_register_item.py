"""Tests for the /new_item dialog."""

import pytest

from rotabot.conversation.handlers import DialogStateError, RegisterItemDialog
from rotabot.conversation.handlers.register_item import MAX_NAME_LENGTH
from rotabot.models import Command, ConversationState


class TestRegisterItemDialog:
    """Tests for RegisterItemDialog."""

    async def test_begin_prompts_for_name(self, storage, surface):
        result = await RegisterItemDialog(storage).begin(surface)

        assert result.state.command is Command.REGISTER_ITEM
        assert result.state.step == 1
        assert result.messages[0].text == "Please enter the item name:"
        assert result.messages[0].surface == surface

    async def test_name_creates_item(self, storage, surface):
        dialog = RegisterItemDialog(storage)
        state = (await dialog.begin(surface)).state

        result = await dialog.on_text(state, "  The Gruffalo  ")

        assert result.state.is_completed
        assert result.messages[0].text == "✅ Item created!\nName: The Gruffalo"
        assert [i.name for i in await storage.list_readable_items()] == ["The Gruffalo"]

    @pytest.mark.parametrize("name", ["", "   ", "x" * (MAX_NAME_LENGTH + 1)])
    async def test_invalid_name_reprompts(self, storage, surface, name):
        dialog = RegisterItemDialog(storage)
        state = (await dialog.begin(surface)).state

        result = await dialog.on_text(state, name)

        assert result.state is state
        assert "name" in result.messages[0].text
        assert await storage.list_readable_items() == []

    async def test_duplicate_aborts_dialog(self, storage, surface):
        await storage.create_item("Matilda")
        dialog = RegisterItemDialog(storage)
        state = (await dialog.begin(surface)).state

        result = await dialog.on_text(state, "Matilda")

        assert result.state.is_completed
        assert result.messages[0].text.startswith("⚠️ Could not create item")

    async def test_storage_failure_aborts_dialog(self, failing_storage, surface):
        dialog = RegisterItemDialog(failing_storage)
        state = (await dialog.begin(surface)).state

        result = await dialog.on_text(state, "Matilda")

        assert result.state.is_completed
        assert "Please try again later" in result.messages[0].text

    async def test_unknown_step_raises(self, storage, surface):
        state = ConversationState.new(Command.REGISTER_ITEM, surface).advance(2)
        with pytest.raises(DialogStateError):
            await RegisterItemDialog(storage).on_text(state, "Matilda")
