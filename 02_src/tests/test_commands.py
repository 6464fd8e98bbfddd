"""Tests for one-message commands."""

from datetime import date

from rotabot.conversation.handlers import Commands
from rotabot.conversation.handlers.commands import HELP_TEXT


class TestCommands:
    """Tests for /start, /who_is_next, /last and /rare."""

    async def test_start_lists_commands(self, storage, surface, clock):
        messages = await Commands(storage, today=clock).start(surface)

        assert messages[0].text == HELP_TEXT
        for command in ("/new_item", "/log", "/who_is_next", "/last", "/report", "/rare"):
            assert command in HELP_TEXT

    async def test_who_is_next_without_history(self, household, surface, clock):
        messages = await Commands(household, today=clock).who_is_next(surface)
        assert messages[0].text == "Next: Alice"

    async def test_who_is_next_after_last_follower(self, household, surface, clock):
        await household.create_event(date(2024, 11, 1), "Matilda", "Alice")
        await household.create_event(date(2024, 11, 2), "Matilda", "Bob")

        messages = await Commands(household, today=clock).who_is_next(surface)

        assert messages[0].text == "Next: Mom"

    async def test_who_is_next_without_people(self, storage, surface, clock):
        messages = await Commands(storage, today=clock).who_is_next(surface)
        assert messages[0].text == "No people registered yet."

    async def test_last_events(self, household, surface, clock):
        await household.create_event(date(2024, 11, 1), "Matilda", "Alice")
        await household.create_event(date(2024, 11, 2), "Gruffalo", "Bob")

        messages = await Commands(household, today=clock).last(surface)

        lines = messages[0].text.splitlines()
        assert lines[2] == "1. 2024-11-02 - Gruffalo (Bob)"
        assert lines[3] == "2. 2024-11-01 - Matilda (Alice)"

    async def test_last_without_events(self, storage, surface, clock):
        messages = await Commands(storage, today=clock).last(surface)
        assert messages[0].text == "No events recorded yet."

    async def test_rare(self, household, surface, clock):
        await household.create_event(date(2024, 11, 10), "Matilda", "Mom")
        await household.create_event(date(2024, 11, 15), "Gruffalo", "Alice")

        messages = await Commands(household, today=clock).rare(surface)

        followers, overall = messages[0].text.split("👥 Overall:")
        assert "Matilda (never)" in followers
        assert "Gruffalo (5 days ago, last: 2024-11-15)" in followers
        assert "Matilda (10 days ago, last: 2024-11-10)" in overall

    async def test_storage_failure_is_reported(self, failing_storage, surface, clock):
        commands = Commands(failing_storage, today=clock)

        for handler in (commands.who_is_next, commands.last, commands.rare):
            messages = await handler(surface)
            assert messages[0].text.startswith("⚠️ Could not")
