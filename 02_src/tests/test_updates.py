"""Tests for Bot API update parsing."""

from rotabot.models import ButtonClick, TextInput
from rotabot.telegram import TelegramUpdate, to_inbound


def message_update(text="/log", thread_id=None, **extra):
    message = {
        "message_id": 10,
        "from": {"id": 111, "is_bot": False, "first_name": "Ann"},
        "chat": {"id": -100500, "type": "supergroup"},
        "date": 1700000000,
        **extra,
    }
    if text is not None:
        message["text"] = text
    if thread_id is not None:
        message["message_thread_id"] = thread_id
    return TelegramUpdate.model_validate({"update_id": 1, "message": message})


class TestToInbound:
    """Tests for to_inbound()."""

    def test_text_message(self):
        user_id, event = to_inbound(message_update("/log"))

        assert user_id == 111
        assert isinstance(event, TextInput)
        assert event.text == "/log"
        assert event.surface.chat_id == -100500
        assert event.surface.thread_id == 0

    def test_forum_thread_is_kept(self):
        _, event = to_inbound(message_update("hi", thread_id=42))
        assert event.surface.thread_id == 42

    def test_callback_query(self):
        update = TelegramUpdate.model_validate(
            {
                "update_id": 2,
                "callback_query": {
                    "id": "cbq-1",
                    "from": {"id": 111, "first_name": "Ann"},
                    "data": "date:today",
                    "message": {
                        "message_id": 11,
                        "chat": {"id": 5000, "type": "private"},
                    },
                },
            }
        )

        user_id, event = to_inbound(update)

        assert user_id == 111
        assert isinstance(event, ButtonClick)
        assert event.payload == "date:today"
        assert event.callback_id == "cbq-1"
        assert event.surface.chat_id == 5000

    def test_non_text_message_is_skipped(self):
        assert to_inbound(message_update(text=None, sticker={"file_id": "x"})) is None

    def test_update_without_payload_is_skipped(self):
        update = TelegramUpdate.model_validate({"update_id": 3, "edited_message": {}})
        assert to_inbound(update) is None

    def test_callback_without_message_is_skipped(self):
        update = TelegramUpdate.model_validate(
            {
                "update_id": 4,
                "callback_query": {"id": "x", "from": {"id": 1}, "data": "date:today"},
            }
        )
        assert to_inbound(update) is None
