"""Bot API update models and their conversion to inbound events."""

from pydantic import BaseModel, ConfigDict, Field

from ..models import ButtonClick, InboundEvent, Surface, TextInput


class TelegramUser(BaseModel):
    """Sender of a message or a button click."""

    id: int
    is_bot: bool = False
    first_name: str = ""
    username: str | None = None


class TelegramChat(BaseModel):
    """Chat a message belongs to."""

    id: int
    type: str = "private"


class TelegramMessage(BaseModel):
    """Subset of the Bot API Message object."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    message_thread_id: int | None = None
    text: str | None = None


class TelegramCallbackQuery(BaseModel):
    """Inline button click."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_user: TelegramUser = Field(alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class TelegramUpdate(BaseModel):
    """Incoming update, from getUpdates or from the webhook."""

    update_id: int
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None


def to_inbound(update: TelegramUpdate) -> tuple[int, InboundEvent] | None:
    """
    Convert an update to ``(user_id, event)``.

    Returns:
        None for updates the bot does not act on (edits, stickers, service
        messages, clicks on messages the bot can no longer see).
    """
    message = update.message
    if message is not None:
        if message.from_user is None or message.text is None:
            return None
        surface = Surface(chat_id=message.chat.id, thread_id=message.message_thread_id or 0)
        return message.from_user.id, TextInput(text=message.text, surface=surface)

    query = update.callback_query
    if query is not None:
        if query.data is None or query.message is None:
            return None
        surface = Surface(
            chat_id=query.message.chat.id,
            thread_id=query.message.message_thread_id or 0,
        )
        return query.from_user.id, ButtonClick(
            payload=query.data, surface=surface, callback_id=query.id
        )

    return None
