"""Inbound events and outbound messages exchanged with the messaging gateway."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Surface:
    """Where to reply: a chat and, in forum groups, a thread inside it."""

    chat_id: int
    thread_id: int = 0


@dataclass(frozen=True)
class TextInput:
    """A free-text message typed by the user."""

    text: str
    surface: Surface


@dataclass(frozen=True)
class ButtonClick:
    """An inline-keyboard click carrying a ``prefix:value`` payload."""

    payload: str
    surface: Surface
    callback_id: str = ""


InboundEvent = TextInput | ButtonClick


@dataclass(frozen=True)
class Button:
    """A single inline button."""

    text: str
    payload: str


@dataclass
class OutboundMessage:
    """A reply to deliver through the messaging gateway."""

    surface: Surface
    text: str
    buttons: list[list[Button]] | None = None
