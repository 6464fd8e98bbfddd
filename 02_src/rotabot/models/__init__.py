"""Core data models for rotabot."""

from .conversation import (
    COMPLETED,
    Command,
    ConversationState,
    DialogData,
    LogEventData,
    RegisterItemData,
    ReportData,
)
from .messages import (
    Button,
    ButtonClick,
    InboundEvent,
    OutboundMessage,
    Surface,
    TextInput,
)
from .records import Event, Item, ItemStat, Person, RareItemStat, Role
from .tracing import TraceEvent

__all__ = [
    # Conversation
    "COMPLETED",
    "Command",
    "ConversationState",
    "DialogData",
    "LogEventData",
    "RegisterItemData",
    "ReportData",
    # Messages
    "Button",
    "ButtonClick",
    "InboundEvent",
    "OutboundMessage",
    "Surface",
    "TextInput",
    # Records
    "Event",
    "Item",
    "ItemStat",
    "Person",
    "RareItemStat",
    "Role",
    # Tracing
    "TraceEvent",
]
