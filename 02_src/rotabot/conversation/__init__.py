"""Conversation engine: dispatcher, state store, step handlers, rotation."""

from .dispatcher import AllowList, Dispatcher, IAuthorizer, IMessenger, parse_command
from .rotation import next_actor
from .state_store import ConversationStateStore

__all__ = [
    "AllowList",
    "ConversationStateStore",
    "Dispatcher",
    "IAuthorizer",
    "IMessenger",
    "next_actor",
    "parse_command",
]
