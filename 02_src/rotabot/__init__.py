"""Rotabot: a Telegram bot that keeps a household rotation log."""

from .app import Application, IApplication
from .config import ConfigError, Settings
from .conversation import (
    AllowList,
    ConversationStateStore,
    Dispatcher,
    next_actor,
)
from .models import (
    ConversationState,
    Event,
    Item,
    OutboundMessage,
    Person,
    Role,
    TraceEvent,
)
from .storage import IStorage, Storage, StorageError
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    "ConfigError",
    # Models
    "ConversationState",
    "Event",
    "Item",
    "OutboundMessage",
    "Person",
    "Role",
    "TraceEvent",
    # Components
    "AllowList",
    "ConversationStateStore",
    "Dispatcher",
    "next_actor",
    "IStorage",
    "Storage",
    "StorageError",
    "ITracker",
    "Tracker",
]
