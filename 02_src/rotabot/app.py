"""Application bootstrap and lifecycle management."""

from datetime import date
from typing import Protocol

from .config import Settings
from .conversation import AllowList, ConversationStateStore, Dispatcher
from .conversation.handlers import (
    Commands,
    LogEventDialog,
    RegisterItemDialog,
    ReportDialog,
)
from .conversation.handlers.base import Clock
from .logging_config import get_logger
from .models import Role
from .storage import IStorage, Storage
from .telegram import TelegramClient, TelegramError, UpdatePoller
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings,
        client: TelegramClient | None = None,
        today: Clock = date.today,
    ):
        self._settings = settings
        self._today = today
        self._allow_list = AllowList(settings.allowed_user_ids)

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._client: TelegramClient | None = client
        self._states: ConversationStateStore | None = None
        self._dispatcher: Dispatcher | None = None
        self._poller: UpdatePoller | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        storage = Storage(self._settings.db_path)
        await storage.init()
        self._storage = storage
        await self._seed_people()
        logger.info("Storage initialized")

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. Messaging gateway
        if self._client is None:
            self._client = TelegramClient(self._settings.telegram_token)

        # 4. Conversation engine
        self._states = ConversationStateStore()
        self._dispatcher = Dispatcher(
            states=self._states,
            authorizer=self._allow_list,
            messenger=self._client,
            tracker=self._tracker,
            dialogs=[
                RegisterItemDialog(self._storage),
                LogEventDialog(self._storage, today=self._today),
                ReportDialog(self._storage, today=self._today),
            ],
            commands=Commands(self._storage, today=self._today),
            notify_unauthorized=self._settings.notify_unauthorized,
        )
        logger.info(
            "Dispatcher ready",
            extra={"context": {"allowed_users": sorted(self._settings.allowed_user_ids)}},
        )

        # 5. Inbound transport
        if self._settings.webhook_mode:
            await self._client.set_webhook(
                self._settings.webhook_url, self._settings.webhook_secret
            )
            logger.info("Bot will receive updates via /telegram-webhook")
        else:
            try:
                await self._client.delete_webhook()
            except TelegramError as e:
                logger.warning("Could not delete webhook before polling: %s", e)
            self._poller = UpdatePoller(self._client, self._dispatcher)
            await self._poller.start()

        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        logger.info("Shutting down")
        if self._poller:
            await self._poller.stop()
            self._poller = None
        if self._client:
            await self._client.close()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def _seed_people(self) -> None:
        if not self._settings.seed_people:
            return
        if await self._storage.list_people():
            return
        for name, role in self._settings.seed_people:
            await self._storage.create_person(name, Role(role))
        logger.info(
            "Seeded people",
            extra={"context": {"count": len(self._settings.seed_people)}},
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def mode(self) -> str:
        return "webhook" if self._settings.webhook_mode else "polling"

    @property
    def allow_list(self) -> AllowList:
        return self._allow_list

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def tracker(self) -> ITracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker

    @property
    def dispatcher(self) -> Dispatcher:
        """Get dispatcher instance."""
        if not self._dispatcher:
            raise RuntimeError("Application not started")
        return self._dispatcher

    @property
    def client(self) -> TelegramClient:
        """Get Bot API client."""
        if not self._client:
            raise RuntimeError("Application not started")
        return self._client
