"""Long-polling loop feeding Bot API updates into the dispatcher."""

import asyncio

from pydantic import ValidationError

from ..conversation import Dispatcher
from ..logging_config import get_logger
from .client import TelegramClient, TelegramError
from .updates import TelegramUpdate, to_inbound

logger = get_logger(__name__)


async def dispatch_update(dispatcher: Dispatcher, update: TelegramUpdate) -> None:
    """Hand one update to the dispatcher, skipping updates it does not act on."""
    inbound = to_inbound(update)
    if inbound is None:
        logger.debug("Skipping update %s", update.update_id)
        return
    user_id, event = inbound
    await dispatcher.dispatch(user_id, event)


class UpdatePoller:
    """Pulls updates with getUpdates and dispatches each one in its own task."""

    def __init__(
        self,
        client: TelegramClient,
        dispatcher: Dispatcher,
        poll_timeout: int = 30,
        retry_delay: float = 3.0,
    ):
        self._client = client
        self._dispatcher = dispatcher
        self._poll_timeout = poll_timeout
        self._retry_delay = retry_delay

        self._running = False
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._offset: int | None = None

    async def start(self) -> None:
        """Start polling in the background."""
        if self._running:
            return
        logger.info("Starting bot in polling mode")
        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop polling and wait for in-flight dispatches."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def _run(self) -> None:
        while self._running:
            try:
                updates = await self._client.get_updates(self._offset, self._poll_timeout)
            except asyncio.CancelledError:
                break
            except TelegramError as e:
                logger.error("Polling failed: %s", e)
                await asyncio.sleep(self._retry_delay)
                continue
            except Exception:
                logger.exception("Unexpected error while polling")
                await asyncio.sleep(self._retry_delay)
                continue

            for raw in updates or []:
                if not isinstance(raw, dict):
                    logger.warning("Skipping non-object update: %r", raw)
                    continue
                self.schedule(raw)

    def schedule(self, raw: dict) -> asyncio.Task | None:
        """Validate a raw update, advance the offset and dispatch it."""
        update_id = raw.get("update_id")
        if isinstance(update_id, int):
            self._offset = max(self._offset or 0, update_id + 1)

        try:
            update = TelegramUpdate.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "Skipping malformed update: %s",
                e,
                extra={"context": {"update_id": update_id}},
            )
            return None

        task = asyncio.create_task(dispatch_update(self._dispatcher, update))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task
