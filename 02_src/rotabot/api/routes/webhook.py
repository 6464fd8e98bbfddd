"""Bot API webhook route."""

import hmac

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException

from ...app import Application
from ...logging_config import get_logger
from ...telegram import TelegramUpdate, dispatch_update

logger = get_logger(__name__)


def create_webhook_router(app: Application) -> APIRouter:
    """Create webhook router."""
    router = APIRouter(tags=["webhook"])

    @router.post("/telegram-webhook")
    async def telegram_webhook(
        update: TelegramUpdate,
        background_tasks: BackgroundTasks,
        secret_token: str | None = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
    ) -> dict:
        """Accept an update and dispatch it after the response is sent."""
        expected = app.settings.webhook_secret
        if expected and not hmac.compare_digest(secret_token or "", expected):
            logger.warning(
                "Rejected webhook call with bad secret",
                extra={"context": {"update_id": update.update_id}},
            )
            raise HTTPException(status_code=401, detail="Unauthorized")

        background_tasks.add_task(dispatch_update, app.dispatcher, update)
        return {"ok": True}

    return router
