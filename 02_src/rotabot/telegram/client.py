"""Telegram Bot API client built on httpx."""

from typing import Any

import httpx

from ..logging_config import get_logger
from ..models import OutboundMessage

logger = get_logger(__name__)

API_URL = "https://api.telegram.org"


class TelegramError(Exception):
    """The Bot API call failed or answered ``ok: false``."""


def build_send_payload(message: OutboundMessage) -> dict:
    """sendMessage parameters for an outbound message."""
    payload: dict[str, Any] = {
        "chat_id": message.surface.chat_id,
        "text": message.text,
    }
    if message.surface.thread_id:
        payload["message_thread_id"] = message.surface.thread_id
    if message.buttons:
        payload["reply_markup"] = {
            "inline_keyboard": [
                [{"text": button.text, "callback_data": button.payload} for button in row]
                for row in message.buttons
            ]
        }
    return payload


class TelegramClient:
    """Thin async wrapper over the Bot API methods the bot uses."""

    def __init__(
        self,
        token: str,
        api_url: str = API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=f"{api_url}/bot{token}/",
            transport=transport,
            timeout=httpx.Timeout(15.0),
        )

    @property
    def token(self) -> str:
        return self._token

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(
        self, method: str, payload: dict | None = None, timeout: float | None = None
    ) -> Any:
        kwargs: dict[str, Any] = {"json": payload or {}}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await self._client.post(method, **kwargs)
        except httpx.HTTPError as e:
            # str(e) may carry the request URL, which contains the token
            raise TelegramError(f"{method} failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            raise TelegramError(f"{method} failed: HTTP {response.status_code}") from None

        if not isinstance(body, dict):
            raise TelegramError(f"{method} failed: HTTP {response.status_code}")
        if not body.get("ok"):
            description = body.get("description", f"HTTP {response.status_code}")
            raise TelegramError(f"{method} failed: {description}")

        return body.get("result")

    async def get_updates(self, offset: int | None = None, timeout: int = 30) -> list[dict]:
        """Long-poll for updates; returns raw update objects."""
        payload: dict[str, Any] = {
            "timeout": timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", payload, timeout=timeout + 10)

    async def send(self, message: OutboundMessage) -> None:
        await self._call("sendMessage", build_send_payload(message))

    async def answer_button(self, callback_id: str) -> None:
        await self._call("answerCallbackQuery", {"callback_query_id": callback_id})

    async def set_webhook(self, url: str, secret_token: str | None = None) -> None:
        payload: dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message", "callback_query"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        await self._call("setWebhook", payload)
        logger.info("Webhook configured")

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook")
