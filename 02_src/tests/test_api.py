"""Tests for the HTTP API."""

import json
import time
from urllib.parse import urlencode

import httpx
import pytest
from fastapi.testclient import TestClient

from rotabot.api import create_fastapi_app
from rotabot.api.auth import sign_init_data
from rotabot.app import Application
from rotabot.config import Settings
from rotabot.telegram import TelegramClient

TOKEN = "123456:api-token"
SECRET = "s3cret"
USER_ID = 111


def init_data_header(user_id=USER_ID) -> dict:
    fields = {
        "user": json.dumps({"id": user_id}),
        "auth_date": str(int(time.time())),
    }
    fields["hash"] = sign_init_data(fields, TOKEN)
    return {"Authorization": f"tma {urlencode(fields)}"}


@pytest.fixture
def bot_api():
    """Records Bot API calls made by the application."""
    calls = []

    def handler(request):
        method = request.url.path.rsplit("/", 1)[-1]
        calls.append((method, json.loads(request.content or b"{}")))
        return httpx.Response(200, json={"ok": True, "result": True})

    return calls, TelegramClient(TOKEN, transport=httpx.MockTransport(handler))


@pytest.fixture
def client(bot_api):
    _, telegram = bot_api
    settings = Settings(
        telegram_token=TOKEN,
        allowed_user_ids=frozenset({USER_ID}),
        webhook_mode=True,
        webhook_url="https://example.org/telegram-webhook",
        webhook_secret=SECRET,
        db_path=":memory:",
        seed_people=(("Alice", "follows"), ("Mom", "leads")),
    )
    with TestClient(create_fastapi_app(Application(settings, client=telegram))) as c:
        yield c


def webhook_update(text: str) -> dict:
    return {
        "update_id": 1,
        "message": {
            "message_id": 1,
            "from": {"id": USER_ID, "first_name": "Ann"},
            "chat": {"id": 5000, "type": "private"},
            "text": text,
        },
    }


class TestHealthRoutes:
    def test_index(self, client):
        assert client.get("/").json() == {"status": "running", "mode": "webhook"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestWebhook:
    """Tests for POST /telegram-webhook."""

    def test_webhook_registered_on_startup(self, client, bot_api):
        calls, _ = bot_api
        assert calls[0] == (
            "setWebhook",
            {
                "url": "https://example.org/telegram-webhook",
                "allowed_updates": ["message", "callback_query"],
                "secret_token": SECRET,
            },
        )

    def test_update_is_dispatched(self, client, bot_api):
        calls, _ = bot_api

        response = client.post(
            "/telegram-webhook",
            json=webhook_update("/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": SECRET},
        )

        assert response.status_code == 200
        sends = [body for method, body in calls if method == "sendMessage"]
        assert sends[0]["chat_id"] == 5000
        assert "Available commands" in sends[0]["text"]

    def test_wrong_secret_is_rejected(self, client, bot_api):
        calls, _ = bot_api

        response = client.post(
            "/telegram-webhook",
            json=webhook_update("/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "guess"},
        )

        assert response.status_code == 401
        assert not any(method == "sendMessage" for method, _ in calls)

    def test_malformed_update(self, client):
        response = client.post(
            "/telegram-webhook",
            json={"message": {}},
            headers={"X-Telegram-Bot-Api-Secret-Token": SECRET},
        )
        assert response.status_code == 422


class TestMiniApp:
    """Tests for the Mini App API."""

    def test_requires_authorization(self, client):
        assert client.get("/api/items").status_code == 401
        assert client.get("/api/items", headers={"Authorization": "tma bogus"}).status_code == 401

    def test_stranger_is_rejected(self, client):
        assert client.get("/api/people", headers=init_data_header(user_id=5)).status_code == 401

    def test_people(self, client):
        response = client.get("/api/people", headers=init_data_header())

        assert response.status_code == 200
        assert [(p["name"], p["role"]) for p in response.json()] == [
            ("Alice", "follows"),
            ("Mom", "leads"),
        ]

    def test_items_empty(self, client):
        response = client.get("/api/items", headers=init_data_header())

        assert response.status_code == 200
        assert response.json() == []

    def test_created_event_shows_in_bot(self, client, bot_api):
        calls, _ = bot_api

        response = client.post(
            "/api/events",
            json={"date": "2024-11-20", "item_name": "Matilda", "actor_name": "Alice"},
            headers=init_data_header(),
        )
        assert response.status_code == 201
        assert response.json() == {"status": "success"}

        client.post(
            "/telegram-webhook",
            json=webhook_update("/last"),
            headers={"X-Telegram-Bot-Api-Secret-Token": SECRET},
        )
        sends = [body for method, body in calls if method == "sendMessage"]
        assert "1. 2024-11-20 - Matilda (Alice)" in sends[-1]["text"]

    @pytest.mark.parametrize(
        "body, detail",
        [
            ({"date": "2024-11-20", "item_name": "Matilda"}, "Missing required fields"),
            ({"date": "20.11.2024", "item_name": "Matilda", "actor_name": "Alice"}, "Invalid date format"),
        ],
    )
    def test_create_event_bad_body(self, client, body, detail):
        response = client.post("/api/events", json=body, headers=init_data_header())

        assert response.status_code == 400
        assert response.json()["detail"] == detail


class TestObservability:
    def test_trace_events(self, client):
        client.post(
            "/telegram-webhook",
            json=webhook_update("/report"),
            headers={"X-Telegram-Bot-Api-Secret-Token": SECRET},
        )

        response = client.get("/api/trace-events", params={"event_type": "dialog_started"})

        assert response.status_code == 200
        events = response.json()
        assert events[0]["data"] == {"user_id": USER_ID, "command": "report"}

    def test_bad_after(self, client):
        assert client.get("/api/trace-events", params={"after": "yesterday"}).status_code == 400
