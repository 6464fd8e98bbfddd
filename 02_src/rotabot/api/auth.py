"""
Telegram Mini App authentication.

The Mini App sends its launch parameters as ``Authorization: tma <initData>``.
initData is a query string signed by Telegram:

    secret = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash   = hex(HMAC_SHA256(key=secret, msg=data_check_string))

where data_check_string is every ``key=value`` pair except ``hash``, sorted by
key and joined with newlines.
"""

import hashlib
import hmac
import json
import time
from collections.abc import Callable, Container
from urllib.parse import parse_qsl

MAX_AGE_SECONDS = 86400
AUTH_SCHEME = "tma "


class InitDataError(Exception):
    """initData is missing, forged, expired or belongs to a stranger."""


def data_check_string(fields: dict[str, str]) -> str:
    return "\n".join(f"{key}={fields[key]}" for key in sorted(fields) if key != "hash")


def sign_init_data(fields: dict[str, str], token: str) -> str:
    """Hex signature Telegram would attach to ``fields``."""
    secret = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
    return hmac.new(secret, data_check_string(fields).encode(), hashlib.sha256).hexdigest()


def validate_init_data(
    init_data: str,
    token: str,
    allowed_user_ids: Container[int],
    now: Callable[[], float] = time.time,
) -> int:
    """
    Verify signed initData and return the user id it was issued for.

    Raises:
        InitDataError: On any verification failure.
    """
    fields = dict(parse_qsl(init_data, keep_blank_values=True))

    received = fields.get("hash")
    if not received:
        raise InitDataError("missing hash")

    if not hmac.compare_digest(sign_init_data(fields, token), received):
        raise InitDataError("invalid hash")

    try:
        auth_date = int(fields.get("auth_date", ""))
    except ValueError:
        raise InitDataError("missing auth_date") from None
    if now() - auth_date > MAX_AGE_SECONDS:
        raise InitDataError("initData is too old")

    raw_user = fields.get("user")
    if not raw_user:
        raise InitDataError("missing user data")
    try:
        user_id = int(json.loads(raw_user)["id"])
    except (ValueError, KeyError, TypeError) as e:
        raise InitDataError(f"invalid user data: {e}") from None

    if user_id not in allowed_user_ids:
        raise InitDataError("user not allowed")

    return user_id


def parse_authorization(header: str | None) -> str:
    """Extract initData from an ``Authorization`` header value."""
    if not header or not header.startswith(AUTH_SCHEME):
        raise InitDataError("missing or invalid authorization header")
    return header[len(AUTH_SCHEME):]
