"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "rotabot.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"


PathLike = Union[str, Path]


class ConfigError(ValueError):
    """Raised when the environment does not describe a runnable bot."""


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _parse_user_ids(raw: str) -> frozenset[int]:
    ids = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.add(int(part))
        except ValueError:
            raise ConfigError(f"invalid user ID in ALLOWED_USER_IDS: {part}") from None
    if not ids:
        raise ConfigError("ALLOWED_USER_IDS must contain at least one user ID")
    return frozenset(ids)


def _parse_seed_people(raw: str | None) -> tuple[tuple[str, str], ...]:
    """Parse ``name:role`` pairs, e.g. ``Alice:follows,Mom:leads``."""
    if not raw:
        return ()

    people = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, role = part.rpartition(":")
        role = role.strip().lower()
        if not sep or not name.strip() or role not in ("leads", "follows"):
            raise ConfigError(
                f"invalid SEED_PEOPLE entry {part!r}, expected name:leads or name:follows"
            )
        people.append((name.strip(), role))
    return tuple(people)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment."""

    telegram_token: str
    allowed_user_ids: frozenset[int]
    webhook_mode: bool = False
    webhook_url: str | None = None
    webhook_secret: str | None = None
    db_path: PathLike = DEFAULT_DB_PATH
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"
    notify_unauthorized: bool = False
    seed_people: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigError: if a required variable is missing or malformed.
        """
        env = os.environ if environ is None else environ

        token = env.get("TELEGRAM_BOT_TOKEN", "").strip()
        if not token:
            raise ConfigError("TELEGRAM_BOT_TOKEN is required")

        raw_ids = env.get("ALLOWED_USER_IDS", "")
        if not raw_ids.strip():
            raise ConfigError(
                "ALLOWED_USER_IDS is required (comma-separated list of Telegram user IDs)"
            )
        allowed = _parse_user_ids(raw_ids)

        webhook_mode = _parse_bool(env.get("WEBHOOK_MODE"))
        webhook_url = env.get("WEBHOOK_URL") or None
        if webhook_mode and not webhook_url:
            raise ConfigError("WEBHOOK_URL is required when WEBHOOK_MODE is true")

        port_raw = env.get("PORT", "8080")
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigError(f"invalid PORT: {port_raw}") from None

        return cls(
            telegram_token=token,
            allowed_user_ids=allowed,
            webhook_mode=webhook_mode,
            webhook_url=webhook_url,
            webhook_secret=env.get("WEBHOOK_SECRET") or None,
            db_path=resolve_db_path(env.get("DATABASE_URL")),
            api_host=env.get("API_HOST", "0.0.0.0"),
            api_port=port,
            log_level=env.get("LOG_LEVEL", "INFO"),
            notify_unauthorized=_parse_bool(env.get("NOTIFY_UNAUTHORIZED")),
            seed_people=_parse_seed_people(env.get("SEED_PEOPLE")),
        )
