"""Main entry point for Rotabot."""

import sys

import uvicorn
from dotenv import load_dotenv

from rotabot import Application, ConfigError, Settings
from rotabot.api import create_fastapi_app
from rotabot.config import PROJECT_ROOT
from rotabot.logging_config import get_logger, setup_logging


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level, redact=[settings.telegram_token])
    logger = get_logger("main")
    logger.info(
        "Starting rotabot",
        extra={"context": {"webhook_mode": settings.webhook_mode, "port": settings.api_port}},
    )

    app = create_fastapi_app(Application(settings))

    # Run with uvicorn
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
