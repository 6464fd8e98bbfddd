"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import health, miniapp, observability, webhook


def create_fastapi_app(application: Application) -> FastAPI:
    """Create and configure FastAPI application around a bot application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Rotabot API",
        description="Telegram bot webhook and Mini App API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # The Mini App page may be hosted on another origin
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    fastapi_app.include_router(health.create_health_router(application))
    fastapi_app.include_router(webhook.create_webhook_router(application))
    fastapi_app.include_router(miniapp.create_miniapp_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))

    return fastapi_app
