"""Liveness routes."""

from fastapi import APIRouter

from ...app import Application


def create_health_router(app: Application) -> APIRouter:
    """Create health router."""
    router = APIRouter(tags=["health"])

    @router.get("/")
    async def index() -> dict:
        return {"status": "running", "mode": app.mode}

    @router.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return router
