"""Mini App API routes."""

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from ...app import Application
from ...conversation.handlers.log_event import parse_exact_date
from ...logging_config import get_logger
from ...storage import StorageError
from ..auth import InitDataError, parse_authorization, validate_init_data

logger = get_logger(__name__)


class ItemResponse(BaseModel):
    """Response model for an item."""

    id: str
    name: str
    is_readable: bool


class PersonResponse(BaseModel):
    """Response model for a person."""

    id: str
    name: str
    role: str


class CreateEventRequest(BaseModel):
    """Request model for logging an event."""

    date: str = ""
    item_name: str = ""
    actor_name: str = ""


def create_miniapp_router(app: Application) -> APIRouter:
    """Create Mini App router."""
    router = APIRouter(prefix="/api", tags=["miniapp"])

    async def authenticated_user(authorization: str | None = Header(None)) -> int:
        try:
            init_data = parse_authorization(authorization)
            return validate_init_data(
                init_data, app.settings.telegram_token, app.allow_list
            )
        except InitDataError as e:
            logger.warning("Failed to validate initData: %s", e)
            raise HTTPException(status_code=401, detail="Unauthorized")

    @router.get("/items", response_model=list[ItemResponse])
    async def list_items(user_id: int = Depends(authenticated_user)) -> list[dict]:
        """Readable items, ordered by name."""
        try:
            items = await app.storage.list_readable_items()
        except StorageError as e:
            logger.error("Failed to list items: %s", e)
            raise HTTPException(status_code=500, detail="Failed to fetch items")
        return [{"id": i.id, "name": i.name, "is_readable": i.is_readable} for i in items]

    @router.get("/people", response_model=list[PersonResponse])
    async def list_people(user_id: int = Depends(authenticated_user)) -> list[dict]:
        """Rotation participants, ordered by name."""
        try:
            people = await app.storage.list_people()
        except StorageError as e:
            logger.error("Failed to list people: %s", e)
            raise HTTPException(status_code=500, detail="Failed to fetch people")
        return [{"id": p.id, "name": p.name, "role": p.role.value} for p in people]

    @router.post("/events", status_code=201)
    async def create_event(
        request: CreateEventRequest,
        user_id: int = Depends(authenticated_user),
    ) -> dict:
        """Log an event on behalf of the authenticated user."""
        if not (request.date and request.item_name and request.actor_name):
            raise HTTPException(status_code=400, detail="Missing required fields")

        day = parse_exact_date(request.date)
        if day is None:
            raise HTTPException(status_code=400, detail="Invalid date format")

        try:
            await app.storage.create_event(day, request.item_name, request.actor_name)
        except StorageError as e:
            logger.error(
                "Failed to create event: %s",
                e,
                extra={"context": {"item": request.item_name, "actor": request.actor_name}},
            )
            raise HTTPException(status_code=500, detail="Failed to create event")

        logger.info(
            "Event created via Mini App",
            extra={
                "context": {
                    "user_id": user_id,
                    "date": day.isoformat(),
                    "item": request.item_name,
                    "actor": request.actor_name,
                }
            },
        )
        await app.tracker.track(
            "event_logged",
            str(user_id),
            {"source": "miniapp", "item": request.item_name, "actor": request.actor_name},
        )
        return {"status": "success"}

    return router
