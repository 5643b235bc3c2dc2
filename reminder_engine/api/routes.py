"""Endpoints for app-lifecycle hooks, realtime handlers and push resyncs."""
import uuid
import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from pydantic import BaseModel, Field
from reminder_engine.core.config import settings
from reminder_engine.core.scheduler import notification_center, reconcile_device_job
from reminder_engine.db.session import AsyncSessionLocal
from reminder_engine.engine import ReminderEngine
from reminder_engine.schemas.notification import NotificationResponse
from reminder_engine.utils.duration_parser import parse_duration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["notifications"])


class NotificationResponseIn(BaseModel):
    action_identifier: str
    notification_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    user_text: Optional[str] = None
    user_id: Optional[str] = None


def _resolve_user(user_id: Optional[str]) -> str:
    user_id = user_id or settings.USER_ID
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        raise HTTPException(status_code=400, detail="user_id must be a UUID")
    return str(user_id)


def _schedule_reconciliation(background: BackgroundTasks, user_id: Optional[str], reason: str) -> dict:
    user_id = _resolve_user(user_id)
    background.add_task(reconcile_device_job, user_id, settings.DEVICE_ID)
    logger.info(f"Reconciliation requested for user {user_id} ({reason})")
    return {"status": "scheduled", "device_id": settings.DEVICE_ID}


@router.post("/reconcile", status_code=status.HTTP_202_ACCEPTED)
async def reconcile(background: BackgroundTasks, user_id: Optional[str] = Query(None)):
    """App foreground or realtime data change."""
    return _schedule_reconciliation(background, user_id, "reconcile")


@router.post("/resync", status_code=status.HTTP_202_ACCEPTED)
async def resync(background: BackgroundTasks, user_id: Optional[str] = Query(None)):
    """Silent push asking this device to resynchronise."""
    return _schedule_reconciliation(background, user_id, "push resync")


@router.post("/notifications/response")
async def notification_response(body: NotificationResponseIn):
    user_id = _resolve_user(body.user_id)
    response = NotificationResponse(**body.model_dump(exclude={"user_id"}))
    async with AsyncSessionLocal() as session:
        engine = ReminderEngine(
            session,
            notification_center,
            intents=notification_center.presenter,
            user_id=user_id,
            device_id=settings.DEVICE_ID,
        )
        handled = await engine.handle_notification_response(response)
    return {"handled": handled}


@router.get("/notifications")
async def scheduled_notifications():
    """Registered categories and pending notifications of this device."""
    state = await notification_center.describe_state()
    state["device_id"] = settings.DEVICE_ID
    return state


@router.get("/durations")
async def preview_duration(text: str = Query("")):
    return {"text": text, "minutes": parse_duration(text)}
