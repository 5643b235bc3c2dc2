"""
Plain copies of rows read from the remote store.

Store reads hand these out instead of ORM instances: a failed write rolls
the session back, which expires every instance it holds, and an expired
instance cannot be reloaded implicitly under asyncio.
"""
import uuid
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict
from reminder_engine.models.reminder import ReminderStatus


class ReminderRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    scheduled_time: datetime
    notify_before_minutes: Optional[int] = 0
    status: ReminderStatus = ReminderStatus.FUTURE
    updated_at: Optional[datetime] = None


class ActionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    reminder_id: uuid.UUID
    action_type: str
    action_value: Any = None
    created_at: Optional[datetime] = None


class ScheduleRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    reminder_id: uuid.UUID
    device_id: str
    notification_id: str
    scheduled_for: datetime
    reminder_updated_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None
