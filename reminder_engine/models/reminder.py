from enum import Enum as PyEnum
import uuid
from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean, Enum, func, Index
from sqlalchemy.dialects.postgresql import UUID
from reminder_engine.db.base import Base

class ReminderStatus(str, PyEnum):
    COMPLETED = "completed"
    CURRENT = "current"
    UPCOMING = "upcoming"
    FUTURE = "future"
    PLACEHOLDER = "placeholder"

class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_time = Column(DateTime(timezone=True), nullable=False, index=True)
    notify_before_minutes = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(ReminderStatus, name="reminder_status", values_callable=lambda e: [m.value for m in e]),
        default=ReminderStatus.FUTURE,
        nullable=False,
    )
    is_priority = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    __table_args__ = (
        Index("ix_reminder_user_scheduled", "user_id", "scheduled_time"),
    )
