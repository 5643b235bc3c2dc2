import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Index, func
from sqlalchemy.dialects.postgresql import UUID
from reminder_engine.db.base import Base

class NotificationSchedule(Base):
    """One locally scheduled notification per (user, reminder, device)."""
    __tablename__ = "notification_schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False)
    reminder_id = Column(UUID(as_uuid=True), ForeignKey("reminders.id", ondelete="CASCADE"), nullable=False)
    device_id = Column(String(255), nullable=False)

    notification_id = Column(String(255), nullable=False)
    scheduled_for = Column(DateTime(timezone=True), nullable=False)
    reminder_updated_at = Column(DateTime(timezone=True), nullable=True)
    snoozed_until = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "reminder_id", "device_id", name="uq_notification_schedule_user_reminder_device"),
        Index("ix_notification_schedules_user_device", "user_id", "device_id"),
    )
