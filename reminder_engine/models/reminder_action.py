import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from reminder_engine.db.base import Base

class ReminderAction(Base):
    __tablename__ = "reminder_actions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reminder_id = Column(UUID(as_uuid=True), ForeignKey("reminders.id", ondelete="CASCADE"), nullable=False, index=True)

    action_type = Column(String(32), nullable=False, index=True)
    # Type-specific payload: {phone}, {url}, {address, lat?, lng?}, {email, subject?, body?}
    action_value = Column(JSONB, nullable=False)
    metadata_ = Column("metadata", JSONB, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
