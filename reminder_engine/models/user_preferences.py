import uuid
from sqlalchemy import Column, String, DateTime, Integer, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from reminder_engine.db.base import Base

class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, unique=True)

    snooze_mode = Column(String(32), nullable=False, default="text_input")
    default_snooze_minutes = Column(Integer, nullable=False, default=15)
    snooze_preset_values = Column(JSONB, nullable=False, default=lambda: [10, 15, 30])
    default_notify_before_minutes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
