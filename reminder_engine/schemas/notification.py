from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from reminder_engine.config.constants import (
    DEFAULT_SNOOZE_MINUTES,
    DEFAULT_SNOOZE_PRESETS,
    SNOOZE_MODE_TEXT_INPUT,
)

SnoozeMode = Literal["text_input", "presets"]


class TextInputOptions(BaseModel):
    placeholder: str
    submit_label: str


class CategoryButton(BaseModel):
    """A single action button of a notification category."""
    identifier: str
    label: str
    opens_app: bool = False
    is_destructive: bool = False
    text_input: Optional[TextInputOptions] = None


class SnoozePreferences(BaseModel):
    mode: SnoozeMode = SNOOZE_MODE_TEXT_INPUT
    default_minutes: int = DEFAULT_SNOOZE_MINUTES
    presets: List[int] = Field(default_factory=lambda: list(DEFAULT_SNOOZE_PRESETS))

    @field_validator("default_minutes", mode="before")
    @classmethod
    def positive_default(cls, value: Any) -> int:
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            return DEFAULT_SNOOZE_MINUTES
        return minutes if minutes > 0 else DEFAULT_SNOOZE_MINUTES

    @field_validator("presets", mode="before")
    @classmethod
    def coerce_presets(cls, value: Any) -> List[int]:
        if not value:
            return []
        presets = []
        for item in value:
            try:
                presets.append(int(item))
            except (TypeError, ValueError):
                continue
        return presets


class EmbeddedAction(BaseModel):
    type: str
    value: Any = None


class NotificationPayload(BaseModel):
    """Data attached to every scheduled notification."""
    reminder_id: str
    title: str
    body: str
    scheduled_time: str
    reminder_updated_at: Optional[str] = None
    category_id: Optional[str] = None
    action_types: List[str] = Field(default_factory=list)
    actions: Dict[str, EmbeddedAction] = Field(default_factory=dict)
    default_snooze_minutes: Optional[int] = None


class NotificationContent(BaseModel):
    title: str
    body: str
    category_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class ScheduledNotification(BaseModel):
    notification_id: str
    fire_at: datetime
    created_at: datetime
    content: NotificationContent

    @property
    def reminder_id(self) -> Optional[str]:
        return self.content.data.get("reminder_id")


class NotificationResponse(BaseModel):
    """A press on a fired notification (body tap or action button)."""
    action_identifier: str
    notification_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    user_text: Optional[str] = None
