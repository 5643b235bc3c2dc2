import uuid
import logging
from typing import Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from reminder_engine.models.user_preferences import UserPreferences
from reminder_engine.schemas.notification import SnoozePreferences
from reminder_engine.config.constants import SNOOZE_MODE_PRESETS, SNOOZE_MODE_TEXT_INPUT

logger = logging.getLogger(__name__)

class PreferencesService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_snooze_preferences(self, user_id: Union[str, uuid.UUID]) -> SnoozePreferences:
        """Snooze settings for a user, defaults when no preferences row exists."""
        uid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        result = await self.session.execute(
            select(UserPreferences).where(UserPreferences.user_id == uid)
        )
        prefs = result.scalar_one_or_none()
        if not prefs:
            return SnoozePreferences()

        mode = prefs.snooze_mode
        if mode not in (SNOOZE_MODE_TEXT_INPUT, SNOOZE_MODE_PRESETS):
            logger.warning(f"Unknown snooze mode {mode!r} for user {user_id}, using text input")
            mode = SNOOZE_MODE_TEXT_INPUT

        return SnoozePreferences(
            mode=mode,
            default_minutes=prefs.default_snooze_minutes,
            presets=prefs.snooze_preset_values,
        )
