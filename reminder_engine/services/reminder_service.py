import uuid
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from reminder_engine.models.reminder import Reminder, ReminderStatus
from reminder_engine.models.reminder_action import ReminderAction
from reminder_engine.schemas.records import ActionRecord, ReminderRecord
from reminder_engine.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

IdLike = Union[str, uuid.UUID]


def _as_uuid(value: IdLike) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class ReminderService:
    """
    Read/write contract over the remote reminder store.

    Reads return detached records so a later rollback on the shared session
    cannot expire what callers hold.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_future_reminders(self, user_id: IdLike, now: Optional[datetime] = None) -> List[ReminderRecord]:
        """
        Reminders scheduled at or after `now` that still need attention.
        Completed reminders never need a notification and are left out.
        """
        now = now or utcnow()
        stmt = (
            select(Reminder)
            .where(
                Reminder.user_id == _as_uuid(user_id),
                Reminder.scheduled_time >= now,
                Reminder.status != ReminderStatus.COMPLETED,
            )
            .order_by(Reminder.scheduled_time.asc())
        )
        result = await self.session.execute(stmt)
        return [ReminderRecord.model_validate(row) for row in result.scalars().all()]

    async def get_reminders_by_ids(self, reminder_ids: Iterable[IdLike]) -> List[ReminderRecord]:
        ids = [_as_uuid(rid) for rid in reminder_ids]
        if not ids:
            return []
        result = await self.session.execute(select(Reminder).where(Reminder.id.in_(ids)))
        return [ReminderRecord.model_validate(row) for row in result.scalars().all()]

    async def get_reminder(self, reminder_id: IdLike) -> Optional[ReminderRecord]:
        row = await self.session.get(Reminder, _as_uuid(reminder_id))
        return ReminderRecord.model_validate(row) if row is not None else None

    async def get_actions_for_reminders(self, reminder_ids: Iterable[IdLike]) -> List[ActionRecord]:
        ids = [_as_uuid(rid) for rid in reminder_ids]
        if not ids:
            return []
        stmt = (
            select(ReminderAction)
            .where(ReminderAction.reminder_id.in_(ids))
            .order_by(ReminderAction.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return [ActionRecord.model_validate(row) for row in result.scalars().all()]

    async def get_reminder_actions(self, reminder_id: IdLike) -> List[ActionRecord]:
        return await self.get_actions_for_reminders([reminder_id])

    async def set_reminder_status(self, reminder_id: IdLike, status: ReminderStatus) -> bool:
        stmt = (
            update(Reminder)
            .where(Reminder.id == _as_uuid(reminder_id))
            .values(status=status)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        updated = bool(result.rowcount)
        if updated:
            logger.info(f"Reminder {reminder_id} marked {status.value}")
        else:
            logger.warning(f"Reminder {reminder_id} not found while setting status {status.value}")
        return updated
