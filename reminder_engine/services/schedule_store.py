import uuid
import logging
from datetime import datetime
from typing import List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.dialects.postgresql import insert
from reminder_engine.models.notification_schedule import NotificationSchedule
from reminder_engine.schemas.records import ScheduleRecord

logger = logging.getLogger(__name__)

IdLike = Union[str, uuid.UUID]


def _as_uuid(value: IdLike) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class ScheduleStore:
    """
    Per-device notification schedule records.

    Writes are last-writer-wins: upserts resolve on the unique
    (user_id, reminder_id, device_id) key. Reads return detached
    `ScheduleRecord` copies.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_schedules(self, user_id: IdLike, device_id: str) -> List[ScheduleRecord]:
        stmt = select(NotificationSchedule).where(
            NotificationSchedule.user_id == _as_uuid(user_id),
            NotificationSchedule.device_id == device_id,
        )
        result = await self.session.execute(stmt)
        return [ScheduleRecord.model_validate(row) for row in result.scalars().all()]

    async def get_schedule(self, user_id: IdLike, reminder_id: IdLike, device_id: str) -> Optional[ScheduleRecord]:
        stmt = select(NotificationSchedule).where(
            NotificationSchedule.user_id == _as_uuid(user_id),
            NotificationSchedule.reminder_id == _as_uuid(reminder_id),
            NotificationSchedule.device_id == device_id,
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return ScheduleRecord.model_validate(row) if row is not None else None

    async def upsert_schedule(
        self,
        user_id: IdLike,
        reminder_id: IdLike,
        device_id: str,
        notification_id: str,
        scheduled_for: datetime,
        reminder_updated_at: Optional[datetime] = None,
        snoozed_until: Optional[datetime] = None,
    ) -> None:
        values = {
            "user_id": _as_uuid(user_id),
            "reminder_id": _as_uuid(reminder_id),
            "device_id": device_id,
            "notification_id": notification_id,
            "scheduled_for": scheduled_for,
            "reminder_updated_at": reminder_updated_at,
            "snoozed_until": snoozed_until,
        }
        stmt = insert(NotificationSchedule).values(id=uuid.uuid4(), **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                NotificationSchedule.user_id,
                NotificationSchedule.reminder_id,
                NotificationSchedule.device_id,
            ],
            set_={
                "notification_id": stmt.excluded.notification_id,
                "scheduled_for": stmt.excluded.scheduled_for,
                "reminder_updated_at": stmt.excluded.reminder_updated_at,
                "snoozed_until": stmt.excluded.snoozed_until,
                "updated_at": func.now(),
            },
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def delete_schedule(self, record_id: IdLike) -> None:
        try:
            await self.session.execute(
                delete(NotificationSchedule).where(NotificationSchedule.id == _as_uuid(record_id))
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
