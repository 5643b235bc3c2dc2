"""
Wiring of the notification engine for one (user, device) pair.

Lifecycle hooks, realtime handlers and push-resync handlers build a
`ReminderEngine` around a database session and call `reconcile()` /
`trigger_reconcile()`; notification taps go through
`handle_notification_response()`.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from reminder_engine.core.config import settings
from reminder_engine.device.intents import UnavailableIntentLauncher
from reminder_engine.schemas.notification import NotificationResponse
from reminder_engine.services.action_dispatcher import ActionDispatcher
from reminder_engine.services.category_service import CategoryRegistry
from reminder_engine.services.preferences_service import PreferencesService
from reminder_engine.services.reconciler import ScheduleReconciler
from reminder_engine.services.reminder_service import ReminderService
from reminder_engine.services.schedule_store import ScheduleStore
from reminder_engine.utils.duration_parser import parse_duration

logger = logging.getLogger(__name__)


class ReminderEngine:
    def __init__(
        self,
        session: AsyncSession,
        notification_center,
        intents=None,
        user_id: Optional[str] = None,
        device_id: Optional[str] = None,
        lock=None,
    ):
        self.user_id = user_id or settings.USER_ID
        self.device_id = device_id or settings.DEVICE_ID
        self.notification_center = notification_center

        self.reminders = ReminderService(session)
        self.schedules = ScheduleStore(session)
        self.preferences = PreferencesService(session)
        self.categories = CategoryRegistry(notification_center)

        self.reconciler = ScheduleReconciler(
            user_id=self.user_id,
            device_id=self.device_id,
            reminder_store=self.reminders,
            schedule_store=self.schedules,
            notification_center=notification_center,
            categories=self.categories,
            preferences=self.preferences,
            lock=lock,
            tolerance_seconds=settings.RECONCILE_TOLERANCE_SECONDS,
            default_snooze_minutes=settings.DEFAULT_SNOOZE_MINUTES,
        )
        self.dispatcher = ActionDispatcher(
            reminder_store=self.reminders,
            notification_center=notification_center,
            intents=intents or UnavailableIntentLauncher(),
            on_complete=self.reconciler.on_reminder_completed,
            on_snooze=self.reconciler.snooze,
            default_snooze_minutes=settings.DEFAULT_SNOOZE_MINUTES,
            platform=settings.DEVICE_PLATFORM,
        )

    async def reconcile(self) -> None:
        await self.reconciler.reconcile()

    def trigger_reconcile(self):
        return self.reconciler.trigger()

    async def handle_notification_response(self, response: NotificationResponse) -> bool:
        return await self.dispatcher.handle_response(response)

    parse_duration = staticmethod(parse_duration)
