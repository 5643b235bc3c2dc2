"""
Schedule reconciliation.

Brings the notifications scheduled on one device in line with the user's
future reminders. A pass computes, per reminder, whether the existing
schedule record can be kept, must be replaced, or is no longer needed, then
retires records of reminders that left the future set and finally collapses
any duplicate notifications left behind by overlapping writers.

Only one pass runs at a time per user and device. A pass started while
another for the same pair is in flight returns immediately without doing
any work.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

from reminder_engine.config.constants import DEFAULT_NOTIFICATION_BODY, DEFAULT_SNOOZE_MINUTES
from reminder_engine.models.reminder import ReminderStatus
from reminder_engine.schemas.notification import (
    EmbeddedAction,
    NotificationContent,
    NotificationPayload,
    SnoozePreferences,
)
from reminder_engine.services.category_service import filter_actionable
from reminder_engine.utils.timestamps import as_utc, isoformat_or_none, utcnow

logger = logging.getLogger(__name__)

# Single-flight guards for reconciliation passes, one per (user, device)
_RECONCILE_LOCKS: Dict[tuple, asyncio.Lock] = defaultdict(asyncio.Lock)

KEPT = "kept"
SCHEDULED = "scheduled"
SKIPPED = "skipped"
FAILED = "failed"


def _is_completed(reminder) -> bool:
    return reminder.status == ReminderStatus.COMPLETED


class ScheduleReconciler:
    def __init__(
        self,
        user_id,
        device_id: str,
        reminder_store,
        schedule_store,
        notification_center,
        categories,
        preferences=None,
        lock: Optional[asyncio.Lock] = None,
        clock: Callable[[], datetime] = utcnow,
        tolerance_seconds: int = 60,
        default_snooze_minutes: int = DEFAULT_SNOOZE_MINUTES,
    ):
        self.user_id = user_id
        self.device_id = device_id
        self.reminder_store = reminder_store
        self.schedule_store = schedule_store
        self.notification_center = notification_center
        self.categories = categories
        self.preferences = preferences
        self.lock = lock or _RECONCILE_LOCKS[(str(user_id), device_id)]
        self.clock = clock
        self.tolerance = timedelta(seconds=tolerance_seconds)
        self.default_snooze_minutes = default_snooze_minutes
        self._background_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def trigger(self) -> asyncio.Task:
        """Start a reconciliation pass without waiting for it."""
        task = asyncio.create_task(self.reconcile())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def reconcile(self) -> None:
        if self.lock.locked():
            logger.info(f"Reconciliation already in progress for device {self.device_id}, skipping")
            return
        async with self.lock:
            await self._run()

    async def snooze(self, reminder_id: str, minutes: int) -> bool:
        """
        Reschedule a reminder's notification `minutes` from now and mark the
        record as snoozed so reconciliation leaves it alone until then.
        """
        async with self.lock:
            now = self.clock()
            snoozed_until = now + timedelta(minutes=minutes)
            try:
                reminder = await self.reminder_store.get_reminder(reminder_id)
                if reminder is None:
                    logger.warning(f"Cannot snooze unknown reminder {reminder_id}")
                    return False

                record = await self.schedule_store.get_schedule(self.user_id, reminder_id, self.device_id)
                previous_id = record.notification_id if record is not None else None

                prefs = await self._load_preferences()
                actions = await self.reminder_store.get_reminder_actions(reminder_id)
                notification_id = await self._schedule(
                    reminder, actions, prefs, snoozed_until, snoozed_until=snoozed_until
                )
            except Exception:
                logger.exception(f"Failed to snooze reminder {reminder_id}")
                return False

            # The old notification goes only once its replacement is recorded
            if previous_id and previous_id != notification_id:
                try:
                    await self.notification_center.cancel(previous_id)
                except Exception as e:
                    logger.warning(f"Failed to cancel notification {previous_id} replaced by snooze: {e}")
            logger.info(f"Reminder {reminder_id} snoozed until {snoozed_until}")
            return True

    async def on_reminder_completed(self, reminder_id: str) -> None:
        """Drop this device's notification for a reminder that was just completed."""
        async with self.lock:
            try:
                record = await self.schedule_store.get_schedule(self.user_id, reminder_id, self.device_id)
                if record is not None:
                    await self._retire(record)
            except Exception:
                logger.exception(f"Failed to clear notification of completed reminder {reminder_id}")

    # ------------------------------------------------------------------
    # Reconciliation pass
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        now = self.clock()
        try:
            reminders = await self.reminder_store.get_future_reminders(self.user_id, now)
            records = await self.schedule_store.list_schedules(self.user_id, self.device_id)
        except Exception:
            logger.exception(f"Reconciliation for device {self.device_id} could not load state, retrying next pass")
            return

        reminders = [r for r in reminders if not _is_completed(r)]
        prefs = await self._load_preferences()
        actions_by_reminder = await self._load_actions([r.id for r in reminders])
        records_by_reminder = {str(record.reminder_id): record for record in records}

        kept: Set = set()
        future_ids: Set[str] = set()
        outcomes: Dict[str, int] = defaultdict(int)

        for reminder in reminders:
            reminder_id = str(reminder.id)
            future_ids.add(reminder_id)
            record = records_by_reminder.get(reminder_id)
            try:
                outcome = await self._reconcile_reminder(
                    reminder, record, actions_by_reminder.get(reminder_id, []), prefs, now
                )
            except Exception:
                logger.exception(f"Failed to reconcile reminder {reminder_id}, leaving it for the next pass")
                outcome = FAILED
            if outcome == KEPT:
                kept.add(record.id)
            outcomes[outcome] += 1

        try:
            outcomes["retired"] = await self._retire_orphans(records, kept, future_ids, now)
        except Exception:
            logger.exception(f"Orphan cleanup for device {self.device_id} failed, retrying next pass")
        try:
            outcomes["deduplicated"] = await self._deduplicate()
        except Exception:
            logger.exception(f"Deduplication for device {self.device_id} failed, retrying next pass")

        logger.info(f"Reconciliation for device {self.device_id} finished: {dict(outcomes)}")

    async def _reconcile_reminder(self, reminder, record, actions, prefs: SnoozePreferences, now: datetime) -> str:
        # An active snooze wins over whatever the reminder says now
        if record is not None and self._snooze_active(record, now):
            await self._refresh_category(reminder, actions, prefs)
            return KEPT

        notify_at = self._notify_at(reminder)
        if notify_at is None or notify_at <= now:
            # Missed notifications are not back-filled
            if record is not None:
                await self._retire(record)
            return SKIPPED

        if record is not None:
            if self._is_current(record, reminder, notify_at, now):
                await self._refresh_category(reminder, actions, prefs)
                return KEPT
            await self._retire(record)

        await self._schedule(reminder, actions, prefs, notify_at)
        return SCHEDULED

    async def _retire_orphans(self, records, kept: Set, future_ids: Set[str], now: datetime) -> int:
        orphans = [
            record for record in records
            if record.id not in kept and str(record.reminder_id) not in future_ids
        ]
        if not orphans:
            return 0

        # A snoozed reminder may be past its scheduled time; keep the snooze
        # while the reminder still exists and is open.
        snoozed_alive: Set[str] = set()
        snoozed = [str(r.reminder_id) for r in orphans if self._snooze_active(r, now)]
        if snoozed:
            try:
                existing = await self.reminder_store.get_reminders_by_ids(snoozed)
                snoozed_alive = {str(r.id) for r in existing if not _is_completed(r)}
            except Exception as e:
                logger.warning(f"Could not verify snoozed reminders, keeping their notifications: {e}")
                snoozed_alive = set(snoozed)

        retired = 0
        for record in orphans:
            if str(record.reminder_id) in snoozed_alive:
                continue
            try:
                await self._retire(record)
                retired += 1
            except Exception:
                logger.exception(f"Failed to retire schedule record {record.id}")
        return retired

    async def _deduplicate(self) -> int:
        """Cancel all but the most recently scheduled notification of each reminder."""
        try:
            scheduled = await self.notification_center.list_scheduled()
        except Exception:
            logger.exception("Could not list scheduled notifications for deduplication")
            return 0

        by_reminder = defaultdict(list)
        for item in scheduled:
            if item.reminder_id:
                by_reminder[item.reminder_id].append(item)

        cancelled = 0
        for reminder_id, items in by_reminder.items():
            if len(items) < 2:
                continue
            items.sort(key=lambda n: as_utc(n.created_at))
            for stale in items[:-1]:
                try:
                    await self.notification_center.cancel(stale.notification_id)
                    cancelled += 1
                except Exception:
                    logger.exception(f"Failed to cancel duplicate notification {stale.notification_id}")
            logger.warning(f"Collapsed {len(items) - 1} duplicate notification(s) for reminder {reminder_id}")
        return cancelled

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _notify_at(reminder) -> Optional[datetime]:
        scheduled_time = as_utc(reminder.scheduled_time)
        if scheduled_time is None:
            return None
        try:
            lead = max(int(reminder.notify_before_minutes or 0), 0)
        except (TypeError, ValueError):
            return None
        return scheduled_time - timedelta(minutes=lead)

    @staticmethod
    def _snooze_active(record, now: datetime) -> bool:
        snoozed_until = as_utc(record.snoozed_until)
        return snoozed_until is not None and snoozed_until > now

    def _is_current(self, record, reminder, notify_at: datetime, now: datetime) -> bool:
        scheduled_for = as_utc(record.scheduled_for)
        return (
            as_utc(record.reminder_updated_at) == as_utc(reminder.updated_at)
            and scheduled_for is not None
            and abs(scheduled_for - notify_at) <= self.tolerance
            and scheduled_for > now
        )

    async def _retire(self, record) -> None:
        await self.notification_center.cancel(record.notification_id)
        await self.schedule_store.delete_schedule(record.id)

    async def _schedule(self, reminder, actions, prefs: SnoozePreferences, fire_at: datetime,
                        snoozed_until: Optional[datetime] = None) -> str:
        content = await self._build_content(reminder, actions, prefs)
        notification_id = await self.notification_center.schedule_at(content, fire_at)
        try:
            await self.schedule_store.upsert_schedule(
                user_id=self.user_id,
                reminder_id=reminder.id,
                device_id=self.device_id,
                notification_id=notification_id,
                scheduled_for=fire_at,
                reminder_updated_at=reminder.updated_at,
                snoozed_until=snoozed_until,
            )
        except Exception:
            # Without a record the notification would be duplicated next pass
            await self.notification_center.cancel(notification_id)
            raise
        return notification_id

    async def _refresh_category(self, reminder, actions, prefs: SnoozePreferences) -> None:
        """Re-register the buttons of a kept notification; categories do not survive a restart."""
        actionable = filter_actionable(actions)
        if not actionable:
            return
        try:
            await self.categories.ensure_category(reminder.id, actionable, prefs)
        except Exception as e:
            logger.warning(f"Category refresh failed for reminder {reminder.id}: {e}")

    async def _build_content(self, reminder, actions, prefs: SnoozePreferences) -> NotificationContent:
        actionable = filter_actionable(actions)
        category_id = None
        if actionable:
            try:
                category_id = await self.categories.ensure_category(reminder.id, actionable, prefs)
            except Exception as e:
                logger.warning(f"Category registration failed for reminder {reminder.id}, scheduling without buttons: {e}")

        body = reminder.description or DEFAULT_NOTIFICATION_BODY
        payload = NotificationPayload(
            reminder_id=str(reminder.id),
            title=reminder.title,
            body=body,
            scheduled_time=isoformat_or_none(reminder.scheduled_time),
            reminder_updated_at=isoformat_or_none(reminder.updated_at),
            category_id=category_id,
            action_types=[str(getattr(a.action_type, "value", a.action_type)) for a in actionable],
            actions={
                str(a.id): EmbeddedAction(type=str(getattr(a.action_type, "value", a.action_type)), value=a.action_value)
                for a in actionable
            },
            default_snooze_minutes=prefs.default_minutes,
        )
        return NotificationContent(
            title=reminder.title,
            body=body,
            category_id=category_id,
            data=payload.model_dump(mode="json"),
        )

    async def _load_preferences(self) -> SnoozePreferences:
        if self.preferences is None:
            return SnoozePreferences(default_minutes=self.default_snooze_minutes)
        try:
            return await self.preferences.get_snooze_preferences(self.user_id)
        except Exception as e:
            logger.warning(f"Could not load snooze preferences for user {self.user_id}, using defaults: {e}")
            return SnoozePreferences(default_minutes=self.default_snooze_minutes)

    async def _load_actions(self, reminder_ids: List) -> Dict[str, list]:
        actions_by_reminder: Dict[str, list] = defaultdict(list)
        if not reminder_ids:
            return actions_by_reminder
        try:
            for action in await self.reminder_store.get_actions_for_reminders(reminder_ids):
                actions_by_reminder[str(action.reminder_id)].append(action)
        except Exception as e:
            logger.warning(f"Could not load reminder actions, scheduling without quick actions: {e}")
        return actions_by_reminder
