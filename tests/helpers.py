"""Fakes and factories shared by the test suite."""
import uuid
from datetime import datetime, timedelta, timezone

from reminder_engine.models.reminder import Reminder, ReminderStatus
from reminder_engine.models.reminder_action import ReminderAction
from reminder_engine.models.notification_schedule import NotificationSchedule
from reminder_engine.schemas.notification import ScheduledNotification, SnoozePreferences
from reminder_engine.utils.timestamps import as_utc

USER_ID = "11111111-2222-3333-4444-555555555555"
DEVICE_ID = "pixel-test"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeReminderStore:
    def __init__(self):
        self.reminders = {}
        self.actions = []
        self.status_updates = []

    def add(self, reminder, actions=()):
        self.reminders[str(reminder.id)] = reminder
        self.actions.extend(actions)
        return reminder

    def remove(self, reminder_id):
        self.reminders.pop(str(reminder_id), None)

    async def get_future_reminders(self, user_id, now=None):
        return sorted(
            (r for r in self.reminders.values()
             if as_utc(r.scheduled_time) >= now and r.status != ReminderStatus.COMPLETED),
            key=lambda r: r.scheduled_time,
        )

    async def get_reminders_by_ids(self, reminder_ids):
        return [self.reminders[str(rid)] for rid in reminder_ids if str(rid) in self.reminders]

    async def get_reminder(self, reminder_id):
        return self.reminders.get(str(reminder_id))

    async def get_actions_for_reminders(self, reminder_ids):
        ids = {str(rid) for rid in reminder_ids}
        return [a for a in self.actions if str(a.reminder_id) in ids]

    async def get_reminder_actions(self, reminder_id):
        return await self.get_actions_for_reminders([reminder_id])

    async def set_reminder_status(self, reminder_id, status):
        self.status_updates.append((str(reminder_id), status))
        reminder = self.reminders.get(str(reminder_id))
        if reminder is None:
            return False
        reminder.status = status
        return True


class FakeScheduleStore:
    def __init__(self):
        self.records = {}
        self.upserts = 0
        self.deletes = 0

    @staticmethod
    def _key(user_id, reminder_id, device_id):
        return (str(user_id), str(reminder_id), device_id)

    async def list_schedules(self, user_id, device_id):
        return [r for r in self.records.values() if str(r.user_id) == str(user_id) and r.device_id == device_id]

    async def get_schedule(self, user_id, reminder_id, device_id):
        return self.records.get(self._key(user_id, reminder_id, device_id))

    async def upsert_schedule(self, user_id, reminder_id, device_id, notification_id, scheduled_for,
                              reminder_updated_at=None, snoozed_until=None):
        self.upserts += 1
        key = self._key(user_id, reminder_id, device_id)
        record = self.records.get(key)
        if record is None:
            record = NotificationSchedule(
                id=uuid.uuid4(),
                user_id=uuid.UUID(str(user_id)),
                reminder_id=uuid.UUID(str(reminder_id)),
                device_id=device_id,
            )
            self.records[key] = record
        record.notification_id = notification_id
        record.scheduled_for = scheduled_for
        record.reminder_updated_at = reminder_updated_at
        record.snoozed_until = snoozed_until

    async def delete_schedule(self, record_id):
        self.deletes += 1
        for key, record in list(self.records.items()):
            if record.id == record_id:
                del self.records[key]

    def for_reminder(self, reminder_id):
        return self.records.get(self._key(USER_ID, reminder_id, DEVICE_ID))


class FakeNotificationCenter:
    def __init__(self, clock):
        self.clock = clock
        self.scheduled = {}
        self.categories = {}
        self.calls = []
        self._seq = 0

    async def schedule_at(self, content, fire_at):
        self._seq += 1
        notification_id = f"notif-{self._seq}"
        self.calls.append(("schedule", notification_id))
        self.scheduled[notification_id] = ScheduledNotification(
            notification_id=notification_id,
            fire_at=fire_at,
            created_at=self.clock() + timedelta(microseconds=self._seq),
            content=content,
        )
        return notification_id

    async def cancel(self, notification_id):
        self.calls.append(("cancel", notification_id))
        self.scheduled.pop(notification_id, None)

    async def list_scheduled(self):
        return list(self.scheduled.values())

    async def set_category(self, category_id, buttons):
        self.calls.append(("set_category", category_id))
        self.categories[category_id] = list(buttons)

    async def dismiss(self, notification_id):
        self.calls.append(("dismiss", notification_id))

    def for_reminder(self, reminder_id):
        return [n for n in self.scheduled.values() if n.reminder_id == str(reminder_id)]

    def count(self, kind):
        return sum(1 for call, _ in self.calls if call == kind)


class FakePreferences:
    def __init__(self, prefs=None):
        self.prefs = prefs or SnoozePreferences()

    async def get_snooze_preferences(self, user_id):
        return self.prefs


def make_reminder(clock, minutes_ahead=60, notify_before=10, **kwargs):
    now = clock()
    defaults = dict(
        id=uuid.uuid4(),
        user_id=uuid.UUID(USER_ID),
        title="Call the dentist",
        description=None,
        scheduled_time=now + timedelta(minutes=minutes_ahead),
        notify_before_minutes=notify_before,
        status=ReminderStatus.FUTURE,
        updated_at=now - timedelta(days=1),
    )
    defaults.update(kwargs)
    return Reminder(**defaults)


def make_action(reminder, action_type, value, minutes_offset=0):
    return ReminderAction(
        id=uuid.uuid4(),
        reminder_id=reminder.id,
        action_type=action_type,
        action_value=value,
        created_at=NOW + timedelta(minutes=minutes_offset),
    )


