from .reminder import Reminder, ReminderStatus
from .reminder_action import ReminderAction
from .notification_schedule import NotificationSchedule
from .user_preferences import UserPreferences
