"""
Application Constants

Identifiers, limits and labels shared by the category registry, the action
dispatcher and the reconciler.
"""

# ============================================================================
# Action types
# ============================================================================

ACTION_CALL = "call"
ACTION_LINK = "link"
ACTION_LOCATION = "location"
ACTION_EMAIL = "email"
ACTION_NOTE = "note"
ACTION_SUBTASKS = "subtasks"

# Action types that can produce an effect straight from a notification
ACTIONABLE_ACTION_TYPES = (ACTION_CALL, ACTION_LINK, ACTION_LOCATION, ACTION_EMAIL)

# ============================================================================
# Notification action identifiers
# ============================================================================

ACTION_ID_DELIMITER = "_"
PREFIX_COMPLETE = "complete"
PREFIX_SNOOZE = "snooze"

# ============================================================================
# Category limits
# ============================================================================

MAX_CATEGORY_BUTTONS = 4
MAX_QUICK_ACTION_BUTTONS = 2
MAX_SNOOZE_PRESETS = 3

CATEGORY_ID_MAX_LENGTH = 120
CATEGORY_ID_TRUNCATE_TO = 100
CATEGORY_ID_HASH_LENGTH = 8

# ============================================================================
# Snooze
# ============================================================================

SNOOZE_MODE_TEXT_INPUT = "text_input"
SNOOZE_MODE_PRESETS = "presets"

DEFAULT_SNOOZE_MINUTES = 15
DEFAULT_SNOOZE_PRESETS = (10, 15, 30)

# ============================================================================
# Labels
# ============================================================================

DEFAULT_NOTIFICATION_BODY = "Reminder is due!"

QUICK_ACTION_LABELS = {
    ACTION_CALL: "📞 Call",
    ACTION_LINK: "🔗 Open",
    ACTION_LOCATION: "📍 Navigate",
    ACTION_EMAIL: "📧 Email",
}

COMPLETE_LABEL = "✓ Complete"
SNOOZE_TEXT_LABEL = "⏰ Snooze"
SNOOZE_TEXT_PLACEHOLDER = "e.g. 10m, 1h 30m"
SNOOZE_TEXT_SUBMIT = "Snooze"

# ============================================================================
# Scheduler
# ============================================================================

NOTIFICATION_JOB_PREFIX = "notification:"
RESYNC_JOB_ID = "reminder_resync_job"

# ============================================================================
# Presentation
# ============================================================================

# Presented messages remembered for button presses and snooze replies
MAX_PRESENTED_MESSAGES = 500
