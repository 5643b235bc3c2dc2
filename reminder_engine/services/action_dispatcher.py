"""
Routing of notification action-button presses.

Every entry point returns a boolean: True when the press was fully handled
here, False when the caller should fall back to opening the app on the
reminder. Errors never escape to the notification callback.
"""
import logging
import re
from typing import Any, Awaitable, Callable, Optional

from reminder_engine.config.constants import (
    ACTION_CALL,
    ACTION_EMAIL,
    ACTION_ID_DELIMITER,
    ACTION_LINK,
    ACTION_LOCATION,
    ACTION_NOTE,
    ACTION_SUBTASKS,
    DEFAULT_SNOOZE_MINUTES,
    PREFIX_COMPLETE,
    PREFIX_SNOOZE,
)
from reminder_engine.device.intents import build_mailto_uri, build_map_uri, build_tel_uri, normalize_url
from reminder_engine.models.reminder import ReminderStatus
from reminder_engine.schemas.notification import NotificationResponse
from reminder_engine.utils.duration_parser import parse_duration

logger = logging.getLogger(__name__)

UUID_REGEX = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)

CompleteHandler = Callable[[str], Awaitable[Any]]
SnoozeHandler = Callable[[str, int], Awaitable[Any]]


def is_valid_reminder_id(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_REGEX.match(value))


def _positive_int(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def resolve_snooze_minutes(preset: Optional[str], user_text: Optional[str], payload_default: Any,
                           fallback: int = DEFAULT_SNOOZE_MINUTES) -> int:
    """Preset in the identifier, then typed text, then the payload default, then the fallback."""
    minutes = _positive_int(preset) if preset else None
    if minutes is None and user_text:
        minutes = parse_duration(user_text)
    if minutes is None:
        minutes = _positive_int(payload_default)
    return minutes if minutes is not None else fallback


class ActionDispatcher:
    def __init__(
        self,
        reminder_store,
        notification_center,
        intents,
        on_complete: Optional[CompleteHandler] = None,
        on_snooze: Optional[SnoozeHandler] = None,
        default_snooze_minutes: int = DEFAULT_SNOOZE_MINUTES,
        platform: str = "ios",
    ):
        self.reminder_store = reminder_store
        self.notification_center = notification_center
        self.intents = intents
        self.on_complete = on_complete
        self.on_snooze = on_snooze
        self.default_snooze_minutes = default_snooze_minutes
        self.platform = platform

    async def handle_response(self, response: NotificationResponse) -> bool:
        data = response.data or {}
        reminder_id = data.get("reminder_id")
        if not is_valid_reminder_id(reminder_id):
            logger.warning(f"Ignoring notification response with invalid reminder id: {reminder_id!r}")
            return False

        prefix, _, remainder = response.action_identifier.partition(ACTION_ID_DELIMITER)
        if not remainder:
            # Body taps and system identifiers carry no prefix of ours
            return False

        try:
            if prefix == PREFIX_COMPLETE:
                return await self._complete(reminder_id, response)
            if prefix == PREFIX_SNOOZE:
                return await self._snooze(reminder_id, remainder, response)
            if prefix in (ACTION_CALL, ACTION_LINK, ACTION_LOCATION, ACTION_EMAIL):
                return await self._quick_action(reminder_id, prefix, remainder, response)
            if prefix in (ACTION_NOTE, ACTION_SUBTASKS):
                # These need the app itself
                return False
            logger.info(f"Unrecognized notification action {response.action_identifier!r}")
            return False
        except Exception:
            logger.exception(f"Error handling notification action {response.action_identifier!r} for reminder {reminder_id}")
            return False

    async def _complete(self, reminder_id: str, response: NotificationResponse) -> bool:
        await self.reminder_store.set_reminder_status(reminder_id, ReminderStatus.COMPLETED)
        if self.on_complete:
            await self.on_complete(reminder_id)
        await self._dismiss(response)
        return True

    async def _snooze(self, reminder_id: str, remainder: str, response: NotificationResponse) -> bool:
        # remainder is "<reminder-id>" or "<reminder-id>_<preset-minutes>"
        _, _, preset = remainder.partition(ACTION_ID_DELIMITER)
        minutes = resolve_snooze_minutes(
            preset,
            response.user_text,
            response.data.get("default_snooze_minutes"),
            self.default_snooze_minutes,
        )
        logger.info(f"Snoozing reminder {reminder_id} for {minutes} minutes")
        if self.on_snooze and await self.on_snooze(reminder_id, minutes) is False:
            logger.warning(f"Snooze of reminder {reminder_id} was not applied")
            return False
        await self._dismiss(response)
        return True

    async def _quick_action(self, reminder_id: str, action_type: str, action_id: str,
                            response: NotificationResponse) -> bool:
        value = await self._lookup_action_value(reminder_id, action_type, action_id, response.data)
        if value is None:
            logger.warning(f"No {action_type} action {action_id} found for reminder {reminder_id}")
            return False

        try:
            if action_type == ACTION_CALL:
                uri = build_tel_uri(value)
            elif action_type == ACTION_LINK:
                uri = normalize_url(value)
            elif action_type == ACTION_LOCATION:
                uri = build_map_uri(value, self.platform)
            else:
                uri = build_mailto_uri(value)
        except ValueError as e:
            logger.warning(f"Cannot run {action_type} action {action_id}: {e}")
            return False

        if not await self.intents.open_uri(uri):
            return False
        await self._dismiss(response)
        return True

    async def _lookup_action_value(self, reminder_id: str, action_type: str, action_id: str, data: dict):
        """Fresh value from the store, else the copy embedded in the notification."""
        try:
            for action in await self.reminder_store.get_reminder_actions(reminder_id):
                if str(action.id) == action_id and str(getattr(action.action_type, "value", action.action_type)) == action_type:
                    return action.action_value
        except Exception as e:
            logger.warning(f"Action lookup failed for reminder {reminder_id}, using embedded data: {e}")

        embedded = (data.get("actions") or {}).get(action_id)
        if isinstance(embedded, dict) and embedded.get("type") == action_type:
            return embedded.get("value")
        return None

    async def _dismiss(self, response: NotificationResponse) -> None:
        if not response.notification_id:
            return
        try:
            await self.notification_center.dismiss(response.notification_id)
        except Exception as e:
            logger.warning(f"Failed to dismiss notification {response.notification_id}: {e}")
