"""
Dynamic notification categories.

A category is the set of action buttons shown on a notification. Each
reminder gets one tailored to its quick actions and to the user's snooze
mode. The category identifier is a pure function of those inputs, so
registering it again on every reconciliation pass overwrites the previous
registration instead of creating a new one.
"""
import hashlib
import logging
import re
from typing import Iterable, List, Sequence

from reminder_engine.config.constants import (
    ACTION_ID_DELIMITER,
    ACTIONABLE_ACTION_TYPES,
    CATEGORY_ID_HASH_LENGTH,
    CATEGORY_ID_MAX_LENGTH,
    CATEGORY_ID_TRUNCATE_TO,
    COMPLETE_LABEL,
    MAX_CATEGORY_BUTTONS,
    MAX_QUICK_ACTION_BUTTONS,
    MAX_SNOOZE_PRESETS,
    PREFIX_COMPLETE,
    PREFIX_SNOOZE,
    QUICK_ACTION_LABELS,
    SNOOZE_MODE_PRESETS,
    SNOOZE_TEXT_LABEL,
    SNOOZE_TEXT_PLACEHOLDER,
    SNOOZE_TEXT_SUBMIT,
)
from reminder_engine.schemas.notification import CategoryButton, SnoozePreferences, TextInputOptions
from reminder_engine.utils.duration_parser import format_duration

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def _type_name(action_type) -> str:
    return str(getattr(action_type, "value", action_type))


def _sanitize(value: str) -> str:
    return _NON_ALNUM.sub("_", value.lower()).strip("_")


def resolve_category_id(reminder_id, action_types: Iterable, snooze_mode: str) -> str:
    """
    Deterministic category identifier for a reminder.

    Order of `action_types` does not matter. Identifiers longer than the
    OS-safe bound are truncated and suffixed with a hash of the full value.
    """
    types = sorted({_type_name(t) for t in action_types})
    signature = "_".join(types) if types else "default"
    tokens = ["reminder", str(reminder_id), str(snooze_mode), signature]
    category_id = _sanitize("_".join(tokens))

    if len(category_id) > CATEGORY_ID_MAX_LENGTH:
        digest = hashlib.sha256(category_id.encode("utf-8")).hexdigest()[:CATEGORY_ID_HASH_LENGTH]
        category_id = f"{category_id[:CATEGORY_ID_TRUNCATE_TO]}_{digest}"
    return category_id


def filter_actionable(actions: Iterable) -> list:
    """Actions that can fire an effect straight from the notification, in stored order."""
    return [a for a in actions if _type_name(a.action_type) in ACTIONABLE_ACTION_TYPES]


def snooze_presets(prefs: SnoozePreferences, slots: int) -> List[int]:
    presets = sorted({p for p in prefs.presets if p > 0})[:MAX_SNOOZE_PRESETS]
    if not presets:
        presets = [prefs.default_minutes]
    return presets[:max(slots, 0)]


def _quick_action_button(action) -> CategoryButton:
    action_type = _type_name(action.action_type)
    return CategoryButton(
        identifier=f"{action_type}{ACTION_ID_DELIMITER}{action.id}",
        label=QUICK_ACTION_LABELS.get(action_type, action_type.title()),
        opens_app=False,
    )


def build_category_buttons(reminder_id, actions: Sequence, prefs: SnoozePreferences) -> List[CategoryButton]:
    """
    Button layout: up to two quick actions, then snooze control(s), then complete.
    """
    buttons = [_quick_action_button(a) for a in filter_actionable(actions)[:MAX_QUICK_ACTION_BUTTONS]]

    # One slot is always reserved for the complete button
    snooze_slots = MAX_CATEGORY_BUTTONS - len(buttons) - 1
    snooze_id = f"{PREFIX_SNOOZE}{ACTION_ID_DELIMITER}{reminder_id}"

    if prefs.mode == SNOOZE_MODE_PRESETS:
        for minutes in snooze_presets(prefs, snooze_slots):
            buttons.append(CategoryButton(
                identifier=f"{snooze_id}{ACTION_ID_DELIMITER}{minutes}",
                label=f"⏰ {format_duration(minutes)}",
                opens_app=False,
            ))
    else:
        buttons.append(CategoryButton(
            identifier=snooze_id,
            label=SNOOZE_TEXT_LABEL,
            opens_app=False,
            text_input=TextInputOptions(
                placeholder=SNOOZE_TEXT_PLACEHOLDER,
                submit_label=SNOOZE_TEXT_SUBMIT,
            ),
        ))

    buttons.append(CategoryButton(
        identifier=f"{PREFIX_COMPLETE}{ACTION_ID_DELIMITER}{reminder_id}",
        label=COMPLETE_LABEL,
        opens_app=False,
        is_destructive=True,
    ))
    return buttons


class CategoryRegistry:
    """Registers per-reminder categories with the notification center."""

    def __init__(self, notification_center):
        self.notification_center = notification_center

    async def ensure_category(self, reminder_id, actions: Sequence, prefs: SnoozePreferences) -> str:
        actionable = filter_actionable(actions)
        category_id = resolve_category_id(
            reminder_id,
            [a.action_type for a in actionable],
            prefs.mode,
        )
        buttons = build_category_buttons(reminder_id, actionable, prefs)
        await self.notification_center.set_category(category_id, buttons)
        logger.info(f"Registered category {category_id} with {len(buttons)} buttons")
        return category_id
