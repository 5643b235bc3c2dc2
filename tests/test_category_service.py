import uuid
import pytest
from unittest.mock import AsyncMock
from reminder_engine.schemas.notification import SnoozePreferences
from reminder_engine.services.category_service import (
    CategoryRegistry,
    build_category_buttons,
    filter_actionable,
    resolve_category_id,
    snooze_presets,
)
from helpers import make_action, make_reminder, FixedClock

REMINDER_ID = "0b6b7f52-6d3c-4a55-9c34-2d7f0a0c1e11"


def _reminder_with_actions(*types):
    reminder = make_reminder(FixedClock(), id=uuid.UUID(REMINDER_ID))
    values = {
        "call": {"phone": "+15550100"},
        "link": {"url": "https://example.com"},
        "location": {"address": "1 Main St"},
        "email": {"email": "a@example.com"},
        "note": {"text": "bring docs"},
        "subtasks": {"items": []},
    }
    return reminder, [make_action(reminder, t, values[t], i) for i, t in enumerate(types)]


def test_category_id_is_order_independent():
    a = resolve_category_id(REMINDER_ID, ["call", "link"], "text_input")
    b = resolve_category_id(REMINDER_ID, ["link", "call"], "text_input")
    assert a == b


def test_category_id_depends_on_mode_and_reminder():
    base = resolve_category_id(REMINDER_ID, ["call"], "text_input")
    assert base != resolve_category_id(REMINDER_ID, ["call"], "presets")
    assert base != resolve_category_id(str(uuid.uuid4()), ["call"], "text_input")


def test_category_id_format():
    category_id = resolve_category_id(REMINDER_ID, ["link", "call", "call"], "text_input")
    assert category_id == "reminder_0b6b7f52_6d3c_4a55_9c34_2d7f0a0c1e11_text_input_call_link"


def test_category_id_without_actions_uses_default_signature():
    assert resolve_category_id(REMINDER_ID, [], "presets").endswith("_presets_default")


def test_long_category_id_is_truncated_with_hash():
    long_id = "x" * 200
    first = resolve_category_id(long_id, ["call"], "text_input")
    second = resolve_category_id(long_id, ["email"], "text_input")

    assert len(first) == 100 + 1 + 8
    assert first[:100] == second[:100]
    assert first != second
    assert first == resolve_category_id(long_id, ["call"], "text_input")


def test_filter_actionable_keeps_stored_order():
    _, actions = _reminder_with_actions("note", "email", "subtasks", "call")
    assert [a.action_type for a in filter_actionable(actions)] == ["email", "call"]


def test_text_input_layout():
    _, actions = _reminder_with_actions("call", "link", "email")
    buttons = build_category_buttons(REMINDER_ID, actions, SnoozePreferences(mode="text_input"))

    assert len(buttons) == 4
    assert buttons[0].identifier == f"call_{actions[0].id}"
    assert buttons[1].identifier == f"link_{actions[1].id}"
    assert buttons[2].identifier == f"snooze_{REMINDER_ID}"
    assert buttons[2].text_input is not None
    assert buttons[3].identifier == f"complete_{REMINDER_ID}"
    assert buttons[3].is_destructive
    assert not any(b.opens_app for b in buttons)


def test_presets_fill_remaining_slots():
    _, actions = _reminder_with_actions("call")
    prefs = SnoozePreferences(mode="presets", presets=[30, 10, 10, 60, 5])
    buttons = build_category_buttons(REMINDER_ID, actions, prefs)

    # 1 quick action + 2 presets + complete
    assert [b.identifier for b in buttons[1:3]] == [f"snooze_{REMINDER_ID}_5", f"snooze_{REMINDER_ID}_10"]
    assert len(buttons) == 4


def test_presets_without_quick_actions():
    prefs = SnoozePreferences(mode="presets", presets=[60, 15, 30, 120])
    buttons = build_category_buttons(REMINDER_ID, [], prefs)

    assert [b.label for b in buttons[:3]] == ["⏰ 15m", "⏰ 30m", "⏰ 1h"]
    assert buttons[-1].identifier == f"complete_{REMINDER_ID}"


def test_empty_presets_fall_back_to_default():
    prefs = SnoozePreferences(mode="presets", presets=[], default_minutes=20)
    assert snooze_presets(prefs, 3) == [20]


@pytest.mark.asyncio
async def test_ensure_category_registers_buttons():
    center = AsyncMock()
    _, actions = _reminder_with_actions("note", "location")
    registry = CategoryRegistry(center)

    category_id = await registry.ensure_category(REMINDER_ID, actions, SnoozePreferences())

    assert category_id == resolve_category_id(REMINDER_ID, ["location"], "text_input")
    center.set_category.assert_awaited_once()
    registered_id, buttons = center.set_category.call_args[0]
    assert registered_id == category_id
    assert buttons[0].identifier.startswith("location_")


@pytest.mark.asyncio
async def test_ensure_category_is_stable_across_calls():
    center = AsyncMock()
    _, actions = _reminder_with_actions("call")
    registry = CategoryRegistry(center)

    first = await registry.ensure_category(REMINDER_ID, actions, SnoozePreferences())
    second = await registry.ensure_category(REMINDER_ID, actions, SnoozePreferences())

    assert first == second
    ids = {call.args[0] for call in center.set_category.call_args_list}
    assert ids == {first}
