import pytest
from unittest.mock import AsyncMock

from reminder_engine.models.reminder import ReminderStatus
from reminder_engine.schemas.notification import NotificationResponse
from reminder_engine.services.action_dispatcher import (
    ActionDispatcher,
    is_valid_reminder_id,
    resolve_snooze_minutes,
)
from helpers import make_action, make_reminder


@pytest.fixture
def intents():
    launcher = AsyncMock()
    launcher.open_uri.return_value = True
    return launcher


@pytest.fixture
def dispatcher(reminder_store, center, intents):
    return ActionDispatcher(
        reminder_store=reminder_store,
        notification_center=center,
        intents=intents,
        on_complete=AsyncMock(),
        on_snooze=AsyncMock(),
    )


@pytest.fixture
def reminder(reminder_store, clock):
    return reminder_store.add(make_reminder(clock))


def _response(identifier, reminder, **kwargs):
    data = {"reminder_id": str(reminder.id)}
    data.update(kwargs.pop("data", {}))
    return NotificationResponse(action_identifier=identifier, notification_id="notif-9", data=data, **kwargs)


def test_reminder_id_validation():
    assert is_valid_reminder_id("0B6B7F52-6D3C-4A55-9C34-2D7F0A0C1E11")
    assert not is_valid_reminder_id("not-a-uuid")
    assert not is_valid_reminder_id(None)
    assert not is_valid_reminder_id(42)


@pytest.mark.parametrize("preset, text, payload_default, expected", [
    ("30", None, 20, 30),
    ("", "1h 30m", 20, 90),
    (None, "later", 20, 20),
    (None, None, "25", 25),
    (None, None, None, 15),
    ("0", None, 0, 15),
])
def test_resolve_snooze_minutes(preset, text, payload_default, expected):
    assert resolve_snooze_minutes(preset, text, payload_default) == expected


@pytest.mark.asyncio
async def test_invalid_reminder_id_is_unhandled(dispatcher, reminder_store):
    response = NotificationResponse(action_identifier="complete_x", data={"reminder_id": "x"})
    assert await dispatcher.handle_response(response) is False
    assert reminder_store.status_updates == []


@pytest.mark.asyncio
async def test_complete(dispatcher, reminder, reminder_store, center):
    handled = await dispatcher.handle_response(_response(f"complete_{reminder.id}", reminder))

    assert handled is True
    assert reminder_store.status_updates == [(str(reminder.id), ReminderStatus.COMPLETED)]
    dispatcher.on_complete.assert_awaited_once_with(str(reminder.id))
    assert ("dismiss", "notif-9") in center.calls


@pytest.mark.asyncio
async def test_snooze_preset(dispatcher, reminder, center):
    assert await dispatcher.handle_response(_response(f"snooze_{reminder.id}_30", reminder)) is True
    dispatcher.on_snooze.assert_awaited_once_with(str(reminder.id), 30)
    assert ("dismiss", "notif-9") in center.calls


@pytest.mark.asyncio
async def test_snooze_typed_duration(dispatcher, reminder):
    response = _response(f"snooze_{reminder.id}", reminder, user_text="1h 30m")
    assert await dispatcher.handle_response(response) is True
    dispatcher.on_snooze.assert_awaited_once_with(str(reminder.id), 90)


@pytest.mark.asyncio
async def test_snooze_unparseable_text_uses_payload_default(dispatcher, reminder):
    response = _response(f"snooze_{reminder.id}", reminder, user_text="whenever",
                         data={"default_snooze_minutes": 20})
    await dispatcher.handle_response(response)
    dispatcher.on_snooze.assert_awaited_once_with(str(reminder.id), 20)


@pytest.mark.asyncio
async def test_snooze_falls_back_to_default(dispatcher, reminder):
    await dispatcher.handle_response(_response(f"snooze_{reminder.id}", reminder))
    dispatcher.on_snooze.assert_awaited_once_with(str(reminder.id), 15)


@pytest.mark.asyncio
async def test_snooze_failure_is_unhandled(dispatcher, reminder, center):
    dispatcher.on_snooze.side_effect = RuntimeError("store down")

    assert await dispatcher.handle_response(_response(f"snooze_{reminder.id}", reminder)) is False
    assert center.count("dismiss") == 0


@pytest.mark.asyncio
async def test_snooze_not_applied_is_unhandled(dispatcher, reminder, center):
    dispatcher.on_snooze.return_value = False

    assert await dispatcher.handle_response(_response(f"snooze_{reminder.id}_15", reminder)) is False
    dispatcher.on_snooze.assert_awaited_once_with(str(reminder.id), 15)
    assert center.count("dismiss") == 0


@pytest.mark.asyncio
async def test_call_action(dispatcher, reminder, reminder_store, intents, center):
    action = make_action(reminder, "call", {"phone": "+1 555 0100"})
    reminder_store.actions.append(action)

    assert await dispatcher.handle_response(_response(f"call_{action.id}", reminder)) is True
    intents.open_uri.assert_awaited_once_with("tel:+15550100")
    assert ("dismiss", "notif-9") in center.calls


@pytest.mark.asyncio
async def test_link_action_adds_scheme(dispatcher, reminder, reminder_store, intents):
    action = make_action(reminder, "link", {"url": "example.com/docs"})
    reminder_store.actions.append(action)

    assert await dispatcher.handle_response(_response(f"link_{action.id}", reminder)) is True
    intents.open_uri.assert_awaited_once_with("https://example.com/docs")


@pytest.mark.asyncio
async def test_malformed_link_is_unhandled(dispatcher, reminder, reminder_store, intents, center):
    action = make_action(reminder, "link", {"url": "https://"})
    reminder_store.actions.append(action)

    assert await dispatcher.handle_response(_response(f"link_{action.id}", reminder)) is False
    intents.open_uri.assert_not_awaited()
    assert center.count("dismiss") == 0


@pytest.mark.asyncio
async def test_location_with_coordinates(dispatcher, reminder, reminder_store, intents):
    action = make_action(reminder, "location", {"lat": 40.7, "lng": -74.0, "address": "Somewhere"})
    reminder_store.actions.append(action)

    await dispatcher.handle_response(_response(f"location_{action.id}", reminder))
    intents.open_uri.assert_awaited_once_with("maps:?q=40.7,-74")


@pytest.mark.asyncio
async def test_location_on_android(reminder_store, center, intents, reminder):
    dispatcher = ActionDispatcher(reminder_store, center, intents, platform="android")
    action = make_action(reminder, "location", {"address": "1 Main St"})
    reminder_store.actions.append(action)

    await dispatcher.handle_response(_response(f"location_{action.id}", reminder))
    intents.open_uri.assert_awaited_once_with("geo:0,0?q=1%20Main%20St")


@pytest.mark.asyncio
async def test_email_action(dispatcher, reminder, reminder_store, intents):
    action = make_action(reminder, "email", {"email": "a@example.com", "subject": "Hi there"})
    reminder_store.actions.append(action)

    await dispatcher.handle_response(_response(f"email_{action.id}", reminder))
    intents.open_uri.assert_awaited_once_with("mailto:a@example.com?subject=Hi%20there&body=")


@pytest.mark.asyncio
async def test_store_failure_uses_embedded_action(dispatcher, reminder, reminder_store, intents):
    reminder_store.get_reminder_actions = AsyncMock(side_effect=RuntimeError("offline"))
    response = _response(
        "call_abc123",
        reminder,
        data={"actions": {"abc123": {"type": "call", "value": {"phone": "+15550199"}}}},
    )

    assert await dispatcher.handle_response(response) is True
    intents.open_uri.assert_awaited_once_with("tel:+15550199")


@pytest.mark.asyncio
async def test_missing_action_is_unhandled(dispatcher, reminder, intents):
    assert await dispatcher.handle_response(_response("call_missing", reminder)) is False
    intents.open_uri.assert_not_awaited()


@pytest.mark.asyncio
async def test_launcher_refusal_keeps_notification(dispatcher, reminder, reminder_store, intents, center):
    intents.open_uri.return_value = False
    action = make_action(reminder, "call", {"phone": "+15550100"})
    reminder_store.actions.append(action)

    assert await dispatcher.handle_response(_response(f"call_{action.id}", reminder)) is False
    assert center.count("dismiss") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("identifier", ["note_abc", "subtasks_abc", "share_abc", "default", "complete"])
async def test_unhandled_identifiers(dispatcher, reminder, identifier):
    assert await dispatcher.handle_response(_response(identifier, reminder)) is False
    dispatcher.on_complete.assert_not_awaited()
    dispatcher.on_snooze.assert_not_awaited()


@pytest.mark.asyncio
async def test_dismiss_failure_does_not_fail_the_action(dispatcher, reminder, center):
    center.dismiss = AsyncMock(side_effect=RuntimeError("gone"))
    assert await dispatcher.handle_response(_response(f"complete_{reminder.id}", reminder)) is True
