import logging
from telegram import Update
from telegram.ext import ContextTypes
from reminder_engine.core.config import settings
from reminder_engine.core.scheduler import notification_center, reconcile_device_job
from reminder_engine.config.constants import ACTION_ID_DELIMITER, PREFIX_SNOOZE
from reminder_engine.db.session import AsyncSessionLocal
from reminder_engine.engine import ReminderEngine
from reminder_engine.schemas.notification import NotificationResponse
from reminder_engine.services.action_dispatcher import resolve_snooze_minutes
from reminder_engine.utils.duration_parser import format_duration

logger = logging.getLogger(__name__)

NOTIFICATION_ACTION_PATTERN = r"^(complete|snooze|call|link|location|email|note|subtasks)_"


async def _dispatch(response: NotificationResponse, presenter) -> bool:
    async with AsyncSessionLocal() as session:
        engine = ReminderEngine(
            session,
            notification_center,
            intents=presenter,
            user_id=settings.USER_ID,
            device_id=settings.DEVICE_ID,
        )
        return await engine.handle_notification_response(response)


async def notification_action_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    presenter = context.bot_data.get("presenter")

    entry = presenter.lookup(query.message.message_id) if presenter else None
    if not entry:
        await query.answer("This notification has expired.", show_alert=True)
        return

    notification_id, data = entry
    response = NotificationResponse(
        action_identifier=query.data,
        notification_id=notification_id,
        data=data,
    )
    handled = await _dispatch(response, presenter)

    if handled:
        await query.answer("Done")
    else:
        await query.answer()
        await query.message.reply_text("Open the app to continue with this reminder.")


async def snooze_reply_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """A text reply to a notification snoozes it by the typed duration."""
    message = update.message
    presenter = context.bot_data.get("presenter")
    if not message or not message.reply_to_message or not presenter:
        return

    entry = presenter.lookup(message.reply_to_message.message_id)
    if not entry:
        return

    notification_id, data = entry
    reminder_id = data.get("reminder_id")
    response = NotificationResponse(
        action_identifier=f"{PREFIX_SNOOZE}{ACTION_ID_DELIMITER}{reminder_id}",
        notification_id=notification_id,
        data=data,
        user_text=message.text,
    )
    if await _dispatch(response, presenter):
        minutes = resolve_snooze_minutes(
            None, message.text, data.get("default_snooze_minutes"), settings.DEFAULT_SNOOZE_MINUTES
        )
        await message.reply_text(f"⏰ Snoozed for {format_duration(minutes)}.")
    else:
        await message.reply_text("Could not snooze this reminder.")


async def sync_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/sync: resynchronise this device's notifications."""
    if not settings.USER_ID:
        await update.message.reply_text("USER_ID is not configured for this device.")
        return
    await reconcile_device_job(settings.USER_ID, settings.DEVICE_ID)
    await update.message.reply_text("🔄 Notifications synchronised.")
