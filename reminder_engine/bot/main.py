import logging
from telegram import BotCommand
from telegram.ext import ApplicationBuilder, CallbackQueryHandler, CommandHandler, MessageHandler, filters
from reminder_engine.core.config import settings
from reminder_engine.core.scheduler import notification_center, reconcile_device_job, start_scheduler, shutdown_scheduler
from reminder_engine.bot.handlers import (
    NOTIFICATION_ACTION_PATTERN, notification_action_callback, snooze_reply_handler, sync_command
)
from reminder_engine.bot.notifier import create_presenter

logger = logging.getLogger(__name__)

async def post_init(application):
    """
    Post initialization hook: bind the presenter, start the scheduler and
    run the foreground reconciliation.
    """
    await application.bot.set_my_commands([
        BotCommand("sync", "Resynchronise notifications"),
    ])

    presenter = create_presenter(application.bot)
    notification_center.presenter = presenter
    application.bot_data["presenter"] = presenter

    await start_scheduler()

    if settings.USER_ID:
        await reconcile_device_job(settings.USER_ID, settings.DEVICE_ID)
    else:
        logger.warning("USER_ID is not set, skipping startup reconciliation.")

async def post_shutdown(application):
    """
    Post shutdown hook to stop scheduler.
    """
    await shutdown_scheduler()

def create_bot():
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN is not set.")
        return None

    application = (
        ApplicationBuilder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    application.add_handler(CommandHandler("sync", sync_command))
    application.add_handler(CallbackQueryHandler(notification_action_callback, pattern=NOTIFICATION_ACTION_PATTERN))
    application.add_handler(MessageHandler(filters.REPLY & filters.TEXT & ~filters.COMMAND, snooze_reply_handler))

    return application
