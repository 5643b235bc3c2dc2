import html
import logging
from collections import OrderedDict
from typing import Dict, Optional, Sequence, Tuple
from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import TelegramError
from reminder_engine.config.constants import MAX_PRESENTED_MESSAGES
from reminder_engine.core.config import settings
from reminder_engine.schemas.notification import CategoryButton, NotificationContent

logger = logging.getLogger(__name__)


class TelegramPresenter:
    """
    Shows fired notifications in the Telegram chat bound to this device.

    Category buttons become an inline keyboard whose callback data is the
    button identifier. The presenter also opens quick-action URIs by posting
    them to the chat. Only the most recent MAX_PRESENTED_MESSAGES messages
    stay answerable; older ones are forgotten.
    """

    def __init__(self, bot: Bot, chat_id: int):
        self.bot = bot
        self.chat_id = chat_id
        self._messages: "OrderedDict[str, int]" = OrderedDict()
        self._notifications: Dict[int, Tuple[str, dict]] = {}

    @staticmethod
    def build_keyboard(buttons: Sequence[CategoryButton]) -> Optional[InlineKeyboardMarkup]:
        if not buttons:
            return None
        return InlineKeyboardMarkup(
            [[InlineKeyboardButton(b.label, callback_data=b.identifier)] for b in buttons]
        )

    @staticmethod
    def format_message(content: NotificationContent, buttons: Sequence[CategoryButton]) -> str:
        text = f"🔔 <b>{html.escape(content.title)}</b>\n{html.escape(content.body)}"
        if any(b.text_input for b in buttons):
            text += "\n\n<i>Reply with a duration (e.g. 10m, 1h 30m) to snooze.</i>"
        return text

    async def present(self, notification_id: str, content: NotificationContent, buttons: Sequence[CategoryButton]) -> None:
        message = await self.bot.send_message(
            chat_id=self.chat_id,
            text=self.format_message(content, buttons),
            parse_mode="HTML",
            reply_markup=self.build_keyboard(buttons),
        )
        self._messages[notification_id] = message.message_id
        self._notifications[message.message_id] = (notification_id, content.data)
        while len(self._messages) > MAX_PRESENTED_MESSAGES:
            _, oldest = self._messages.popitem(last=False)
            self._notifications.pop(oldest, None)
        logger.info(f"Presented notification {notification_id} as message {message.message_id}")

    def lookup(self, message_id: int) -> Optional[Tuple[str, dict]]:
        """Notification id and payload behind a presented message."""
        return self._notifications.get(message_id)

    async def dismiss(self, notification_id: str) -> None:
        message_id = self._messages.pop(notification_id, None)
        if message_id is None:
            return
        self._notifications.pop(message_id, None)
        try:
            await self.bot.edit_message_reply_markup(chat_id=self.chat_id, message_id=message_id, reply_markup=None)
        except TelegramError as e:
            logger.warning(f"Could not clear buttons of message {message_id}: {e}")

    async def open_uri(self, uri: str) -> bool:
        try:
            await self.bot.send_message(chat_id=self.chat_id, text=uri)
            return True
        except TelegramError:
            logger.exception(f"Failed to send {uri} to chat {self.chat_id}")
            return False


def create_presenter(bot: Optional[Bot] = None) -> Optional[TelegramPresenter]:
    if not settings.TELEGRAM_BOT_TOKEN or not settings.TELEGRAM_CHAT_ID:
        logger.warning("TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID is not set, notifications will only be logged.")
        return None
    return TelegramPresenter(bot or Bot(token=settings.TELEGRAM_BOT_TOKEN), settings.TELEGRAM_CHAT_ID)
