"""Telegram delivery: chat-app alerts and the user's own notifications."""

import logging

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from stillhere.bot.keyboards import check_in_keyboard
from stillhere.db.models import NotificationChannel

logger = logging.getLogger(__name__)


class TelegramChannelSender:
    """Sends chat-app alerts through the bot to a contact's chat id."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        if channel is not NotificationChannel.CHAT_APP:
            logger.warning(f"Telegram sender can't deliver {channel.value}")
            return False

        try:
            await self.bot.send_message(chat_id=destination, text=message)
        except TelegramError as e:
            logger.error(f"Failed to send Telegram alert to {destination}: {e}")
            return False

        logger.info(f"Telegram alert sent to {destination}")
        return True


class TelegramLocalNotifier:
    """Reminders and acknowledgments delivered to the owner's chat."""

    def __init__(self, bot: Bot, chat_id: int):
        self.bot = bot
        self.chat_id = chat_id

    async def remind(self, message: str) -> None:
        await self.bot.send_message(
            chat_id=self.chat_id,
            text=f"⏰ <b>Check In Required!</b>\n\n{message}",
            parse_mode=ParseMode.HTML,
            reply_markup=check_in_keyboard(),
        )

    async def acknowledge_emergency(self, message: str) -> None:
        await self.bot.send_message(
            chat_id=self.chat_id,
            text=message,
            parse_mode=ParseMode.HTML,
            reply_markup=check_in_keyboard(),
        )
