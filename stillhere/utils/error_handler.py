"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from stillhere.db.store import StoreError

logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors raised by update handlers."""
    logger.error("Exception while handling an update:", exc_info=context.error)

    tb_list = traceback.format_exception(None, context.error, context.error.__traceback__)  # type: ignore
    logger.debug(f"Traceback:\n{''.join(tb_list)}")

    if isinstance(update, Update) and update.effective_message:
        error_message = (
            "😅 Oops! Something went wrong.\n\n"
            "The error has been logged. Please try again or use /help."
        )

        error = context.error
        if isinstance(error, StoreError):
            error_message = "💾 Storage is unavailable right now.\n\nPlease try again in a moment."
        elif "Timeout" in str(error):
            error_message = "⏱️ Request timed out.\n\nPlease try again in a moment."
        elif "Network" in str(error):
            error_message = "🌐 Network error.\n\nPlease check your connection and try again."

        try:
            await update.effective_message.reply_text(error_message)
        except TelegramError as e:
            logger.error(f"Failed to send error message to user: {e}")
