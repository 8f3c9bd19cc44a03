"""Callback query handlers for inline buttons."""

import logging
from html import escape

from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from stillhere.bot.formatters import format_check_in_confirmation
from stillhere.bot.handlers import is_owner
from stillhere.engine.contacts import ContactRegistry
from stillhere.engine.escalation import EscalationScheduler
from stillhere.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


async def handle_checkin_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the "I'm alive" button."""
    query = update.callback_query
    scheduler: EscalationScheduler = context.bot_data["scheduler"]
    event = await scheduler.check_in(utcnow())

    await query.answer("✓ Checked in!")  # type: ignore
    if query.message:  # type: ignore
        await query.edit_message_text(  # type: ignore
            format_check_in_confirmation(event, context.bot_data["zone"]),
            parse_mode=ParseMode.HTML,
        )


async def handle_remove_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, position: int
) -> None:
    """Handle a contact removal button."""
    query = update.callback_query
    registry: ContactRegistry = context.bot_data["registry"]
    contacts = registry.contacts

    if not 0 <= position < len(contacts):
        await query.answer("Contact not found.")  # type: ignore
        return

    name = contacts[position].name
    warning = await registry.remove({position})

    await query.answer(f"Removed {name}")  # type: ignore
    text = f"🗑 Removed: <b>{escape(name)}</b>"
    if warning:
        text += f"\n\n⚠️ {warning}"
    await query.edit_message_text(text, parse_mode=ParseMode.HTML)  # type: ignore


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to the appropriate handler."""
    query = update.callback_query
    if not query or not query.data:
        return

    if not is_owner(update):
        await query.answer()
        return

    data = query.data

    try:
        if data == "checkin":
            await handle_checkin_callback(update, context)
        elif data.startswith("remove:"):
            await handle_remove_callback(update, context, int(data.split(":", 1)[1]))
        else:
            logger.warning(f"Unknown callback data: {data}")
            await query.answer("Unknown action")
    except ValueError:
        logger.warning(f"Malformed callback data: {data}")
        await query.answer("Invalid action")
