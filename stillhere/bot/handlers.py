"""Command handlers."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from stillhere.bot.formatters import (
    format_check_in_confirmation,
    format_contact_list,
    format_help_message,
    format_history,
    format_status,
    format_welcome_message,
)
from stillhere.bot.keyboards import check_in_keyboard, remove_contact_keyboard
from stillhere.config import Config
from stillhere.db.models import EmergencyContact, Location, NotificationChannel, default_channels
from stillhere.db.store import StoreError
from stillhere.engine.contacts import AddContactResult, AddOutcome, ContactRegistry
from stillhere.engine.escalation import EscalationScheduler
from stillhere.engine.location import StoredLocationProvider
from stillhere.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

ADD_CONTACT_USAGE = (
    "Usage: /addcontact name | phone | email | chat id [| channels]\n"
    "Leave parts empty to skip them, e.g.\n"
    "/addcontact Mom | (555) 123-4567 | mom@example.com\n"
    "The chat id is the number this bot replies with when they send it /start.\n"
    "Channels: email, sms, whatsapp, chat_app"
)


def is_owner(update: Update) -> bool:
    """Only the configured owner's chat drives the bot."""
    return bool(update.effective_chat) and update.effective_chat.id == Config.OWNER_CHAT_ID


def parse_contact_args(text: str, premium_enabled: bool = False) -> EmergencyContact | str:
    """Parse "name | phone | email | chat id [| channels]".

    Returns:
        The contact, or an error message string
    """
    parts = [part.strip() for part in text.split("|")]
    if not parts or not parts[0]:
        return ADD_CONTACT_USAGE
    if len(parts) > 5:
        return ADD_CONTACT_USAGE

    parts += [""] * (5 - len(parts))
    name, phone, email, handle, channels_text = parts

    if channels_text:
        try:
            channels = frozenset(
                NotificationChannel(value.strip().lower())
                for value in channels_text.split(",")
                if value.strip()
            )
        except ValueError:
            return f"Unknown channel in {channels_text!r}.\n\n{ADD_CONTACT_USAGE}"
    else:
        channels = default_channels(phone, email, handle, premium_enabled)

    return EmergencyContact(
        name=name,
        phone=phone or None,
        email=email or None,
        chat_handle=handle or None,
        enabled_channels=channels,
    )


def describe_add_result(result: AddContactResult, name: str) -> str:
    """User-facing text for an add or update attempt."""
    if result.outcome is AddOutcome.LIMIT_REACHED:
        text = "❌ You already have the maximum number of emergency contacts."
    elif result.outcome is AddOutcome.DUPLICATE:
        text = f"❌ That contact is already saved as <b>{escape(result.existing_name or '')}</b>."
    elif result.outcome is AddOutcome.INVALID:
        text = f"❌ {escape(result.reason or '')}"
    elif result.outcome is AddOutcome.NOT_FOUND:
        text = "❌ That contact no longer exists."
    else:
        text = f"✓ Added <b>{escape(name)}</b> as an emergency contact."

    if result.warning:
        text += f"\n\n⚠️ {result.warning}"
    return text


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.message:
        return

    if not is_owner(update):
        chat_id = update.effective_chat.id if update.effective_chat else "unknown"
        logger.info(f"Ignoring /start from non-owner chat {chat_id}")
        await update.message.reply_text(f"This bot is private. Your chat id is {chat_id}.")
        return

    await update.message.reply_html(format_welcome_message(), reply_markup=check_in_keyboard())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message or not is_owner(update):
        return

    await update.message.reply_html(format_help_message())


async def checkin_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /checkin command."""
    if not update.message or not is_owner(update):
        return

    scheduler: EscalationScheduler = context.bot_data["scheduler"]
    event = await scheduler.check_in(utcnow())

    await update.message.reply_html(
        format_check_in_confirmation(event, context.bot_data["zone"])
    )


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status command."""
    if not update.message or not is_owner(update):
        return

    scheduler: EscalationScheduler = context.bot_data["scheduler"]
    registry: ContactRegistry = context.bot_data["registry"]
    now = utcnow()
    status = scheduler.ledger.status(now)

    await update.message.reply_html(
        format_status(status, scheduler.tier(now), now, has_contacts=bool(registry.snapshot())),
        reply_markup=None if status.has_checked_in_today else check_in_keyboard(),
    )


async def history_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /history command."""
    if not update.message or not is_owner(update):
        return

    scheduler: EscalationScheduler = context.bot_data["scheduler"]
    await update.message.reply_html(
        format_history(scheduler.ledger.history, context.bot_data["zone"])
    )


async def contacts_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /contacts command."""
    if not update.message or not is_owner(update):
        return

    registry: ContactRegistry = context.bot_data["registry"]
    await update.message.reply_html(
        format_contact_list(registry.contacts, registry.remaining_slots)
    )


async def addcontact_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addcontact name | phone | email | chat id."""
    if not update.message or not is_owner(update):
        return

    if not context.args:
        await update.message.reply_text(ADD_CONTACT_USAGE)
        return

    registry: ContactRegistry = context.bot_data["registry"]
    parsed = parse_contact_args(" ".join(context.args), registry.premium_enabled)
    if isinstance(parsed, str):
        await update.message.reply_text(parsed)
        return

    result = await registry.add(parsed)
    await update.message.reply_html(describe_add_result(result, parsed.name))


async def removecontact_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /removecontact <n>; without a number, offers buttons."""
    if not update.message or not is_owner(update):
        return

    registry: ContactRegistry = context.bot_data["registry"]
    contacts = registry.contacts

    if not contacts:
        await update.message.reply_text("You have no emergency contacts.")
        return

    if not context.args:
        await update.message.reply_text(
            "Which contact should I remove?",
            reply_markup=remove_contact_keyboard([c.name for c in contacts]),
        )
        return

    try:
        position = int(context.args[0])
    except ValueError:
        await update.message.reply_text("Invalid contact number. Must be a number.")
        return

    if not 1 <= position <= len(contacts):
        await update.message.reply_text(f"Pick a number between 1 and {len(contacts)}.")
        return

    name = contacts[position - 1].name
    warning = await registry.remove({position - 1})

    text = f"🗑 Removed: <b>{escape(name)}</b>"
    if warning:
        text += f"\n\n⚠️ {warning}"
    await update.message.reply_html(text)


async def location_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Remember a shared location for emergency alerts."""
    message = update.message or update.edited_message
    if not message or not message.location or not is_owner(update):
        return

    provider: StoredLocationProvider = context.bot_data["location"]
    location = Location(
        latitude=message.location.latitude,
        longitude=message.location.longitude,
        recorded_at=utcnow(),
    )

    try:
        await provider.save(location)
    except StoreError as e:
        logger.error(f"Failed to save shared location: {e}")
        await message.reply_text("⚠️ Couldn't save your location, please try again.")
        return

    # Live location updates arrive as edits; only confirm the first share
    if update.message:
        await message.reply_text("📍 Got it. I'll include this location if I ever have to alert your contacts.")
