"""Main entry point for the StillHere bot."""

import logging
import sys

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from stillhere.bot.callbacks import callback_router
from stillhere.bot.handlers import (
    addcontact_command,
    checkin_command,
    contacts_command,
    help_command,
    history_command,
    location_handler,
    removecontact_command,
    start_command,
    status_command,
)
from stillhere.bot.trigger import JobQueueTrigger
from stillhere.channels.senders import (
    MailgunChannelSender,
    RoutingChannelSender,
    TwilioChannelSender,
)
from stillhere.channels.telegram import TelegramChannelSender, TelegramLocalNotifier
from stillhere.config import Config
from stillhere.db.migrations import run_migrations
from stillhere.db.models import NotificationChannel
from stillhere.db.store import SqliteStore
from stillhere.engine.contacts import ContactRegistry
from stillhere.engine.escalation import EscalationScheduler
from stillhere.engine.ledger import CheckInLedger
from stillhere.engine.location import StoredLocationProvider
from stillhere.engine.notifier import EmergencyNotifier
from stillhere.utils.error_handler import error_handler
from stillhere.utils.time_utils import resolve_timezone, utcnow

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


def build_channel_sender(application: Application) -> RoutingChannelSender:
    """Wire each notification channel to its transport."""
    twilio = TwilioChannelSender(
        Config.TWILIO_ACCOUNT_SID,
        Config.TWILIO_AUTH_TOKEN,
        Config.TWILIO_PHONE_NUMBER,
        Config.TWILIO_WHATSAPP_NUMBER,
    )
    mailgun = MailgunChannelSender(
        Config.MAILGUN_API_KEY,
        Config.MAILGUN_API_URL,
        Config.MAILGUN_FROM,
        timeout=Config.SEND_TIMEOUT,
    )
    return RoutingChannelSender(
        {
            NotificationChannel.EMAIL: mailgun,
            NotificationChannel.SMS: twilio,
            NotificationChannel.WHATSAPP: twilio,
            NotificationChannel.CHAT_APP: TelegramChannelSender(application.bot),
        }
    )


async def post_init(application: Application) -> None:
    """Initialize components after the application is created."""
    await run_migrations(Config.DATABASE_PATH)

    store = SqliteStore(Config.DATABASE_PATH)
    await store.connect()

    zone = resolve_timezone(Config.TIMEZONE)

    ledger = CheckInLedger(store, zone)
    await ledger.load()

    registry = ContactRegistry(store, premium_enabled=Config.PREMIUM_ENABLED)
    await registry.load()

    location = StoredLocationProvider(store)
    local = TelegramLocalNotifier(application.bot, Config.OWNER_CHAT_ID)

    notifier = EmergencyNotifier(
        registry,
        build_channel_sender(application),
        local,
        location_provider=location,
        location_timeout=Config.LOCATION_TIMEOUT,
        send_timeout=Config.SEND_TIMEOUT,
    )

    if application.job_queue is None:
        raise RuntimeError("JobQueue unavailable; install python-telegram-bot[job-queue]")

    scheduler = EscalationScheduler(ledger, notifier, local, JobQueueTrigger(application.job_queue))

    application.bot_data.update(
        store=store,
        zone=zone,
        ledger=ledger,
        registry=registry,
        location=location,
        scheduler=scheduler,
    )

    # Re-arm wakes from persisted history
    scheduler.restore(utcnow())

    logger.info("StillHere initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    store: SqliteStore | None = application.bot_data.get("store")
    if store:
        await store.close()

    logger.info("StillHere shut down")


def main() -> None:
    """Start the bot."""
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("checkin", checkin_command))
    application.add_handler(CommandHandler("status", status_command))
    application.add_handler(CommandHandler("history", history_command))
    application.add_handler(CommandHandler("contacts", contacts_command))
    application.add_handler(CommandHandler("addcontact", addcontact_command))
    application.add_handler(CommandHandler("removecontact", removecontact_command))

    # Shared (and live) locations
    application.add_handler(MessageHandler(filters.LOCATION, location_handler))

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    application.add_error_handler(error_handler)

    logger.info("Starting StillHere bot...")
    application.run_polling(allowed_updates=["message", "edited_message", "callback_query"])


if __name__ == "__main__":
    main()
