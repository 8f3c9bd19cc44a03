"""Configuration management from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

from stillhere.utils.constants import DEFAULT_TIMEZONE

# Load .env file if it exists
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    OWNER_CHAT_ID: int = int(os.getenv("OWNER_CHAT_ID", "0") or 0)

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/stillhere.db"))

    # Calendar used for "checked in today"
    TIMEZONE: str = os.getenv("TIMEZONE", DEFAULT_TIMEZONE)

    # Bounded waits (seconds)
    LOCATION_TIMEOUT: float = float(os.getenv("LOCATION_TIMEOUT", "10"))
    SEND_TIMEOUT: float = float(os.getenv("SEND_TIMEOUT", "15"))

    # SMS and WhatsApp are premium-gated
    PREMIUM_ENABLED: bool = _env_bool("PREMIUM_ENABLED")

    # Twilio (SMS / WhatsApp)
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    TWILIO_WHATSAPP_NUMBER: str = os.getenv("TWILIO_WHATSAPP_NUMBER", "")

    # Mailgun (email)
    MAILGUN_API_KEY: str = os.getenv("MAILGUN_API_KEY", "")
    MAILGUN_API_URL: str = os.getenv("MAILGUN_API_URL", "")
    MAILGUN_FROM: str = os.getenv("MAILGUN_FROM", "StillHere <alerts@stillhere.local>")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        if not cls.OWNER_CHAT_ID:
            raise ValueError("OWNER_CHAT_ID environment variable is required")

        if cls.LOCATION_TIMEOUT <= 0 or cls.SEND_TIMEOUT <= 0:
            raise ValueError("LOCATION_TIMEOUT and SEND_TIMEOUT must be positive")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
