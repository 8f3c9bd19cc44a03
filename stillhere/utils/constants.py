"""Constants and default values."""

import sys
from datetime import timedelta
from enum import Enum


class EscalationTier(str, Enum):
    """How stale the last check-in is."""

    FRESH = "fresh"  # checked in today
    DUE = "due"  # not today, but less than a full day elapsed
    OVERDUE = "overdue"  # reminder territory
    CRITICAL = "critical"  # emergency territory, or never checked in

# Escalation thresholds (whole elapsed days since the last check-in)
REMINDER_AFTER_DAYS = 1
EMERGENCY_AFTER_DAYS = 2

# Wake cadence: each wake re-arms itself this far ahead
REMINDER_WAKE_INTERVAL = timedelta(days=REMINDER_AFTER_DAYS)
EMERGENCY_WAKE_INTERVAL = timedelta(days=EMERGENCY_AFTER_DAYS)

# Sentinel elapsed-days value when there has never been a check-in
NEVER_CHECKED_IN = sys.maxsize

# Limits
HISTORY_LIMIT = 30
MAX_CONTACTS = 3
MAX_NAME_LENGTH = 100

# Store keys
CHECK_IN_HISTORY_KEY = "check_in_history"
EMERGENCY_CONTACTS_KEY = "emergency_contacts"
LAST_LOCATION_KEY = "last_location"

# Message copy
APP_NAME = "StillHere"
ALERT_SUBJECT = "URGENT: Check-in Alert"
LOCATION_UNAVAILABLE = "Location unavailable"
MAPS_URL = "https://maps.apple.com/?ll={latitude},{longitude}"

# Default timezone (empty means the host's local zone)
DEFAULT_TIMEZONE = ""
