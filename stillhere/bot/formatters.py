"""Message text formatters."""

from datetime import datetime, tzinfo
from html import escape

from stillhere.db.models import CheckInEvent, EmergencyContact, Location
from stillhere.engine.ledger import LedgerStatus
from stillhere.utils.constants import (
    APP_NAME,
    LOCATION_UNAVAILABLE,
    MAPS_URL,
    NEVER_CHECKED_IN,
    EscalationTier,
)
from stillhere.utils.time_utils import format_elapsed_days, format_relative_time, to_local

REMINDER_TEXT = "You missed your daily check-in. Please tap /checkin to confirm you're still alive!"


def format_emergency_ack(sent: int, attempted: int, location_found: bool) -> str:
    """Local acknowledgment after the emergency fan-out, worded from its outcome."""
    if sent == 0:
        return (
            "🚨 <b>Emergency Alert Failed</b>\n\n"
            f"None of the {attempted} alert{'s' if attempted != 1 else ''} to your emergency "
            "contacts could be delivered. Please check in or reach them directly."
        )

    where = "with your last shared location" if location_found else "without a location"
    text = f"🚨 <b>Emergency Alert Sent</b>\n\nYour emergency contacts have been notified {where}."
    if sent < attempted:
        text += f"\n\n{attempted - sent} of {attempted} alerts could not be delivered."
    return text


def format_location(location: Location | None) -> str:
    """Location line for the alert, or the unavailable placeholder."""
    if location is None:
        return LOCATION_UNAVAILABLE
    url = MAPS_URL.format(latitude=location.latitude, longitude=location.longitude)
    return f"Last known location: {url}"


def format_emergency_alert(elapsed_days: int, location: Location | None) -> str:
    """Plain-text alert sent to every emergency contact on every channel."""
    if elapsed_days == NEVER_CHECKED_IN:
        missed = "The user has not checked in at all."
    else:
        missed = f"The user has not checked in for {format_elapsed_days(elapsed_days)}."

    return (
        f'URGENT: This is an automated message from "{APP_NAME}".\n\n'
        f"{missed}\n\n"
        f"{format_location(location)}\n\n"
        "Please try to contact them or check on their wellbeing."
    )


def format_status(
    status: LedgerStatus, tier: EscalationTier, now: datetime, has_contacts: bool = True
) -> str:
    """Format the /status reply."""
    if status.last_check_in is None:
        return "👋 <b>No check-ins yet.</b>\nTap /checkin to start."

    if tier is EscalationTier.CRITICAL:
        missed = f"No check-in for {format_elapsed_days(status.elapsed_days)}."
        if has_contacts:
            follow_up = "Your emergency contacts are being alerted.\nPlease check in now!"
        else:
            follow_up = (
                "You have no emergency contacts to alert.\n"
                "Check in now and add one with /addcontact."
            )
        icon, text = "⚠️", f"{missed}\n{follow_up}"
    else:
        icon, text = {
            EscalationTier.FRESH: ("✅", "You've checked in today!\nSee you tomorrow."),
            EscalationTier.DUE: ("💙", "Tap /checkin to confirm you're alive."),
            EscalationTier.OVERDUE: ("⏰", "You missed yesterday's check-in.\nTap /checkin now!"),
        }[tier]

    lines = [f"{icon} <b>{text.splitlines()[0]}</b>"]
    lines.extend(text.splitlines()[1:])

    relative = format_relative_time(status.last_check_in.timestamp, now)
    lines.append(f"\nLast check-in: {relative}")
    return "\n".join(lines)


def format_check_in_confirmation(event: CheckInEvent, zone: tzinfo) -> str:
    local = to_local(event.timestamp, zone)
    return f"✅ <b>Checked in</b> at {local.strftime('%I:%M %p')}. See you tomorrow!"


def format_history(history: tuple[CheckInEvent, ...], zone: tzinfo, limit: int = 10) -> str:
    """Format recent check-ins."""
    if not history:
        return "No check-ins yet."

    lines = ["<b>Recent Check-ins</b>\n"]
    for event in history[:limit]:
        local = to_local(event.timestamp, zone)
        lines.append(f"✓ {local.strftime('%b %d, %I:%M %p')}")
    return "\n".join(lines)


def format_contact(contact: EmergencyContact, position: int) -> str:
    lines = [f"{position}. <b>{escape(contact.name)}</b>"]
    if contact.phone:
        lines.append(f"   📞 {escape(contact.phone)}")
    if contact.email:
        lines.append(f"   ✉️ {escape(contact.email)}")
    if contact.chat_handle:
        lines.append(f"   💬 {escape(contact.chat_handle)}")

    channels = ", ".join(c.display_name for c in contact.usable_channels()) or "none"
    lines.append(f"   Notify via: {channels}")
    return "\n".join(lines)


def format_contact_list(contacts: tuple[EmergencyContact, ...], remaining: int) -> str:
    """Format the /contacts reply."""
    if not contacts:
        return (
            "You have no emergency contacts.\n\n"
            "Add one with /addcontact name | phone | email | chat id"
        )

    header = f"<b>Emergency Contacts ({len(contacts)})</b>"
    blocks = [format_contact(contact, position) for position, contact in enumerate(contacts, start=1)]
    footer = f"{remaining} slot{'s' if remaining != 1 else ''} left."
    return "\n\n".join([header, *blocks, footer])


def format_welcome_message() -> str:
    """Format the welcome message for /start."""
    return f"""
<b>Welcome to {APP_NAME}!</b> 💙

Check in once a day so I know you're OK.

If you miss a day I'll remind you. If you miss two, I'll alert your emergency contacts with your last shared location.

<b>Quick Start:</b>
• /checkin - I'm alive!
• /addcontact - Add an emergency contact
• Share your location with me so contacts know where to look
• /help - Full command list
""".strip()


def format_help_message() -> str:
    """Format the help message."""
    return f"""
<b>{APP_NAME} Commands</b>

<b>Check-ins:</b>
/checkin - Record a check-in
/status - How long since your last check-in
/history - Recent check-ins

<b>Emergency Contacts:</b>
/contacts - List contacts (up to 3)
/addcontact name | phone | email | chat id - Add a contact (leave parts empty to skip)
/removecontact &lt;n&gt; - Remove contact number n

<b>How it works:</b>
• Reminder after 1 day without a check-in
• Emergency alert to your contacts after 2 days
• Email and Telegram are free; SMS and WhatsApp are premium
""".strip()
