"""Inline keyboard builders."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def check_in_keyboard() -> InlineKeyboardMarkup:
    """Single "I'm alive" button attached to reminders and status replies."""
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton("💙 I'm alive!", callback_data="checkin")]]
    )


def remove_contact_keyboard(names: list[str]) -> InlineKeyboardMarkup:
    """One button per contact for removal."""
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(f"🗑 {name}", callback_data=f"remove:{index}")]
            for index, name in enumerate(names)
        ]
    )
