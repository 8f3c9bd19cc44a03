"""Delivery capabilities the engine depends on."""

from typing import Protocol

from stillhere.db.models import NotificationChannel


class ChannelSender(Protocol):
    """Delivers one message to one destination on one channel.

    Returns False (or raises) when delivery failed. Implementations don't
    retry.
    """

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool: ...


class LocalNotifier(Protocol):
    """Notifications shown to the user themself."""

    async def remind(self, message: str) -> None: ...

    async def acknowledge_emergency(self, message: str) -> None: ...
