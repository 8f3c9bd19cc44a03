"""Emergency notification fan-out."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from stillhere.bot.formatters import format_emergency_ack, format_emergency_alert
from stillhere.channels.base import ChannelSender, LocalNotifier
from stillhere.db.models import EmergencyContact, NotificationChannel
from stillhere.engine.contacts import ContactRegistry
from stillhere.engine.location import (
    LocationProvider,
    LocationResult,
    LocationStatus,
    fetch_location,
)
from stillhere.utils.constants import EMERGENCY_AFTER_DAYS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryAttempt:
    """Outcome of sending the alert to one contact on one channel."""

    contact_id: str
    contact_name: str
    channel: NotificationChannel
    destination: str
    ok: bool
    error: str | None = None


@dataclass
class NotificationReport:
    """Everything notify_all did, for logging and tests."""

    started_at: datetime
    contacts_notified: int = 0
    location: LocationResult | None = None
    message: str | None = None
    attempts: list[DeliveryAttempt] = field(default_factory=list)
    acknowledged: bool = False

    @property
    def succeeded(self) -> list[DeliveryAttempt]:
        return [a for a in self.attempts if a.ok]

    @property
    def failed(self) -> list[DeliveryAttempt]:
        return [a for a in self.attempts if not a.ok]


class EmergencyNotifier:
    """Sends the emergency alert to every valid contact over their channels.

    Every usable channel of every valid contact gets one send. Each send is
    isolated and bounded by ``send_timeout``; the location lookup is bounded
    by ``location_timeout``. Nothing here raises to the caller.
    """

    def __init__(
        self,
        registry: ContactRegistry,
        sender: ChannelSender,
        local: LocalNotifier,
        location_provider: LocationProvider | None = None,
        location_timeout: float = 10.0,
        send_timeout: float = 15.0,
    ):
        self.registry = registry
        self.sender = sender
        self.local = local
        self.location_provider = location_provider
        self.location_timeout = location_timeout
        self.send_timeout = send_timeout

    async def notify_all(
        self, now: datetime, elapsed_days: int = EMERGENCY_AFTER_DAYS
    ) -> NotificationReport:
        """Alert all valid contacts and acknowledge locally.

        Returns:
            NotificationReport describing every attempt
        """
        report = NotificationReport(started_at=now)

        # Point-in-time copy; registry edits during the fan-out don't affect it
        contacts = self.registry.snapshot()
        if not contacts:
            logger.warning("Emergency escalation reached but no valid contacts are configured")
            return report

        report.location = await fetch_location(self.location_provider, self.location_timeout)
        location = report.location.location if report.location.status is LocationStatus.FOUND else None
        report.message = format_emergency_alert(elapsed_days, location)

        sends = []
        for contact in contacts:
            for channel in contact.usable_channels():
                sends.append(self._attempt(contact, channel, report.message))

        report.attempts = list(await asyncio.gather(*sends))
        report.contacts_notified = len({a.contact_id for a in report.succeeded})

        logger.info(
            f"Emergency fan-out: {len(report.succeeded)} sent, {len(report.failed)} failed, "
            f"location {report.location.status.value}"
        )

        report.acknowledged = await self._acknowledge(report)
        return report

    async def _attempt(
        self, contact: EmergencyContact, channel: NotificationChannel, message: str
    ) -> DeliveryAttempt:
        destination = channel.destination(contact) or ""
        error = None

        try:
            ok = await asyncio.wait_for(
                self.sender.send(channel, destination, message), timeout=self.send_timeout
            )
            if not ok:
                error = "sender reported failure"
        except asyncio.TimeoutError:
            ok = False
            error = f"timed out after {self.send_timeout}s"
        except Exception as e:
            ok = False
            error = str(e) or e.__class__.__name__

        if ok:
            logger.info(f"Alert sent to contact {contact.id} via {channel.value}")
        else:
            logger.error(f"Alert to contact {contact.id} via {channel.value} failed: {error}")

        return DeliveryAttempt(
            contact_id=contact.id,
            contact_name=contact.name,
            channel=channel,
            destination=destination,
            ok=bool(ok),
            error=error,
        )

    async def _acknowledge(self, report: NotificationReport) -> bool:
        text = format_emergency_ack(
            sent=len(report.succeeded),
            attempted=len(report.attempts),
            location_found=report.location.status is LocationStatus.FOUND,
        )
        try:
            await self.local.acknowledge_emergency(text)
        except Exception as e:
            logger.error(f"Failed to show emergency acknowledgment: {e}")
            return False
        return True
