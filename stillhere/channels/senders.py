"""SMS, WhatsApp and email transports, and routing by channel."""

import asyncio
import logging

import httpx
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from stillhere.channels.base import ChannelSender
from stillhere.db.models import NotificationChannel
from stillhere.utils.constants import ALERT_SUBJECT

logger = logging.getLogger(__name__)


class TwilioChannelSender:
    """SMS and WhatsApp through Twilio."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        phone_number: str,
        whatsapp_number: str = "",
        client: Client | None = None,
    ):
        self.phone_number = phone_number
        self.whatsapp_number = whatsapp_number or phone_number

        if client is not None:
            self.client = client
        elif account_sid and auth_token:
            self.client = Client(account_sid, auth_token)
        else:
            self.client = None
            logger.warning("Twilio configuration incomplete")

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        if not self.client:
            logger.warning(f"Twilio not configured, skipping {channel.value} to {destination}")
            return False

        if channel is NotificationChannel.SMS:
            from_, to = self.phone_number, destination
        elif channel is NotificationChannel.WHATSAPP:
            from_, to = f"whatsapp:{self.whatsapp_number}", f"whatsapp:{destination}"
        else:
            logger.warning(f"Twilio sender can't deliver {channel.value}")
            return False

        try:
            # The Twilio client is blocking
            message_obj = await asyncio.to_thread(
                self.client.messages.create, body=message, from_=from_, to=to
            )
        except TwilioException as e:
            logger.error(f"Failed to send {channel.value} to {destination}: {e}")
            return False

        logger.info(f"{channel.display_name} sent to {destination}, SID: {message_obj.sid}")
        return True


class MailgunChannelSender:
    """Email through the Mailgun HTTP API."""

    def __init__(self, api_key: str, api_url: str, from_email: str, timeout: float = 10.0):
        self.api_key = api_key
        self.api_url = api_url
        self.from_email = from_email
        self.timeout = timeout

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        if channel is not NotificationChannel.EMAIL:
            logger.warning(f"Mailgun sender can't deliver {channel.value}")
            return False

        if not self.api_key or not self.api_url:
            logger.warning(f"Mailgun not configured, skipping email to {destination}")
            return False

        data = {
            "from": self.from_email,
            "to": destination,
            "subject": ALERT_SUBJECT,
            "text": message,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, auth=("api", self.api_key), data=data)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email to {destination}: {e}")
            return False

        logger.info(f"Email sent to {destination}")
        return True


class RoutingChannelSender:
    """Dispatches each send to the transport registered for its channel."""

    def __init__(self, routes: dict[NotificationChannel, ChannelSender]):
        self.routes = dict(routes)

    async def send(self, channel: NotificationChannel, destination: str, message: str) -> bool:
        sender = self.routes.get(channel)
        if sender is None:
            logger.warning(f"No transport configured for {channel.value}")
            return False
        return await sender.send(channel, destination, message)
