"""Tests for channel transports."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from twilio.base.exceptions import TwilioException

from stillhere.channels.senders import (
    MailgunChannelSender,
    RoutingChannelSender,
    TwilioChannelSender,
)
from stillhere.db.models import NotificationChannel


@pytest.mark.asyncio
async def test_routing_sender_dispatches_by_channel():
    """Each channel goes to its own transport; unrouted channels fail."""
    email = AsyncMock()
    email.send = AsyncMock(return_value=True)
    router = RoutingChannelSender({NotificationChannel.EMAIL: email})

    assert await router.send(NotificationChannel.EMAIL, "a@example.com", "hi")
    assert not await router.send(NotificationChannel.SMS, "555", "hi")
    email.send.assert_awaited_once_with(NotificationChannel.EMAIL, "a@example.com", "hi")


@pytest.mark.asyncio
async def test_twilio_whatsapp_prefixes_numbers():
    """WhatsApp sends use Twilio's whatsapp: addresses."""
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(sid="SM123")
    sender = TwilioChannelSender("", "", "+15550000000", "+15551111111", client=client)

    assert await sender.send(NotificationChannel.WHATSAPP, "+15552223333", "help")

    client.messages.create.assert_called_once_with(
        body="help", from_="whatsapp:+15551111111", to="whatsapp:+15552223333"
    )


@pytest.mark.asyncio
async def test_twilio_errors_are_reported_as_failure():
    """A Twilio exception becomes a failed send."""
    client = MagicMock()
    client.messages.create.side_effect = TwilioException("bad number")
    sender = TwilioChannelSender("", "", "+15550000000", client=client)

    assert not await sender.send(NotificationChannel.SMS, "+1555", "help")


@pytest.mark.asyncio
async def test_unconfigured_transports_fail_fast():
    """Missing credentials mean a failed send, not a crash."""
    twilio = TwilioChannelSender("", "", "")
    mailgun = MailgunChannelSender("", "", "alerts@example.com")

    assert not await twilio.send(NotificationChannel.SMS, "+1555", "help")
    assert not await mailgun.send(NotificationChannel.EMAIL, "a@example.com", "help")
