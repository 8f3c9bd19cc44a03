"""Data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class CheckInEvent:
    """A single "I am alive" check-in."""

    timestamp: datetime  # aware, UTC
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict:
        return {"id": self.id, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "CheckInEvent":
        return cls(id=data["id"], timestamp=datetime.fromisoformat(data["timestamp"]))


class NotificationChannel(str, Enum):
    """Delivery medium for reaching an emergency contact."""

    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    CHAT_APP = "chat_app"

    @property
    def is_premium_gated(self) -> bool:
        return self in (NotificationChannel.SMS, NotificationChannel.WHATSAPP)

    @property
    def display_name(self) -> str:
        return {
            NotificationChannel.EMAIL: "Email",
            NotificationChannel.SMS: "SMS",
            NotificationChannel.WHATSAPP: "WhatsApp",
            NotificationChannel.CHAT_APP: "Telegram",
        }[self]

    def destination(self, contact: "EmergencyContact") -> str | None:
        """The contact's address on this channel, or None if it has none."""
        if self is NotificationChannel.EMAIL:
            value = contact.email
        elif self is NotificationChannel.CHAT_APP:
            value = contact.chat_handle
        else:
            value = contact.phone
        if value and value.strip():
            return value.strip()
        return None

    def can_satisfy(self, contact: "EmergencyContact") -> bool:
        """Check if the contact has the address this channel needs."""
        return self.destination(contact) is not None


@dataclass(frozen=True)
class EmergencyContact:
    """Someone to notify when the user stops checking in."""

    name: str
    phone: str | None = None
    email: str | None = None
    chat_handle: str | None = None  # numeric Telegram chat id
    enabled_channels: frozenset[NotificationChannel] = frozenset()
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def has_address(self) -> bool:
        return any(v and v.strip() for v in (self.phone, self.email, self.chat_handle))

    @property
    def is_valid(self) -> bool:
        """Every enabled channel is satisfiable and at least one is enabled."""
        return (
            self.has_address
            and bool(self.enabled_channels)
            and all(channel.can_satisfy(self) for channel in self.enabled_channels)
        )

    def usable_channels(self) -> list[NotificationChannel]:
        """Enabled channels this contact can satisfy, in a stable order."""
        return [
            channel
            for channel in NotificationChannel
            if channel in self.enabled_channels and channel.can_satisfy(self)
        ]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "chat_handle": self.chat_handle,
            "enabled_channels": [c.value for c in NotificationChannel if c in self.enabled_channels],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EmergencyContact":
        return cls(
            id=data["id"],
            name=data["name"],
            phone=data.get("phone"),
            email=data.get("email"),
            chat_handle=data.get("chat_handle"),
            enabled_channels=frozenset(
                NotificationChannel(value) for value in data.get("enabled_channels", [])
            ),
        )


def default_channels(
    phone: str | None,
    email: str | None,
    chat_handle: str | None,
    premium_enabled: bool = False,
) -> frozenset[NotificationChannel]:
    """Channels turned on by default for a new contact.

    Every address gets its channel; a phone only gets SMS when premium is on.
    """
    channels = set()
    if premium_enabled and phone and phone.strip():
        channels.add(NotificationChannel.SMS)
    if email and email.strip():
        channels.add(NotificationChannel.EMAIL)
    if chat_handle and chat_handle.strip():
        channels.add(NotificationChannel.CHAT_APP)
    return frozenset(channels)


@dataclass(frozen=True)
class Location:
    """A device position."""

    latitude: float
    longitude: float
    recorded_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "recorded_at": self.recorded_at.isoformat() if self.recorded_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            recorded_at=datetime.fromisoformat(data["recorded_at"])
            if data.get("recorded_at")
            else None,
        )


class WakeKind(str, Enum):
    """Which escalation path a wake evaluates."""

    REMINDER = "reminder"
    EMERGENCY = "emergency"


@dataclass(frozen=True)
class ScheduledWake:
    """A future evaluation point; only the latest token per kind is honoured."""

    kind: WakeKind
    not_before: datetime  # UTC
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
