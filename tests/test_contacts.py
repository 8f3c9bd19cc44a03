"""Tests for the emergency contact registry."""

import json

import pytest

from stillhere.bot.handlers import parse_contact_args
from stillhere.db.models import EmergencyContact, NotificationChannel
from stillhere.db.store import MemoryStore
from stillhere.engine.contacts import (
    AddOutcome,
    ContactRegistry,
    normalize_phone,
    validate_contact,
)
from stillhere.utils.constants import EMERGENCY_CONTACTS_KEY, MAX_CONTACTS

EMAIL = frozenset({NotificationChannel.EMAIL})
SMS = frozenset({NotificationChannel.SMS})


def make_contact(name: str, phone: str | None = None, email: str | None = None, **kwargs):
    if "enabled_channels" not in kwargs:
        kwargs["enabled_channels"] = SMS if phone else EMAIL if email else frozenset()
    return EmergencyContact(name=name, phone=phone, email=email, **kwargs)


def test_normalize_phone():
    """Everything but digits is stripped."""
    assert normalize_phone("(555) 123-4567") == "5551234567"
    assert normalize_phone("+1 555.123.4567") == "15551234567"
    assert normalize_phone("") == ""


def test_validate_contact():
    """Contacts need a name, an address, and addresses for enabled channels."""
    assert validate_contact(make_contact("Mom", email="mom@example.com")) is None
    assert validate_contact(make_contact("Mom")) is not None
    assert validate_contact(make_contact("", email="mom@example.com")) is not None
    assert validate_contact(make_contact("Mom", phone="call me"), premium_enabled=True) is not None

    # SMS enabled but only an email on file
    no_phone = make_contact("Mom", email="mom@example.com", enabled_channels=SMS)
    assert "SMS" in validate_contact(no_phone, premium_enabled=True)


def test_validate_contact_requires_a_reachable_channel():
    """An address with nothing enabled for it can't be stored."""
    silent = make_contact("Dad", phone="555-123-4567", enabled_channels=frozenset())

    assert "No channel" in validate_contact(silent, premium_enabled=True)


def test_validate_contact_premium_channels():
    """SMS and WhatsApp are only accepted when premium is on."""
    contact = make_contact(
        "Dad",
        phone="555-123-4567",
        enabled_channels=frozenset({NotificationChannel.SMS, NotificationChannel.WHATSAPP}),
    )

    assert validate_contact(contact) == "SMS and WhatsApp are premium only"
    assert validate_contact(contact, premium_enabled=True) is None


def test_validate_contact_needs_numeric_chat_id():
    """Telegram can only message users by numeric chat id."""
    chat = frozenset({NotificationChannel.CHAT_APP})

    assert validate_contact(make_contact("Sam", chat_handle="123456789", enabled_channels=chat)) is None
    assert "chat id" in validate_contact(make_contact("Sam", chat_handle="@sam", enabled_channels=chat))


@pytest.mark.asyncio
async def test_phone_only_contact_is_not_stored_unreachable(store):
    """Without premium a phone-only contact is rejected, with it SMS is on."""
    free = ContactRegistry(store)
    contact = parse_contact_args("Dad | (555) 123-4567")

    result = await free.add(contact)

    assert result.outcome is AddOutcome.INVALID
    assert "premium" in result.reason
    assert free.contacts == ()

    premium = ContactRegistry(MemoryStore(), premium_enabled=True)
    contact = parse_contact_args("Dad | (555) 123-4567", premium_enabled=True)

    assert (await premium.add(contact)).ok
    assert premium.snapshot()[0].usable_channels() == [NotificationChannel.SMS]

@pytest.mark.asyncio
async def test_add_contact_success(registry, store):
    """A valid contact is appended and persisted."""
    contact = make_contact("Mom", phone="555-123-4567", email="mom@example.com", enabled_channels=EMAIL)

    result = await registry.add(contact)

    assert result.ok
    assert result.warning is None
    assert registry.contacts == (contact,)
    saved = json.loads(store.data[EMERGENCY_CONTACTS_KEY])
    assert saved[0]["name"] == "Mom"
    assert saved[0]["enabled_channels"] == ["email"]


@pytest.mark.asyncio
async def test_duplicate_phone_ignores_formatting(registry):
    """Phones that normalize to the same digits are duplicates."""
    await registry.add(make_contact("Mom", phone="(555) 123-4567"))

    result = await registry.add(make_contact("Mother", phone="555-123-4567"))

    assert result.outcome is AddOutcome.DUPLICATE
    assert result.existing_name == "Mom"
    assert len(registry.contacts) == 1


@pytest.mark.asyncio
async def test_duplicate_email_is_case_insensitive(registry):
    """Emails match regardless of case."""
    await registry.add(make_contact("Dad", email="Dad@Example.com"))

    result = await registry.add(make_contact("Father", email="dad@example.COM"))

    assert result.outcome is AddOutcome.DUPLICATE
    assert result.existing_name == "Dad"


@pytest.mark.asyncio
async def test_empty_fields_never_match(registry):
    """Missing phones or emails aren't treated as equal."""
    await registry.add(make_contact("Mom", email="mom@example.com"))

    result = await registry.add(make_contact("Dad", email="dad@example.com"))

    assert result.ok
    assert registry.is_duplicate(make_contact("Sis", phone="555-000-1111")) is None


@pytest.mark.asyncio
async def test_limit_reached_wins_over_duplicate(registry):
    """A full registry reports LIMIT_REACHED even for a duplicate."""
    for i in range(MAX_CONTACTS):
        result = await registry.add(make_contact(f"Contact {i}", phone=f"555-000-000{i}"))
        assert result.ok

    fourth = await registry.add(make_contact("Copy", phone="5550000000"))

    assert fourth.outcome is AddOutcome.LIMIT_REACHED
    assert len(registry.contacts) == MAX_CONTACTS
    assert registry.remaining_slots == 0


@pytest.mark.asyncio
async def test_invalid_contact_is_rejected(registry):
    """A contact with no way to reach them is never stored."""
    result = await registry.add(make_contact("Ghost"))

    assert result.outcome is AddOutcome.INVALID
    assert result.reason
    assert registry.contacts == ()


@pytest.mark.asyncio
async def test_update_replaces_by_id(registry):
    """Updates match on id; unknown ids are ignored."""
    contact = make_contact("Mom", phone="555-123-4567")
    await registry.add(contact)

    renamed = make_contact("Mum", phone=contact.phone, id=contact.id)
    assert (await registry.update(renamed)).ok
    assert registry.contacts[0].name == "Mum"

    result = await registry.update(make_contact("Stranger", phone="555-999-9999"))
    assert result.outcome is AddOutcome.NOT_FOUND
    assert [c.name for c in registry.contacts] == ["Mum"]


@pytest.mark.asyncio
async def test_update_keeps_contacts_unique_and_valid(registry):
    """An update can't introduce a duplicate or an unreachable contact."""
    mom = make_contact("Mom", phone="555-123-4567")
    dad = make_contact("Dad", phone="555-000-1111")
    await registry.add(mom)
    await registry.add(dad)

    clash = make_contact("Dad", phone="(555) 123-4567", id=dad.id)
    result = await registry.update(clash)

    assert result.outcome is AddOutcome.DUPLICATE
    assert result.existing_name == "Mom"
    assert registry.contacts[1] == dad

    silent = make_contact("Dad", phone=dad.phone, id=dad.id, enabled_channels=frozenset())
    assert (await registry.update(silent)).outcome is AddOutcome.INVALID
    assert all(registry.is_duplicate(c) is None for c in registry.contacts)
    assert registry.contacts[1] == dad


@pytest.mark.asyncio
async def test_remove_by_position_keeps_order(registry):
    """Removing by index preserves the order of the rest."""
    for name, phone in [("A", "1"), ("B", "2"), ("C", "3")]:
        await registry.add(make_contact(name, phone=phone))

    await registry.remove({1, 7})

    assert [c.name for c in registry.contacts] == ["A", "C"]


@pytest.mark.asyncio
async def test_persistence_failure_is_a_warning(failing_store):
    """The change sticks in memory and the caller gets a warning."""
    registry = ContactRegistry(failing_store, premium_enabled=True)

    result = await registry.add(make_contact("Mom", phone="555-123-4567"))

    assert result.ok
    assert result.warning
    assert len(registry.contacts) == 1
    assert await registry.remove({0})
    assert registry.contacts == ()


@pytest.mark.asyncio
async def test_load_and_snapshot_skip_invalid_contacts():
    """Snapshots only include contacts that can actually be reached."""
    stored = [
        {"id": "1", "name": "Mom", "phone": "555-123-4567", "enabled_channels": ["sms"]},
        {"id": "2", "name": "Broken", "email": None, "enabled_channels": ["email"]},
    ]
    registry = ContactRegistry(MemoryStore({EMERGENCY_CONTACTS_KEY: json.dumps(stored).encode()}))

    await registry.load()

    assert len(registry.contacts) == 2
    assert [c.name for c in registry.snapshot()] == ["Mom"]
