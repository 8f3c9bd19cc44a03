"""Emergency contact registry with capacity and duplicate rules."""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from stillhere.db.models import EmergencyContact
from stillhere.db.store import Store, StoreError
from stillhere.utils.constants import EMERGENCY_CONTACTS_KEY, MAX_CONTACTS, MAX_NAME_LENGTH

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")
_CHAT_ID = re.compile(r"-?\d+")


class AddOutcome(str, Enum):
    SUCCESS = "success"
    LIMIT_REACHED = "limit_reached"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AddContactResult:
    """Result of ContactRegistry.add and ContactRegistry.update.

    ``warning`` is set when the change was applied in memory but could not be
    persisted.
    """

    outcome: AddOutcome
    existing_name: str | None = None
    reason: str | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is AddOutcome.SUCCESS


def normalize_phone(phone: str) -> str:
    """Strip everything but digits. Used for comparison only."""
    return _NON_DIGITS.sub("", phone)


def validate_contact(contact: EmergencyContact, premium_enabled: bool = False) -> str | None:
    """Return why a contact can't be stored, or None if it is fine.

    A stored contact must be reachable: at least one enabled channel it has
    an address for, and no premium channel unless premium is on.
    """
    if not contact.name or not contact.name.strip():
        return "Contact needs a name"
    if len(contact.name) > MAX_NAME_LENGTH:
        return f"Name is longer than {MAX_NAME_LENGTH} characters"
    if not contact.has_address:
        return "Contact needs a phone number, email or Telegram chat id"
    if contact.phone and contact.phone.strip() and not normalize_phone(contact.phone):
        return "Phone number has no digits"
    if contact.chat_handle and contact.chat_handle.strip():
        if not _CHAT_ID.fullmatch(contact.chat_handle.strip()):
            return (
                "Telegram contacts need a numeric chat id; "
                "they can get it by sending /start to this bot"
            )

    unusable = [c.display_name for c in contact.enabled_channels if not c.can_satisfy(contact)]
    if unusable:
        return f"Missing address for {', '.join(sorted(unusable))}"

    if not premium_enabled:
        gated = [c.display_name for c in contact.usable_channels() if c.is_premium_gated]
        if gated:
            return f"{' and '.join(gated)} {'is' if len(gated) == 1 else 'are'} premium only"

    if not contact.usable_channels():
        if contact.phone and not premium_enabled:
            return (
                "No channel to reach this contact: SMS and WhatsApp are premium only, "
                "add an email or Telegram chat id"
            )
        return "No channel to reach this contact: enable at least one"
    return None


class ContactRegistry:
    """Ordered, bounded set of emergency contacts.

    Mutations update memory first and then persist; a persistence failure is
    handed back to the caller as a warning instead of rolling back.
    """

    def __init__(self, store: Store, capacity: int = MAX_CONTACTS, premium_enabled: bool = False):
        self.store = store
        self.capacity = capacity
        self.premium_enabled = premium_enabled
        self._contacts: list[EmergencyContact] = []

    @property
    def contacts(self) -> tuple[EmergencyContact, ...]:
        return tuple(self._contacts)

    @property
    def remaining_slots(self) -> int:
        return max(0, self.capacity - len(self._contacts))

    def snapshot(self) -> tuple[EmergencyContact, ...]:
        """Immutable view of the valid contacts right now."""
        return tuple(c for c in self._contacts if c.is_valid)

    async def load(self) -> None:
        """Load persisted contacts. Unreadable data leaves the registry empty."""
        try:
            raw = await self.store.get(EMERGENCY_CONTACTS_KEY)
        except StoreError as e:
            logger.error(f"Could not load emergency contacts: {e}")
            return

        if raw is None:
            return

        try:
            contacts = [EmergencyContact.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Discarding corrupt emergency contacts: {e}")
            return

        if len(contacts) > self.capacity:
            logger.warning(
                f"Stored contacts exceed capacity ({len(contacts)} > {self.capacity}), "
                "keeping the first ones"
            )
        self._contacts = contacts[: self.capacity]
        logger.info(f"Loaded {len(self._contacts)} emergency contacts")

    def is_duplicate(self, candidate: EmergencyContact) -> EmergencyContact | None:
        """Find an existing contact sharing a phone number or email with candidate."""
        for existing in self._contacts:
            if existing.id == candidate.id:
                continue

            if existing.phone and candidate.phone:
                existing_phone = normalize_phone(existing.phone)
                if existing_phone and existing_phone == normalize_phone(candidate.phone):
                    return existing

            if existing.email and candidate.email:
                existing_email = existing.email.strip().lower()
                if existing_email and existing_email == candidate.email.strip().lower():
                    return existing

        return None

    async def add(self, candidate: EmergencyContact) -> AddContactResult:
        """Add a contact if there is room and it isn't a duplicate."""
        # Capacity wins over every other check
        if len(self._contacts) >= self.capacity:
            return AddContactResult(AddOutcome.LIMIT_REACHED)

        reason = validate_contact(candidate, self.premium_enabled)
        if reason:
            return AddContactResult(AddOutcome.INVALID, reason=reason)

        existing = self.is_duplicate(candidate)
        if existing is not None:
            return AddContactResult(AddOutcome.DUPLICATE, existing_name=existing.name)

        self._contacts.append(candidate)
        logger.info(f"Added emergency contact {candidate.id}")
        return AddContactResult(AddOutcome.SUCCESS, warning=await self._save())

    async def update(self, contact: EmergencyContact) -> AddContactResult:
        """Replace the contact with the same id.

        The replacement goes through the same validation and duplicate rules
        as add. Unknown ids are a no-op reported as NOT_FOUND.
        """
        index = next((i for i, c in enumerate(self._contacts) if c.id == contact.id), None)
        if index is None:
            logger.debug(f"Ignoring update for unknown contact {contact.id}")
            return AddContactResult(AddOutcome.NOT_FOUND)

        reason = validate_contact(contact, self.premium_enabled)
        if reason:
            return AddContactResult(AddOutcome.INVALID, reason=reason)

        existing = self.is_duplicate(contact)
        if existing is not None:
            return AddContactResult(AddOutcome.DUPLICATE, existing_name=existing.name)

        self._contacts[index] = contact
        logger.info(f"Updated emergency contact {contact.id}")
        return AddContactResult(AddOutcome.SUCCESS, warning=await self._save())

    async def remove(self, positions: Iterable[int]) -> str | None:
        """Remove contacts at the given indexes, keeping the others in order.

        Returns a warning if the change could not be persisted.
        """
        drop = set(positions)
        kept = [c for i, c in enumerate(self._contacts) if i not in drop]
        if len(kept) == len(self._contacts):
            return None

        removed = len(self._contacts) - len(kept)
        self._contacts = kept
        logger.info(f"Removed {removed} emergency contact(s)")
        return await self._save()

    async def _save(self) -> str | None:
        data = json.dumps([c.to_dict() for c in self._contacts]).encode()
        try:
            await self.store.set(EMERGENCY_CONTACTS_KEY, data)
        except StoreError as e:
            logger.error(f"Failed to persist emergency contacts: {e}")
            return f"Saved for this session only: {e}"
        return None
