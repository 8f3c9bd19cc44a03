"""Bounded location lookup."""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from stillhere.db.models import Location
from stillhere.db.store import Store, StoreError
from stillhere.utils.constants import LAST_LOCATION_KEY

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    async def current_location(self) -> Location | None: ...


class LocationStatus(str, Enum):
    FOUND = "found"
    UNAVAILABLE = "unavailable"  # provider answered but had nothing
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True)
class LocationResult:
    status: LocationStatus
    location: Location | None = None
    error: str | None = None


async def fetch_location(provider: LocationProvider | None, timeout: float) -> LocationResult:
    """Ask the provider for a location, giving up after ``timeout`` seconds.

    Never raises: every failure mode maps onto a LocationResult status.
    """
    if provider is None:
        return LocationResult(LocationStatus.UNAVAILABLE)

    try:
        location = await asyncio.wait_for(provider.current_location(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Location lookup timed out after {timeout}s")
        return LocationResult(LocationStatus.TIMEOUT)
    except Exception as e:
        logger.error(f"Location provider failed: {e}")
        return LocationResult(LocationStatus.PROVIDER_ERROR, error=str(e))

    if location is None:
        return LocationResult(LocationStatus.UNAVAILABLE)
    return LocationResult(LocationStatus.FOUND, location=location)


class StoredLocationProvider:
    """Serves the last location the user shared, kept in the store."""

    def __init__(self, store: Store):
        self.store = store

    async def save(self, location: Location) -> None:
        """Remember a shared location. Raises StoreError on failure."""
        await self.store.set(LAST_LOCATION_KEY, json.dumps(location.to_dict()).encode())
        logger.info("Stored last shared location")

    async def current_location(self) -> Location | None:
        try:
            raw = await self.store.get(LAST_LOCATION_KEY)
        except StoreError as e:
            logger.error(f"Could not read last location: {e}")
            raise

        if raw is None:
            return None
        return Location.from_dict(json.loads(raw))
