"""Tests for key-value persistence and the stored location provider."""

import pytest

from stillhere.db.migrations import run_migrations
from stillhere.db.models import Location
from stillhere.db.store import SqliteStore, StoreError
from stillhere.engine.location import LocationStatus, StoredLocationProvider, fetch_location


@pytest.mark.asyncio
async def test_sqlite_store_set_and_get(tmp_path):
    """Values are stored, overwritten and read back as bytes."""
    db_path = tmp_path / "test.db"
    await run_migrations(db_path)
    store = SqliteStore(db_path)
    await store.connect()

    try:
        assert await store.get("missing") is None

        await store.set("key", b"one")
        await store.set("key", b"two")
        assert await store.get("key") == b"two"
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_migrations_are_idempotent(tmp_path):
    """Running migrations on an up-to-date database keeps the data."""
    db_path = tmp_path / "test.db"
    await run_migrations(db_path)
    store = SqliteStore(db_path)
    await store.connect()
    await store.set("key", b"kept")
    await store.close()

    await run_migrations(db_path)

    await store.connect()
    try:
        assert await store.get("key") == b"kept"
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sqlite_store_requires_connection(tmp_path):
    """Using the store before connect() raises StoreError."""
    store = SqliteStore(tmp_path / "test.db")

    with pytest.raises(StoreError):
        await store.get("key")


@pytest.mark.asyncio
async def test_stored_location_provider(store):
    """The last shared location is served back."""
    provider = StoredLocationProvider(store)
    assert await provider.current_location() is None

    await provider.save(Location(48.85, 2.35))

    result = await fetch_location(provider, timeout=1)
    assert result.status is LocationStatus.FOUND
    assert result.location.latitude == 48.85


@pytest.mark.asyncio
async def test_fetch_location_without_provider():
    """No provider configured means unavailable, not an error."""
    result = await fetch_location(None, timeout=1)
    assert result.status is LocationStatus.UNAVAILABLE
