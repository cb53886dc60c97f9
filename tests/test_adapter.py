"""Event source adapter tests."""

from unittest.mock import MagicMock

import pytest

from pawfeed.errors.exceptions import RemoteStoreError
from pawfeed.feed.adapter import EventSourceAdapter
from pawfeed.feed.sources import get_source
from pawfeed.models.enums import NotificationCategory

LISTINGS = NotificationCategory.NEW_LISTINGS


@pytest.mark.asyncio
async def test_push_replaces_snapshot(store):
    on_change = MagicMock()
    adapter = EventSourceAdapter(get_source(LISTINGS), "u1", store, 20, on_change)
    await adapter.open()
    assert adapter.is_open
    assert adapter.snapshot == ()

    await store.add("adoptable_pets", {"petName": "Rex", "createdAt": 1}, doc_id="p1")
    await store.add("adoptable_pets", {"petName": "Ivy", "createdAt": 2}, doc_id="p2")
    assert [e.id for e in adapter.snapshot] == ["p2", "p1"]

    await store.delete("adoptable_pets", "p2")
    assert [e.id for e in adapter.snapshot] == ["p1"]
    on_change.assert_called_with(LISTINGS)


@pytest.mark.asyncio
async def test_limit_keeps_most_recent(store):
    for i in range(5):
        await store.add("adoptable_pets", {"createdAt": i}, doc_id=f"p{i}")
    adapter = EventSourceAdapter(get_source(LISTINGS), "u1", store, 3, MagicMock())
    await adapter.open()
    assert [e.id for e in adapter.snapshot] == ["p4", "p3", "p2"]


@pytest.mark.asyncio
async def test_principal_scoping(store):
    await store.add("adoption_applications", {"userId": "u1", "createdAt": 1}, doc_id="mine")
    await store.add("adoption_applications", {"userId": "u2", "createdAt": 2}, doc_id="theirs")
    adapter = EventSourceAdapter(get_source(NotificationCategory.APPLICATIONS), "u1", store, 20, MagicMock())
    await adapter.open()
    assert [e.id for e in adapter.snapshot] == ["mine"]


@pytest.mark.asyncio
async def test_error_keeps_previous_snapshot(store):
    on_change = MagicMock()
    adapter = EventSourceAdapter(get_source(LISTINGS), "u1", store, 20, on_change)
    adapter.apply_snapshot([{"id": "p1", "createdAt": 5}])
    adapter.handle_error(RemoteStoreError("subscription dropped"))
    assert [e.id for e in adapter.snapshot] == ["p1"]
    assert isinstance(adapter.last_error, RemoteStoreError)
    assert on_change.call_count == 1


@pytest.mark.asyncio
async def test_malformed_document_skipped_not_fatal(store):
    adapter = EventSourceAdapter(get_source(LISTINGS), "u1", store, 20, MagicMock())
    adapter.apply_snapshot([{"createdAt": 5}, {"id": "ok", "createdAt": "garbage"}])
    assert [e.id for e in adapter.snapshot] == ["ok"]


@pytest.mark.asyncio
async def test_open_and_close_are_idempotent(store):
    adapter = EventSourceAdapter(get_source(LISTINGS), "u1", store, 20, MagicMock())
    await adapter.open()
    await adapter.open()
    assert store.live_subscription_count("adoptable_pets") == 1
    adapter.close()
    adapter.close()
    assert not adapter.is_open
    assert store.live_subscription_count("adoptable_pets") == 0
