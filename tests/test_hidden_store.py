"""Hidden-item store tests."""

import json

import pytest

from pawfeed.feed.hidden import HiddenItemStore
from pawfeed.models.enums import NotificationCategory
from pawfeed.storage.local import hidden_key

LISTINGS = NotificationCategory.NEW_LISTINGS
SOCIAL = NotificationCategory.SOCIAL


@pytest.mark.asyncio
async def test_hide_persists_sorted_json_array(memory_storage):
    store = HiddenItemStore("u1", memory_storage)
    assert await store.hide(LISTINGS, "b")
    assert await store.hide(LISTINGS, "a")
    assert json.loads(memory_storage.data[hidden_key("u1", LISTINGS)]) == ["a", "b"]


@pytest.mark.asyncio
async def test_hide_is_idempotent(memory_storage):
    store = HiddenItemStore("u1", memory_storage)
    assert await store.hide(LISTINGS, "a")
    assert not await store.hide(LISTINGS, "a")
    assert store.hidden_ids(LISTINGS) == frozenset({"a"})


@pytest.mark.asyncio
async def test_hide_many_reports_new_ids_only(memory_storage):
    store = HiddenItemStore("u1", memory_storage)
    await store.hide(SOCIAL, "x")
    assert await store.hide_many(SOCIAL, ["x", "y", "z"]) == 2
    assert await store.hide_many(SOCIAL, ["x", "y"]) == 0


@pytest.mark.asyncio
async def test_load_restores_persisted_sets(memory_storage):
    memory_storage.data[hidden_key("u1", LISTINGS)] = json.dumps(["p1", "p2"])
    store = HiddenItemStore("u1", memory_storage)
    await store.load([LISTINGS, SOCIAL])
    assert store.is_hidden(LISTINGS, "p1")
    assert not store.is_hidden(SOCIAL, "p1")
    assert store.sets[SOCIAL] == frozenset()


@pytest.mark.asyncio
async def test_failed_read_behaves_as_empty(memory_storage):
    memory_storage.data[hidden_key("u1", LISTINGS)] = json.dumps(["p1"])
    memory_storage.fail_reads = True
    store = HiddenItemStore("u1", memory_storage)
    await store.load([LISTINGS])
    assert store.hidden_ids(LISTINGS) == frozenset()


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", '{"a": 1}', "42"])
async def test_malformed_persisted_set_is_empty(memory_storage, raw):
    memory_storage.data[hidden_key("u1", LISTINGS)] = raw
    store = HiddenItemStore("u1", memory_storage)
    await store.load([LISTINGS])
    assert store.hidden_ids(LISTINGS) == frozenset()


@pytest.mark.asyncio
async def test_failed_write_keeps_item_hidden(memory_storage):
    memory_storage.fail_writes = True
    store = HiddenItemStore("u1", memory_storage)
    assert await store.hide(LISTINGS, "a")
    assert store.is_hidden(LISTINGS, "a")


@pytest.mark.asyncio
async def test_hide_after_failed_load_keeps_stored_ids(memory_storage):
    memory_storage.data[hidden_key("u1", LISTINGS)] = json.dumps(["p1", "p2"])
    memory_storage.fail_reads = True
    store = HiddenItemStore("u1", memory_storage)
    await store.load([LISTINGS])
    memory_storage.fail_reads = False

    assert await store.hide(LISTINGS, "p3")
    assert json.loads(memory_storage.data[hidden_key("u1", LISTINGS)]) == ["p1", "p2", "p3"]
    assert store.is_hidden(LISTINGS, "p1")


@pytest.mark.asyncio
async def test_hide_skips_write_while_stored_set_unreadable(memory_storage):
    memory_storage.data[hidden_key("u1", LISTINGS)] = json.dumps(["p1"])
    memory_storage.fail_reads = True
    store = HiddenItemStore("u1", memory_storage)
    await store.load([LISTINGS])

    assert await store.hide(LISTINGS, "p3")
    assert json.loads(memory_storage.data[hidden_key("u1", LISTINGS)]) == ["p1"]
    assert store.is_hidden(LISTINGS, "p3")


@pytest.mark.asyncio
async def test_version_moves_only_when_a_set_grows(memory_storage):
    store = HiddenItemStore("u1", memory_storage)
    await store.hide(LISTINGS, "a")
    seen = store.version
    await store.hide(LISTINGS, "a")
    assert store.version == seen
    await store.hide(SOCIAL, "b")
    assert store.version > seen
