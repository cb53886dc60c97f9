"""SQL-backed document store tests: CRUD, array sentinels and live queries."""

import pytest

from pawfeed.errors.exceptions import NotFoundError, RemoteStoreError
from pawfeed.store.base import ArrayRemove, ArrayUnion, DocumentQuery


def _query(limit=None):
    return DocumentQuery(collection="notifications", order_by="createdAt", limit=limit).where("userId", "==", "u1")


@pytest.mark.asyncio
async def test_add_get_update_delete(store):
    doc_id = await store.add("notifications", {"userId": "u1", "read": False, "createdAt": 1})
    assert doc_id.startswith("doc_")
    assert (await store.get("notifications", doc_id))["read"] is False

    await store.update("notifications", doc_id, {"read": True})
    assert (await store.get("notifications", doc_id))["read"] is True

    await store.delete("notifications", doc_id)
    assert await store.get("notifications", doc_id) is None
    # Deleting again is a no-op
    await store.delete("notifications", doc_id)


@pytest.mark.asyncio
async def test_update_missing_document_raises(store):
    with pytest.raises(NotFoundError):
        await store.update("notifications", "missing", {"read": True})


@pytest.mark.asyncio
async def test_array_union_and_remove(store):
    await store.add("post_comments", {"likes": ["u1"]}, doc_id="c1")
    await store.update("post_comments", "c1", {"likes": ArrayUnion(("u1", "u2"))})
    assert (await store.get("post_comments", "c1"))["likes"] == ["u1", "u2"]
    await store.update("post_comments", "c1", {"likes": ArrayRemove(("u1",))})
    assert (await store.get("post_comments", "c1"))["likes"] == ["u2"]


@pytest.mark.asyncio
async def test_query_filters_orders_and_limits(store):
    await store.add("notifications", {"userId": "u1", "createdAt": 1}, doc_id="old")
    await store.add("notifications", {"userId": "u1", "createdAt": 3}, doc_id="new")
    await store.add("notifications", {"userId": "u2", "createdAt": 2}, doc_id="other")
    await store.add("notifications", {"userId": "u1"}, doc_id="undated")

    docs = await store.query(_query())
    assert [d["id"] for d in docs] == ["new", "old", "undated"]
    assert [d["id"] for d in await store.query(_query(limit=1))] == ["new"]


@pytest.mark.asyncio
async def test_subscription_pushes_full_snapshot_on_every_write(store):
    pushes = []
    subscription = await store.subscribe(_query(limit=2), pushes.append)
    assert pushes == [[]]

    await store.add("notifications", {"userId": "u1", "createdAt": 1}, doc_id="a")
    await store.add("notifications", {"userId": "u1", "createdAt": 2}, doc_id="b")
    await store.add("notifications", {"userId": "u1", "createdAt": 3}, doc_id="c")
    assert [d["id"] for d in pushes[-1]] == ["c", "b"]

    await store.delete("notifications", "c")
    assert [d["id"] for d in pushes[-1]] == ["b", "a"]

    subscription.unsubscribe()
    subscription.unsubscribe()
    count = len(pushes)
    await store.add("notifications", {"userId": "u1", "createdAt": 4}, doc_id="d")
    assert len(pushes) == count
    assert store.live_subscription_count() == 0


@pytest.mark.asyncio
async def test_writes_to_other_collections_do_not_push(store):
    pushes = []
    await store.subscribe(_query(), pushes.append)
    await store.add("announcements", {"createdAt": 1})
    assert len(pushes) == 1


@pytest.mark.asyncio
async def test_query_failure_goes_to_error_callback(store, monkeypatch):
    errors, pushes = [], []
    await store.subscribe(_query(), pushes.append, errors.append)

    async def _broken(query):
        raise RemoteStoreError("boom")

    monkeypatch.setattr(store, "query", _broken)
    await store._notify("notifications")
    assert len(errors) == 1
    assert len(pushes) == 1


@pytest.mark.asyncio
async def test_listener_exception_does_not_break_writer(store):
    def _explode(docs):
        raise RuntimeError("listener bug")

    await store.subscribe(_query(), lambda docs: None)
    store._live["notifications"][0].on_snapshot = _explode
    await store.add("notifications", {"userId": "u1", "createdAt": 1})
