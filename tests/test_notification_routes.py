"""Notification feed API tests."""

import pytest

U1 = {"X-Principal-Id": "u1"}


async def _seed(app):
    store = app.state.document_store
    await store.add("adoptable_pets", {"petName": "Rex", "breed": "Aspin", "age": "2", "createdAt": 100}, doc_id="pet1")
    await store.add(
        "notifications",
        {"userId": "u1", "type": "post_like", "title": "New Like", "body": "Sam liked your post", "read": False, "createdAt": 200},
        doc_id="n1",
    )
    await store.add(
        "adoption_applications",
        {"userId": "u1", "status": "Approved", "petName": "Rex", "createdAt": 50},
        doc_id="app1",
    )


@pytest.mark.asyncio
async def test_feed_requires_principal(client):
    response = await client.get("/api/v1/feed")
    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "AUTHENTICATION_ERROR"
    assert body["error"]["trace_id"]


@pytest.mark.asyncio
async def test_feed_returns_merged_timeline(app, client):
    await _seed(app)
    response = await client.get("/api/v1/feed", headers=U1)
    assert response.status_code == 200
    data = response.json()
    assert data["category"] == "all"
    assert [e["id"] for e in data["events"]] == ["n1", "pet1", "app1"]
    assert all(e["unread"] for e in data["events"])
    assert data["events"][0]["payload"]["category"] == "social"
    assert data["badge"] == 3


@pytest.mark.asyncio
async def test_feed_category_filter(app, client):
    await _seed(app)
    response = await client.get("/api/v1/feed", params={"category": "new_listings"}, headers=U1)
    assert [e["id"] for e in response.json()["events"]] == ["pet1"]

    response = await client.get("/api/v1/feed", params={"category": "pets"}, headers=U1)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_badge_and_read_all(app, client):
    await _seed(app)
    badge = (await client.get("/api/v1/feed/badge", headers=U1)).json()
    assert badge["badge"] == 3
    assert badge["label"] == "3"
    assert badge["by_category"]["social"] == 1

    response = await client.post("/api/v1/feed/read-all", headers=U1)
    assert response.json() == {"badge": 0, "label": ""}


@pytest.mark.asyncio
async def test_mark_single_read(app, client):
    await _seed(app)
    response = await client.post("/api/v1/feed/new_listings/pet1/read", headers=U1)
    assert response.status_code == 200
    assert response.json()["unread"] is False
    assert response.json()["badge"] == 2

    missing = await client.post("/api/v1/feed/new_listings/nope/read", headers=U1)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_hide_and_delete(app, client):
    await _seed(app)
    await client.post("/api/v1/feed/new_listings/pet1/hide", headers=U1)
    ids = [e["id"] for e in (await client.get("/api/v1/feed", headers=U1)).json()["events"]]
    assert "pet1" not in ids

    forbidden = await client.delete("/api/v1/feed/applications/app1", headers=U1)
    assert forbidden.status_code == 403

    deleted = await client.delete("/api/v1/feed/social/n1", headers=U1)
    assert deleted.status_code == 200
    feed = await app.state.feed_registry.get("u1")
    await feed.wait_pending_writes()
    assert await app.state.document_store.get("notifications", "n1") is None


@pytest.mark.asyncio
async def test_delete_all_twice(app, client):
    await _seed(app)
    first = await client.delete("/api/v1/feed/new_listings", headers=U1)
    second = await client.delete("/api/v1/feed/new_listings", headers=U1)
    assert first.json()["dismissed"] == 1
    assert second.status_code == 200
    assert second.json()["dismissed"] == 0


@pytest.mark.asyncio
async def test_close_session(app, client):
    await client.get("/api/v1/feed", headers=U1)
    assert "u1" in app.state.feed_registry

    response = await client.delete("/api/v1/feed/session", headers=U1)
    assert response.json() == {"principal_id": "u1", "closed": True}
    again = await client.delete("/api/v1/feed/session", headers=U1)
    assert again.json()["closed"] is False
    assert app.state.document_store.live_subscription_count() == 0
