"""Post comment API tests."""

import pytest

ALICE = {"X-Principal-Id": "alice", "X-Principal-Name": "Alice"}
BOB = {"X-Principal-Id": "bob"}


@pytest.mark.asyncio
async def test_comment_lifecycle(client):
    created = await client.post("/api/v1/posts/p1/comments", json={"text": "Cute!"}, headers=ALICE)
    assert created.status_code == 201
    comment = created.json()
    assert comment["author_id"] == "alice"
    assert comment["author_name"] == "Alice"

    reply = await client.post(
        "/api/v1/posts/p1/comments",
        json={"text": "Agreed", "parent_id": comment["id"]},
        headers=BOB,
    )
    assert reply.status_code == 201

    forest = (await client.get("/api/v1/posts/p1/comments", headers=BOB)).json()
    assert forest["total"] == 2
    assert forest["comments"][0]["total_descendant_count"] == 1
    assert forest["comments"][0]["children"][0]["id"] == reply.json()["id"]

    edited = await client.patch(f"/api/v1/comments/{comment['id']}", json={"text": "Very cute!"}, headers=ALICE)
    assert edited.status_code == 200
    assert edited.json()["text"] == "Very cute!"
    assert edited.json()["updated_at"] is not None

    liked = await client.post(f"/api/v1/comments/{comment['id']}/like", headers=BOB)
    assert liked.json() == {"id": comment["id"], "liked": True, "like_count": 1}

    deleted = await client.delete(f"/api/v1/comments/{comment['id']}", headers=ALICE)
    assert deleted.status_code == 200
    forest = (await client.get("/api/v1/posts/p1/comments", headers=BOB)).json()
    assert [c["id"] for c in forest["comments"]] == [reply.json()["id"]]


@pytest.mark.asyncio
async def test_non_author_edit_forbidden(client):
    comment = (await client.post("/api/v1/posts/p1/comments", json={"text": "mine"}, headers=ALICE)).json()
    response = await client.patch(f"/api/v1/comments/{comment['id']}", json={"text": "theirs"}, headers=BOB)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTHORIZATION_ERROR"


@pytest.mark.asyncio
async def test_blank_comment_rejected(client):
    response = await client.post("/api/v1/posts/p1/comments", json={"text": "   "}, headers=ALICE)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_missing_comment_is_404(client):
    response = await client.post("/api/v1/comments/nope/like", headers=ALICE)
    assert response.status_code == 404
