import pytest


@pytest.mark.asyncio
async def test_send_friend_request(client, alice, bob):
    response = await client.post(
        "/friends/requests", json={"sender_id": alice.id, "receiver_id": bob.id}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["requester_id"] == alice.id
    assert data["recipient_id"] == bob.id
    assert data["status"] == "pending"


@pytest.mark.asyncio
async def test_send_friend_request_to_self(client, alice):
    response = await client.post(
        "/friends/requests", json={"sender_id": alice.id, "receiver_id": alice.id}
    )
    assert response.status_code == 400
    assert "yourself" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_send_friend_request_unknown_receiver(client, alice):
    response = await client.post(
        "/friends/requests", json={"sender_id": alice.id, "receiver_id": 77}
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Receiver with ID 77 not found"


@pytest.mark.asyncio
async def test_send_duplicate_request_reverse_direction(client, alice, bob):
    await client.post("/friends/requests", json={"sender_id": alice.id, "receiver_id": bob.id})
    response = await client.post(
        "/friends/requests", json={"sender_id": bob.id, "receiver_id": alice.id}
    )
    assert response.status_code == 409
    assert response.json()["type"] == "DuplicateRequest"


@pytest.mark.asyncio
async def test_accept_and_list_friends(client, alice, bob):
    await client.post("/friends/requests", json={"sender_id": alice.id, "receiver_id": bob.id})

    incoming = await client.get(f"/users/{bob.id}/friend-requests/incoming")
    assert incoming.status_code == 200
    assert [r["requester_id"] for r in incoming.json()] == [alice.id]

    response = await client.post(f"/friends/requests/{alice.id}/{bob.id}/accept")
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    friends = await client.get(f"/users/{bob.id}/friends")
    assert friends.status_code == 200
    assert [f["username"] for f in friends.json()] == ["alice"]

    status = await client.get(f"/friends/{bob.id}/{alice.id}")
    assert status.json()["friends"] is True


@pytest.mark.asyncio
async def test_accept_nonexistent_request(client, alice, bob):
    response = await client.post(f"/friends/requests/{alice.id}/{bob.id}/accept")
    assert response.status_code == 404
    assert response.json()["type"] == "RequestNotFound"


@pytest.mark.asyncio
async def test_accept_unknown_sender(client, bob):
    response = await client.post(f"/friends/requests/55/{bob.id}/accept")
    assert response.status_code == 404
    assert "sender" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_decline_request(client, alice, bob):
    await client.post("/friends/requests", json={"sender_id": alice.id, "receiver_id": bob.id})

    response = await client.post(f"/friends/requests/{alice.id}/{bob.id}/decline")
    assert response.status_code == 204

    outgoing = await client.get(f"/users/{alice.id}/friend-requests/outgoing")
    assert outgoing.json() == []


@pytest.mark.asyncio
async def test_remove_friendship(client, alice, bob):
    await client.post("/friends/requests", json={"sender_id": alice.id, "receiver_id": bob.id})
    await client.post(f"/friends/requests/{alice.id}/{bob.id}/accept")

    response = await client.delete(f"/friends/{bob.id}/{alice.id}")
    assert response.status_code == 204

    response = await client.delete(f"/friends/{alice.id}/{bob.id}")
    assert response.status_code == 404
    assert response.json()["type"] == "FriendshipNotFound"


@pytest.mark.asyncio
async def test_list_friends_unknown_user(client):
    response = await client.get("/users/123/friends")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rate_limit(client, monkeypatch, alice):
    from socialgraph.config import settings

    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)

    for _ in range(2):
        response = await client.get(f"/users/{alice.id}")
        assert response.status_code == 200

    response = await client.get(f"/users/{alice.id}")
    assert response.status_code == 429
    assert "limit" in response.json()["detail"].lower()

    # Health check is exempt
    response = await client.get("/health")
    assert response.status_code == 200
