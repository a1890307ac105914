from cinesync.core import state


def test_requires_session(client):
    assert client.get("/api/watch-room", params={"roomCode": "X"}).status_code == 401
    assert client.post("/api/watch-room", json={}).status_code == 401
    assert client.get("/api/watch-room/chat", params={"roomCode": "X"}).status_code == 401


def test_create_and_fetch_room(client, signup, make_room):
    user, _, headers = signup("alice@example.com", name="Alice")

    room = make_room(headers)

    assert room["roomCode"] == "MOVIE-123"
    assert room["creatorId"] == user["id"]
    assert room["participants"][0]["username"] == "Alice"
    assert room["participants"][0]["role"] == "host"

    fetched = client.get("/api/watch-room", params={"roomCode": "MOVIE-123"}, headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["room"]["mediaTitle"] == "The Matrix"


def test_create_room_missing_fields(client, signup):
    _, _, headers = signup("alice@example.com")

    resp = client.post("/api/watch-room", json={"roomCode": "X"}, headers=headers)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields"}


def test_duplicate_room_code(client, signup, make_room):
    _, _, alice = signup("alice@example.com")
    _, _, bob = signup("bob@example.com")
    make_room(alice)

    resp = client.post(
        "/api/watch-room",
        json={"roomCode": "MOVIE-123", "mediaId": 1, "mediaType": "movie", "mediaTitle": "Other"},
        headers=bob,
    )

    assert resp.status_code == 409


def test_unknown_room_and_missing_params(client, signup):
    _, _, headers = signup("alice@example.com")

    assert client.get("/api/watch-room", params={"roomCode": "NOPE"}, headers=headers).status_code == 404
    assert client.get("/api/watch-room", headers=headers).status_code == 400


def test_room_history(client, signup, make_room):
    _, _, headers = signup("alice@example.com")
    make_room(headers, room_code="A")
    make_room(headers, room_code="B")

    rooms = client.get("/api/watch-room", params={"history": "true"}, headers=headers).json()["rooms"]

    assert {r["roomCode"] for r in rooms} == {"A", "B"}


def test_only_creator_or_admin_can_close(client, signup, make_room, admin_headers):
    _, _, alice = signup("alice@example.com")
    _, _, bob = signup("bob@example.com")
    make_room(alice, room_code="A")
    make_room(alice, room_code="B")

    assert client.patch("/api/watch-room", json={"roomCode": "A"}, headers=bob).status_code == 403
    assert client.patch("/api/watch-room", json={"roomCode": "A"}, headers=alice).json() == {"success": True}
    assert client.patch("/api/watch-room", json={"roomCode": "B"}, headers=admin_headers).status_code == 200
    assert client.patch("/api/watch-room", json={"roomCode": "NOPE"}, headers=alice).status_code == 404

    assert not state.room_manager.get_room("A").is_active
    assert not state.room_manager.get_room("B").is_active


def test_post_and_read_chat(client, signup, make_room):
    _, _, headers = signup("alice@example.com", name="Alice")
    make_room(headers)

    resp = client.post("/api/watch-room/chat", json={"roomCode": "MOVIE-123", "message": "hi"}, headers=headers)
    assert resp.status_code == 200
    message = resp.json()["message"]
    assert (message["sequence"], message["username"], message["message"]) == (1, "Alice", "hi")

    history = client.get("/api/watch-room/chat", params={"roomCode": "MOVIE-123"}, headers=headers).json()
    assert [m["message"] for m in history["messages"]] == ["hi"]


def test_chat_history_limit(client, signup, make_room):
    user, _, headers = signup("alice@example.com")
    make_room(headers)
    for i in range(60):
        state.room_manager.save_chat_message("MOVIE-123", user["id"], "Alice", f"m{i}")

    default = client.get("/api/watch-room/chat", params={"roomCode": "MOVIE-123"}, headers=headers).json()
    sequences = [m["sequence"] for m in default["messages"]]
    assert len(sequences) == 50
    assert sequences == sorted(sequences)
    assert sequences[-1] == 60

    limited = client.get(
        "/api/watch-room/chat", params={"roomCode": "MOVIE-123", "limit": 3}, headers=headers
    ).json()
    assert [m["sequence"] for m in limited["messages"]] == [58, 59, 60]


def test_chat_history_of_unknown_room_is_empty(client, signup):
    _, _, headers = signup("alice@example.com")

    resp = client.get("/api/watch-room/chat", params={"roomCode": "NOPE"}, headers=headers)

    assert resp.json() == {"messages": []}


def test_chat_history_requires_room_code(client, signup):
    _, _, headers = signup("alice@example.com")

    assert client.get("/api/watch-room/chat", headers=headers).status_code == 400


def test_chat_rejects_empty_message(client, signup, make_room):
    _, _, headers = signup("alice@example.com")
    make_room(headers)

    resp = client.post("/api/watch-room/chat", json={"roomCode": "MOVIE-123", "message": ""}, headers=headers)

    assert resp.status_code == 400


def test_chat_history_limit_zero_returns_nothing(client, signup, make_room):
    user, _, headers = signup("alice@example.com")
    make_room(headers)
    for i in range(3):
        state.room_manager.save_chat_message("MOVIE-123", user["id"], "Alice", f"m{i}")

    resp = client.get("/api/watch-room/chat", params={"roomCode": "MOVIE-123", "limit": 0}, headers=headers)

    assert resp.status_code == 200
    assert resp.json() == {"messages": []}
