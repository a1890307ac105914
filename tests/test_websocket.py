import pytest
from starlette.websockets import WebSocketDisconnect

from cinesync.core import state


def ws_url(token=None, room_code="MOVIE-123"):
    url = f"/ws/watch-room/{room_code}"
    return f"{url}?token={token}" if token else url


@pytest.fixture
def room_with_two_users(signup, make_room):
    alice, alice_token, alice_headers = signup("alice@example.com", name="Alice")
    bob, bob_token, _ = signup("bob@example.com", name="Bob")
    make_room(alice_headers)
    return {
        "alice": alice,
        "alice_token": alice_token,
        "alice_headers": alice_headers,
        "bob": bob,
        "bob_token": bob_token,
    }


def join(ws):
    """Consume the room_state and own participant_joined of a fresh socket."""
    room_state = ws.receive_json()
    assert room_state["type"] == "room_state"
    joined = ws.receive_json()
    assert joined["type"] == "participant_joined"
    return room_state


def test_rejects_connection_without_session(client, room_with_two_users):
    with client.websocket_connect(ws_url()) as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()

    assert exc.value.code == 4401


def test_rejects_unknown_room(client, room_with_two_users):
    with client.websocket_connect(ws_url(room_with_two_users["bob_token"], "NOPE")) as ws:
        assert ws.receive_json() == {"type": "error", "message": "Room not found"}
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()

    assert exc.value.code == 4404


def test_join_sends_room_state(client, room_with_two_users):
    users = room_with_two_users
    state.room_manager.save_chat_message("MOVIE-123", users["alice"]["id"], "Alice", "welcome")

    with client.websocket_connect(ws_url(users["bob_token"])) as ws:
        room_state = join(ws)

    assert room_state["room"]["roomCode"] == "MOVIE-123"
    assert {p["username"] for p in room_state["room"]["participants"]} == {"Alice", "Bob"}
    assert [m["message"] for m in room_state["messages"]] == ["welcome"]
    assert room_state["participant"]["userId"] == users["bob"]["id"]
    assert room_state["participant"]["role"] == "guest"


def test_chat_and_playback_reach_everyone(client, room_with_two_users):
    users = room_with_two_users

    with client.websocket_connect(ws_url(users["alice_token"])) as alice:
        join(alice)
        with client.websocket_connect(ws_url(users["bob_token"])) as bob:
            join(bob)
            assert alice.receive_json()["participant"]["username"] == "Bob"

            alice.send_json({"action": "chat", "message": "popcorn ready?"})
            for ws in (alice, bob):
                event = ws.receive_json()
                assert event["type"] == "chat_message"
                assert event["message"]["message"] == "popcorn ready?"
                assert event["message"]["sequence"] == 1

            bob.send_json({"action": "play", "position": 12.5})
            for ws in (alice, bob):
                event = ws.receive_json()
                assert event["type"] == "playback"
                assert event["playback"]["position"] == 12.5
                assert event["playback"]["isPlaying"] is True
                assert event["playback"]["updatedBy"] == users["bob"]["id"]

            alice.send_json({"action": "seek", "position": 300})
            for ws in (alice, bob):
                event = ws.receive_json()
                assert event["playback"]["position"] == 300
                assert event["playback"]["isPlaying"] is True

            bob.send_json({"action": "sync_request"})
            assert bob.receive_json()["playback"]["position"] == 300


def test_bad_input_gets_error_events(client, room_with_two_users):
    with client.websocket_connect(ws_url(room_with_two_users["alice_token"])) as ws:
        join(ws)

        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}

        ws.send_json({"action": "dance"})
        assert ws.receive_json() == {"type": "error", "message": "Unknown action: dance"}

        ws.send_json({"action": "chat", "message": "   "})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"action": "seek", "position": "later"})
        assert ws.receive_json() == {"type": "error", "message": "Invalid position"}

        ws.send_json({"action": "seek", "position": "nan"})
        assert ws.receive_json() == {"type": "error", "message": "Playback position must be a finite number"}
        assert state.room_manager.get_room("MOVIE-123").playback.position == 0


def test_leave_announces_departure(client, room_with_two_users):
    users = room_with_two_users

    with client.websocket_connect(ws_url(users["alice_token"])) as alice:
        join(alice)
        with client.websocket_connect(ws_url(users["bob_token"])) as bob:
            join(bob)
            alice.receive_json()

            bob.send_json({"action": "leave"})
            with pytest.raises(WebSocketDisconnect) as exc:
                bob.receive_json()
            assert exc.value.code == 1000

        left = alice.receive_json()
        assert left == {"type": "participant_left", "participant": {"userId": users["bob"]["id"], "username": "Bob"}}

        room = state.room_manager.get_room("MOVIE-123")
        assert [p.username for p in room.active_participants()] == ["Alice"]


def test_rest_chat_is_broadcast(client, room_with_two_users):
    users = room_with_two_users

    with client.websocket_connect(ws_url(users["bob_token"])) as bob:
        join(bob)

        client.post(
            "/api/watch-room/chat",
            json={"roomCode": "MOVIE-123", "message": "from the web page"},
            headers=users["alice_headers"],
        )

        event = bob.receive_json()
        assert event["type"] == "chat_message"
        assert event["message"]["username"] == "Alice"


def test_invite_is_pushed_to_recipient(client, room_with_two_users):
    users = room_with_two_users

    with client.websocket_connect(ws_url(users["bob_token"])) as bob:
        join(bob)

        client.post(
            "/api/notifications/invite",
            json={
                "toUserId": users["bob"]["id"],
                "roomCode": "MOVIE-123",
                "mediaTitle": "The Matrix",
                "mediaId": 603,
                "mediaType": "movie",
                "embedUrl": "https://player.example.com/embed/603",
            },
            headers=users["alice_headers"],
        )

        event = bob.receive_json()
        assert event["type"] == "notification"
        assert event["notification"]["type"] == "watch_invite"
        assert event["notification"]["toUserId"] == users["bob"]["id"]
