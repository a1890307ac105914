import pytest
from fastapi.testclient import TestClient

from cinesync.core import state
from cinesync.core.config import Settings
from cinesync.main import app
from cinesync.models.user import Role
from cinesync.services.connection_manager import ConnectionManager
from cinesync.services.notification_store import NotificationStore
from cinesync.services.room_manager import RoomManager
from cinesync.services.tmdb_client import TMDBClient
from cinesync.services.user_store import UserStore
from cinesync.services.watchlist_store import WatchlistStore

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    """Every test gets empty stores and in-process fan-out."""
    room_manager = RoomManager()
    monkeypatch.setattr(state, "user_store", UserStore(admin_emails=["admin@example.com"]))
    monkeypatch.setattr(state, "room_manager", room_manager)
    monkeypatch.setattr(state, "watchlist_store", WatchlistStore())
    monkeypatch.setattr(state, "notification_store", NotificationStore())
    monkeypatch.setattr(state, "connection_manager", ConnectionManager(room_manager=room_manager))
    monkeypatch.setattr(state, "redis_service", None)

    settings = Settings()
    settings.TMDB_API_KEY = ""
    monkeypatch.setattr(state, "tmdb_client", TMDBClient(settings))


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def signup(client):
    """
    Register and log in a user.

    Returns (user_json, token, headers). The login cookie is cleared so
    requests without headers stay anonymous.
    """

    def _signup(email, name="Test User", password=PASSWORD):
        resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.text
        login = client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        client.cookies.clear()
        token = login.json()["token"]
        return resp.json()["user"], token, {"Authorization": f"Bearer {token}"}

    return _signup


@pytest.fixture
def admin_headers(signup):
    _, _, headers = signup("admin@example.com", name="Admin")
    return headers


@pytest.fixture
def make_room(client):
    def _make_room(headers, room_code="MOVIE-123", media_id=603, media_title="The Matrix", media_type="movie"):
        resp = client.post(
            "/api/watch-room",
            json={
                "roomCode": room_code,
                "mediaId": media_id,
                "mediaType": media_type,
                "mediaTitle": media_title,
                "embedUrl": "https://player.example.com/embed/603",
            },
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["room"]

    return _make_room


def promote(user_id):
    state.user_store.set_role(user_id, Role.ADMIN)
