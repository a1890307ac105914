import httpx
import pytest

from cinesync.core import state
from cinesync.core.config import Settings
from cinesync.services.tmdb_client import TMDBClient


@pytest.fixture
def use_tmdb(monkeypatch):
    """Install a TMDB client whose HTTP calls are answered by `handler`."""

    def _use(handler, api_key="test-key"):
        settings = Settings()
        settings.TMDB_API_KEY = api_key
        settings.TMDB_BASE_URL = "https://tmdb.test/3"
        client = TMDBClient(settings, transport=httpx.MockTransport(handler))
        monkeypatch.setattr(state, "tmdb_client", client)
        return client

    return _use


def test_status_without_key(client):
    body = client.get("/api/tmdb").json()

    assert body["configured"] is False
    assert body["status"] == "api_key_missing"
    assert body["proxyPath"] == "/api/tmdb"


def test_proxy_without_key_is_500(client):
    resp = client.get("/api/tmdb/movie/603")

    assert resp.status_code == 500
    assert resp.json() == {"error": "TMDb API key not configured"}


def test_proxy_injects_server_key(client, use_tmdb):
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"id": 603, "title": "The Matrix"})

    use_tmdb(handler)

    resp = client.get("/api/tmdb/movie/603", params={"language": "en-US", "api_key": "client-key"})

    assert resp.status_code == 200
    assert resp.json() == {"id": 603, "title": "The Matrix"}
    assert resp.headers["cache-control"] == "public, s-maxage=3600, stale-while-revalidate=86400"

    url = seen[0]
    assert url.path == "/3/movie/603"
    assert url.params["api_key"] == "test-key"
    assert url.params["language"] == "en-US"


def test_proxy_relays_upstream_status(client, use_tmdb):
    use_tmdb(lambda request: httpx.Response(404, json={"status_message": "The resource could not be found."}))

    resp = client.get("/api/tmdb/movie/0")

    assert resp.status_code == 404
    assert resp.json() == {"error": "The resource could not be found."}


def test_proxy_timeout_is_504(client, use_tmdb):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    use_tmdb(handler)

    assert client.get("/api/tmdb/trending/movie/week").status_code == 504


def test_proxy_transport_failure_is_502(client, use_tmdb):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    use_tmdb(handler)

    assert client.get("/api/tmdb/movie/popular").status_code == 502


def test_proxy_forwards_repeated_query_params(client, use_tmdb):
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"results": []})

    use_tmdb(handler)

    client.get("/api/tmdb/discover/movie?with_genres=28&with_genres=12&api_key=client-key")

    assert seen[0].params.get_list("with_genres") == ["28", "12"]
    assert seen[0].params.get_list("api_key") == ["test-key"]
