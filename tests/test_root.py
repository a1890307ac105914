from cinesync.core.config import settings


def test_root_lists_endpoints(client):
    body = client.get("/").json()

    assert body["version"] == "1.0.0"
    assert body["endpoints"]["websocket"] == "/ws/watch-room/{roomCode}"


def test_robots_txt(client):
    resp = client.get("/robots.txt")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    text = resp.text
    assert "User-Agent: *" in text
    assert "Disallow: /api/" in text
    assert "Disallow: /admin/" in text
    assert f"Sitemap: {settings.SITE_URL}/sitemap.xml" in text


def test_health(client):
    body = client.get("/api/health").json()

    assert body["status"] == "healthy"
    assert body["connections"] == 0
    assert body["pub_sub"] == "memory"
