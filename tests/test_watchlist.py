ITEMS = [
    {"mediaId": 603, "mediaType": "movie", "title": "The Matrix", "posterPath": "/matrix.jpg"},
    {"mediaId": 1399, "mediaType": "tv", "title": "Game of Thrones"},
]


def test_requires_session(client):
    assert client.get("/api/watchlist").status_code == 401
    assert client.post("/api/watchlist/migrate", json={"items": []}).status_code == 401


def test_add_check_and_remove(client, signup):
    _, _, headers = signup("alice@example.com")

    added = client.post("/api/watchlist", json=ITEMS[0], headers=headers)
    assert added.status_code == 200
    assert added.json()["item"]["title"] == "The Matrix"

    check = client.get("/api/watchlist/check", params={"mediaId": 603, "mediaType": "movie"}, headers=headers)
    assert check.json() == {"inWatchlist": True}
    other_type = client.get("/api/watchlist/check", params={"mediaId": 603, "mediaType": "tv"}, headers=headers)
    assert other_type.json() == {"inWatchlist": False}

    removed = client.delete("/api/watchlist", params={"mediaId": 603, "mediaType": "movie"}, headers=headers)
    assert removed.json() == {"success": True, "removed": True}
    assert client.get("/api/watchlist", headers=headers).json() == {"watchlist": []}


def test_check_requires_params(client, signup):
    _, _, headers = signup("alice@example.com")

    assert client.get("/api/watchlist/check", params={"mediaId": 603}, headers=headers).status_code == 400
    assert client.delete("/api/watchlist", headers=headers).status_code == 400


def test_add_rejects_invalid_item(client, signup):
    _, _, headers = signup("alice@example.com")

    resp = client.post("/api/watchlist", json={"mediaId": 603, "mediaType": "book", "title": "X"}, headers=headers)

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_watchlists_are_per_user(client, signup):
    _, _, alice = signup("alice@example.com")
    _, _, bob = signup("bob@example.com")
    client.post("/api/watchlist", json=ITEMS[0], headers=alice)

    assert client.get("/api/watchlist", headers=bob).json() == {"watchlist": []}


def test_migrate_requires_items_array(client, signup):
    _, _, headers = signup("alice@example.com")

    for body in ({}, {"items": "nope"}, {"items": {"mediaId": 1}}):
        resp = client.post("/api/watchlist/migrate", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid items array"}


def test_migrate_rejects_malformed_item(client, signup):
    _, _, headers = signup("alice@example.com")

    resp = client.post(
        "/api/watchlist/migrate", json={"items": [ITEMS[0], {"mediaType": "movie"}]}, headers=headers
    )

    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid item at index 1")
    assert client.get("/api/watchlist", headers=headers).json() == {"watchlist": []}


def test_migrate_twice_leaves_no_duplicates(client, signup):
    _, _, headers = signup("alice@example.com")

    first = client.post("/api/watchlist/migrate", json={"items": ITEMS}, headers=headers).json()
    assert first == {"success": True, "count": 2, "created": 2, "updated": 0}

    renamed = [{**ITEMS[0], "title": "The Matrix (1999)"}, ITEMS[1]]
    second = client.post("/api/watchlist/migrate", json={"items": renamed}, headers=headers).json()
    assert second == {"success": True, "count": 2, "created": 0, "updated": 2}

    watchlist = client.get("/api/watchlist", headers=headers).json()["watchlist"]
    assert len(watchlist) == 2
    assert "The Matrix (1999)" in {i["title"] for i in watchlist}
