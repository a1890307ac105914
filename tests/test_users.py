def test_search_requires_session(client):
    assert client.get("/api/users/search", params={"q": "al"}).status_code == 401


def test_short_query_returns_no_users(client, signup):
    signup("alice@example.com", name="Alice")
    _, _, headers = signup("bob@example.com", name="Bob")

    for q in ("", "a", "  a  "):
        resp = client.get("/api/users/search", params={"q": q}, headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"users": []}


def test_search_matches_name_or_email_and_excludes_caller(client, signup):
    alice, _, _ = signup("alice@example.com", name="Alice Liddell")
    signup("carol@example.com", name="Carol")
    _, _, headers = signup("alfred@example.com", name="Alfred")

    by_name = client.get("/api/users/search", params={"q": "AL"}, headers=headers).json()["users"]
    assert [u["id"] for u in by_name] == [alice["id"]]
    assert set(by_name[0]) == {"id", "name", "email"}

    by_email = client.get("/api/users/search", params={"q": "carol@"}, headers=headers).json()["users"]
    assert [u["name"] for u in by_email] == ["Carol"]
