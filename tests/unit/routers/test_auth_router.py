"""Tests for the account endpoints."""


def test_register_and_me(client, register):
    user_id, headers = register("alice", bio="Painter")

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["_id"] == user_id
    assert user["username"] == "alice"
    assert user["bio"] == "Painter"
    assert user["totalSales"] == 0
    assert "password" not in response.text


def test_register_duplicate_is_400(client, register):
    register("alice")

    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "new@example.com", "password": "secret1"},
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "DuplicateEntryError"


def test_register_validation_is_400(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "al", "email": "bad", "password": "1"},
    )

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"username", "email", "password"} <= fields


def test_login(client, register):
    register("alice", password="secret1")

    ok = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "secret1"}
    )
    bad = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "nope!!"}
    )

    assert ok.status_code == 200
    assert ok.json()["token"]
    assert bad.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer junk"})
    assert response.status_code == 401


def test_update_profile(client, register):
    _, headers = register("alice")

    response = client.put(
        "/api/auth/profile",
        json={"bio": "Collector", "profileImage": "ipfs://me.png"},
        headers=headers,
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["bio"] == "Collector"
    assert user["profileImage"] == "ipfs://me.png"
