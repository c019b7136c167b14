from __future__ import annotations

from fastapi.testclient import TestClient


def test_random_secret_uses_engine_source(client: TestClient) -> None:
    resp = client.get("/api/test/random-secret")
    assert resp.status_code == 200
    # The test engine's fixed source answers with the configured secret.
    assert resp.json() == [1, 1, 2, 3]


def test_cache_get_or_create_then_get_and_remove(client: TestClient) -> None:
    created = client.get("/api/test/cache/get-or-create/Some Key")
    assert created.status_code == 200
    assert created.json()["note"] == "created by factory"

    again = client.get("/api/test/cache/get-or-create/some:key")
    assert again.json() == created.json()

    fetched = client.get("/api/test/cache/get/SOME KEY")
    assert fetched.status_code == 200
    assert fetched.json() == created.json()

    assert client.delete("/api/test/cache/remove/some key").status_code == 204
    assert client.get("/api/test/cache/get/some:key").status_code == 404


def test_cache_set_and_ttl_validation(client: TestClient) -> None:
    payload = {"when_utc": "2025-01-01T00:00:00Z", "note": "manual"}

    resp = client.post("/api/test/cache/set/manual?absolute_expiration_seconds=60", json=payload)
    assert resp.status_code == 204
    assert client.get("/api/test/cache/get/manual").json()["note"] == "manual"

    bad = client.post("/api/test/cache/set/manual?sliding_expiration_seconds=-5", json=payload)
    assert bad.status_code == 422


def test_cache_blank_key_is_400(client: TestClient) -> None:
    resp = client.get("/api/test/cache/get/%20%20")
    assert resp.status_code == 400
    assert resp.json()["detail"]["title"] == "Invalid request"
