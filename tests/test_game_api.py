from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient


def test_healthcheck(client: TestClient) -> None:
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "Healthy"


def test_create_game_returns_public_state(client: TestClient) -> None:
    resp = client.post("/api/games")
    assert resp.status_code == 201
    data = resp.json()

    assert data["status"] == "InProgress"
    assert data["attempts_remaining"] == 3
    assert data["history"] == []
    assert "secret_combination" not in data
    assert resp.headers["location"].endswith(f"/api/games/{data['game_id']}")

    fetched = client.get(f"/api/games/{data['game_id']}")
    assert fetched.status_code == 200
    assert fetched.json() == data


def test_full_game_flow_until_loss_then_conflict(client: TestClient) -> None:
    game_id = client.post("/api/games").json()["game_id"]

    first = client.post(f"/api/games/{game_id}/guesses", json={"guess": [1, 2, 4, 2]})
    assert first.status_code == 200
    body = first.json()
    assert body["attempts_remaining"] == 2
    assert body["history"][0]["attempt"] == 1
    assert body["history"][0]["correct_positions"] == 1
    assert body["history"][0]["correct_numbers"] == 2

    for _ in range(2):
        resp = client.post(f"/api/games/{game_id}/guesses", json={"guess": [0, 0, 0, 0]})
        assert resp.status_code == 200

    final = resp.json()
    assert final["status"] == "Lost"
    assert final["attempts_remaining"] == 0
    assert [h["attempt"] for h in final["history"]] == [1, 2, 3]

    conflict = client.post(f"/api/games/{game_id}/guesses", json={"guess": [1, 1, 2, 3]})
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["title"] == "Conflict submitting guess"


def test_winning_guess(client: TestClient) -> None:
    game_id = client.post("/api/games").json()["game_id"]

    resp = client.post(f"/api/games/{game_id}/guesses", json={"guess": [1, 1, 2, 3]})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Won"


def test_unknown_game_is_404(client: TestClient) -> None:
    missing = uuid4()
    assert client.get(f"/api/games/{missing}").status_code == 404

    resp = client.post(f"/api/games/{missing}/guesses", json={"guess": [1, 2, 3, 4]})
    assert resp.status_code == 404
    assert set(resp.json()["detail"]) == {"title", "detail"}
    assert resp.json()["detail"]["title"] == "Game not found"


def test_invalid_guesses_are_400(client: TestClient) -> None:
    game_id = client.post("/api/games").json()["game_id"]

    too_long = client.post(f"/api/games/{game_id}/guesses", json={"guess": [1, 2, 3, 4, 5]})
    assert too_long.status_code == 400
    assert "exactly 4 digits" in too_long.json()["detail"]["detail"]

    out_of_range = client.post(f"/api/games/{game_id}/guesses", json={"guess": [1, 2, 3, 9]})
    assert out_of_range.status_code == 400
    assert "out of range" in out_of_range.json()["detail"]["detail"]

    state = client.get(f"/api/games/{game_id}").json()
    assert state["attempts_remaining"] == 3
    assert state["history"] == []


def test_request_validation_rejects_short_guess(client: TestClient) -> None:
    game_id = client.post("/api/games").json()["game_id"]
    resp = client.post(f"/api/games/{game_id}/guesses", json={"guess": [1, 2]})
    assert resp.status_code == 422
