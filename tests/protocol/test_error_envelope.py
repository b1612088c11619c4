from __future__ import annotations

from fastapi.testclient import TestClient

from gambit.config import Settings
from gambit.protocol.http.app import create_app
from gambit.search.service import SearchService


def test_unknown_route_uses_envelope() -> None:
    client = TestClient(create_app(Settings()))
    r = client.get("/api/nope", headers={"x-request-id": "rid-1"})
    assert r.status_code == 404
    err = r.json()["error"]
    assert err["code"] == "not_found"
    assert err["type"] == "client_error"
    assert err["request_id"] == "rid-1"


def test_validation_error_lists_fields() -> None:
    client = TestClient(create_app(Settings()))
    game_id = client.post("/api/games").json()["game_id"]
    r = client.post(f"/api/games/{game_id}/position", json={})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "validation_error"
    assert any(fe["field"].endswith("fen") for fe in err["field_errors"])


def test_unexpected_error_is_internal(monkeypatch) -> None:
    def boom(self, game, depth, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(SearchService, "best_move", boom)
    client = TestClient(create_app(Settings()), raise_server_exceptions=False)
    game_id = client.post("/api/games").json()["game_id"]
    r = client.get(f"/api/games/{game_id}/best-move")
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "internal_error"
    assert err["type"] == "server_error"
    assert "kaboom" not in err["message"]
