"""HTTP tests for the Santalink gateway.

Each test gets a fresh data directory and runs the real application
factory, lifespan included.
"""

from __future__ import annotations

import csv
import io
import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from santalink.app import create_app
from santalink.config import SantalinkConfig
from santalink.errors import (
    DerangementUnreachable,
    GroupTooSmall,
    RosterError,
    StaleAssignments,
    StoreUnavailable,
)
from santalink.store.memory import MemoryStore


def _make_test_app(tmp_path, *names: str, **overrides) -> FastAPI:
    seed = tmp_path / "seed.json"
    seed.write_text(
        json.dumps([{"name": n, "birthday": f"0{i + 1}-01", "anniversary": "2020"} for i, n in enumerate(names)]),
        encoding="utf-8",
    )
    options = {
        "data_dir": str(tmp_path / "data"),
        "roster_seed": str(seed),
        "store_backend": "memory",
    }
    options.update(overrides)
    return create_app(SantalinkConfig(**options))


def _tokens(client: TestClient) -> dict[str, str]:
    r = client.get("/admin/links.csv")
    return {row["name"]: row["claim-link"].rsplit("/", 1)[-1] for row in csv.DictReader(io.StringIO(r.text))}


def _export(client: TestClient) -> list[dict]:
    r = client.get("/admin/export.csv")
    return list(csv.DictReader(io.StringIO(r.text)))


@pytest.fixture
def app(tmp_path):
    return _make_test_app(tmp_path, "Alice", "Bob", "Carol")


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_health(self, client):
        r = client.get("/admin/health")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "mode": "memory"}

    def test_health_local_json(self, tmp_path):
        app = _make_test_app(tmp_path, "A", "B", store_backend="local-json")
        with TestClient(app) as c:
            assert c.get("/admin/health").json() == {"ok": True, "mode": "local-json"}

    def test_health_unreachable_is_503(self, app, client):
        class DownStore(MemoryStore):
            def ping(self):
                raise StoreUnavailable("connection refused")

        app.state.service.store = DownStore()
        r = client.get("/admin/health")
        assert r.status_code == 503
        assert r.json()["ok"] is False
        assert "connection refused" in r.json()["error"]

    def test_health_database_down_at_startup(self, tmp_path):
        app = _make_test_app(
            tmp_path,
            "Alice",
            "Bob",
            store_backend="database",
            database_url=f"sqlite:///{tmp_path / 'no-such-dir' / 'santa.db'}",
        )
        with TestClient(app) as c:
            r = c.get("/admin/health")
            assert r.status_code == 503
            body = r.json()
            assert body["ok"] is False
            assert body["mode"] == "database"
            assert "database error" in body["error"]

            r = c.post("/api/assign", json={"token": _tokens(c)["Alice"]})
            assert r.status_code == 503


class TestAssign:
    def test_reveal_returns_assignee(self, client):
        tokens = _tokens(client)
        r = client.post("/api/assign", json={"token": tokens["Alice"]})
        assert r.status_code == 200
        assignee = r.json()["assignee"]
        assert assignee["name"] in {"Bob", "Carol"}
        assert assignee["token"] == tokens[assignee["name"]]
        assert set(assignee) == {"name", "birthday", "anniversary", "token"}

    def test_first_reveal_stores_three_rows(self, client):
        tokens = _tokens(client)
        client.post("/api/assign", json={"token": tokens["Alice"]})
        rows = _export(client)
        assert len(rows) == 3
        assert sorted(r["giver"] for r in rows) == ["Alice", "Bob", "Carol"]
        assert sorted(r["receiver"] for r in rows) == ["Alice", "Bob", "Carol"]
        assert all(r["giver"] != r["receiver"] for r in rows)

    def test_second_giver_gets_stored_receiver(self, client):
        tokens = _tokens(client)
        client.post("/api/assign", json={"token": tokens["Alice"]})
        expected = {r["giver"]: r["receiver"] for r in _export(client)}["Bob"]

        for _ in range(3):
            r = client.post("/api/assign", json={"token": tokens["Bob"]})
            assert r.json()["assignee"]["name"] == expected

    def test_unknown_token_is_404(self, client):
        r = client.post("/api/assign", json={"token": "forged"})
        assert r.status_code == 404
        assert r.json()["detail"] == "invalid token"

    def test_missing_token_is_422(self, client):
        assert client.post("/api/assign", json={}).status_code == 422

    def test_empty_token_is_422(self, client):
        assert client.post("/api/assign", json={"token": ""}).status_code == 422

    def test_group_of_one_is_500_and_stores_nothing(self, tmp_path):
        app = _make_test_app(tmp_path, "Solo")
        with TestClient(app) as c:
            r = c.post("/api/assign", json={"token": _tokens(c)["Solo"]})
            assert r.status_code == 500
            assert "at least 2" in r.json()["detail"]
            assert _export(c) == []

    def test_database_backend_end_to_end(self, tmp_path):
        app = _make_test_app(
            tmp_path,
            "Alice",
            "Bob",
            "Carol",
            "Dave",
            store_backend="database",
            database_url=f"sqlite:///{tmp_path / 'santa.db'}",
        )
        with TestClient(app) as c:
            assert c.get("/admin/health").json()["mode"] == "database"
            tokens = _tokens(c)
            first = c.post("/api/assign", json={"token": tokens["Dave"]}).json()["assignee"]
            again = c.post("/api/assign", json={"token": tokens["Dave"]}).json()["assignee"]
            assert first == again
            assert len(_export(c)) == 4


class TestWhoami:
    def test_whoami(self, client):
        tokens = _tokens(client)
        r = client.get(f"/api/whoami/{tokens['Carol']}")
        assert r.status_code == 200
        assert r.json()["me"]["name"] == "Carol"

    def test_whoami_unknown(self, client):
        assert client.get("/api/whoami/forged").status_code == 404

    def test_whoami_and_assign_agree_on_padded_token(self, client):
        token = _tokens(client)["Alice"]
        padded = f"%20{token}%20"
        r = client.get(f"/api/whoami/{padded}")
        assert r.status_code == 200
        assert r.json()["me"]["name"] == "Alice"
        r = client.post("/api/assign", json={"token": f" {token} "})
        assert r.status_code == 200


class TestAdmin:
    def test_links_csv(self, tmp_path):
        app = _make_test_app(tmp_path, "Alice", "Bob", base_url="https://santa.test")
        with TestClient(app) as c:
            r = c.get("/admin/links.csv")
            assert r.status_code == 200
            assert r.headers["content-type"].startswith("text/csv")
            assert 'filename="links.csv"' in r.headers["content-disposition"]
            lines = r.text.splitlines()
            assert lines[0] == "name,claim-link"
            assert lines[1].startswith("Alice,https://santa.test/claim/")

    def test_export_csv_headers(self, client):
        r = client.get("/admin/export.csv")
        assert r.status_code == 200
        assert 'filename="assignments.csv"' in r.headers["content-disposition"]
        assert r.text.splitlines()[0] == (
            "giver,giver-birthday,giver-anniversary,"
            "receiver,receiver-birthday,receiver-anniversary,claim-link"
        )

    def test_reset_then_redraw(self, client):
        tokens = _tokens(client)
        client.post("/api/assign", json={"token": tokens["Alice"]})

        r = client.post("/admin/reset")
        assert r.status_code == 200
        assert r.json() == {"ok": True}
        assert _export(client) == []

        client.post("/api/assign", json={"token": tokens["Carol"]})
        rows = _export(client)
        assert len(rows) == 3
        assert all(r["giver"] != r["receiver"] for r in rows)

    def test_tokens_stable_across_restart(self, tmp_path):
        app = _make_test_app(tmp_path, "Alice", "Bob")
        with TestClient(app) as c:
            before = _tokens(c)
        with TestClient(_make_test_app(tmp_path, "Alice", "Bob")) as c:
            assert _tokens(c) == before


class TestExceptionHandlers:
    @pytest.mark.parametrize(
        "error, status",
        [
            (StaleAssignments("roster changed since the draw; reset required"), 409),
            (StoreUnavailable("database error"), 503),
            (DerangementUnreachable(1, 2000), 500),
            (GroupTooSmall(1), 500),
            (RosterError("duplicate roster name: A"), 500),
        ],
    )
    def test_error_maps_to_status(self, app, client, monkeypatch, error, status):
        def _raise(token):
            raise error

        monkeypatch.setattr(app.state.service, "reveal", _raise)
        r = client.post("/api/assign", json={"token": "anything"})
        assert r.status_code == status
        assert r.json()["detail"] == str(error)


class TestAuditLog:
    def test_requests_are_logged_without_tokens(self, client, caplog):
        caplog.set_level(logging.INFO, logger="santalink.audit")
        token = _tokens(client)["Alice"]
        client.get(f"/api/whoami/{token}")

        messages = [r.getMessage() for r in caplog.records if r.name == "santalink.audit"]
        assert any(m.startswith("GET /api/whoami/<token> 200") for m in messages)
        assert all(token not in m for m in messages)
