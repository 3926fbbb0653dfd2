"""
backend/tests/test_main.py

Purpose:
    Application wiring: scheduled job specs, health check, request logging
    and database error mapping.
"""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient
from pymongo.errors import ConnectionFailure

from _fakes import make_db, scoped
from lastman import main
from lastman.config import settings
from lastman.services import edition_repository


def test_automated_job_specs():
    specs = {spec["id"]: spec for spec in main._build_automated_job_specs()}

    assert set(specs) == {"deadline_check", "pick_resolver"}
    assert specs["deadline_check"]["trigger_kwargs"] == {"seconds": settings.DEADLINE_CHECK_INTERVAL_SECONDS}
    assert specs["pick_resolver"]["trigger_kwargs"] == {"minutes": settings.PICK_RESOLVER_INTERVAL_MINUTES}
    assert specs["pick_resolver"]["func"].__name__ == "resolve_pending_picks"


def test_health_reports_db_state(monkeypatch):
    fake_db = make_db()

    async def _ping(name):
        return {"ok": 1.0}

    fake_db.command = _ping
    monkeypatch.setattr(edition_repository._db, "db", fake_db, raising=False)

    body = TestClient(main.app).get("/health").json()
    assert body["status"] == "healthy"
    assert body["db"] == "connected"

    async def _down(name):
        raise ConnectionFailure("down")

    fake_db.command = _down
    body = TestClient(main.app).get("/health").json()
    assert body["status"] == "degraded"


def test_requests_are_logged_with_edition_scope(monkeypatch, caplog):
    fake_db = make_db(editions=scoped([{"starting_lives": 2}]))
    monkeypatch.setattr(edition_repository._db, "db", fake_db, raising=False)

    with caplog.at_level(logging.INFO, logger="lastman"):
        response = TestClient(main.app).get(
            "/api/clubs/club/editions/2025-26/standings",
            headers={"X-Request-ID": "abc123"},
        )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc123"
    access = [r.getMessage() for r in caplog.records if r.name == "lastman" and "abc123" in r.getMessage()]
    assert access
    assert '"club_id": "club"' in access[0]
    assert '"edition_id": "2025-26"' in access[0]


def test_database_outage_maps_to_503(monkeypatch):
    class _Unreachable:
        def __getattr__(self, name):
            raise ConnectionFailure("no primary")

    monkeypatch.setattr(edition_repository._db, "db", _Unreachable(), raising=False)
    monkeypatch.setattr(settings, "REPOSITORY_MAX_RETRIES", 0)

    response = TestClient(main.app).get("/api/clubs/club/editions/2025-26/standings")
    assert response.status_code == 503
    assert response.json() == {"detail": "Service temporarily unavailable."}
