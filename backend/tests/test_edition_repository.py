"""
backend/tests/test_edition_repository.py

Purpose:
    Repository retry behavior and document mapping for legacy field names.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, ConnectionFailure

from _fakes import make_db, scoped
from lastman.config import settings
from lastman.models.edition import EditionContext
from lastman.models.pick import Pick, PickOutcome
from lastman.services import edition_repository
from lastman.services.edition_repository import (
    EditionRepository,
    PickRepository,
    edition_from_doc,
    fixture_from_doc,
    pick_from_doc,
    with_retry,
)
from lastman.services.lives_service import replay_lives

CTX = EditionContext(club_id="club", edition_id="2025-26")


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch):
    monkeypatch.setattr(settings, "REPOSITORY_RETRY_BASE_DELAY", 0)
    monkeypatch.setattr(settings, "REPOSITORY_MAX_RETRIES", 2)


@pytest.mark.asyncio
async def test_with_retry_recovers_from_transient_failure():
    calls = {"n": 0}

    async def flaky():
        calls["n"] += 1
        if calls["n"] < 3:
            raise AutoReconnect("primary stepped down")
        return "ok"

    assert await with_retry("flaky", flaky) == "ok"
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_with_retry_gives_up_after_max_attempts():
    calls = {"n": 0}

    async def down():
        calls["n"] += 1
        raise ConnectionFailure("no route")

    with pytest.raises(ConnectionFailure):
        await with_retry("down", down)
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_with_retry_does_not_retry_other_errors():
    calls = {"n": 0}

    async def broken():
        calls["n"] += 1
        raise KeyError("missing")

    with pytest.raises(KeyError):
        await with_retry("broken", broken)
    assert calls["n"] == 1


def test_edition_from_doc_reads_legacy_fields():
    edition = edition_from_doc({
        "club_id": "club",
        "edition_id": "2024-25",
        "lives_per_player": 3,
        "total_gameweeks": 12,
        "draw_costs_life": None,
    })
    assert edition.starting_lives == 3
    assert edition.total_rounds == 12
    assert edition.draw_costs_life is False
    assert edition.context == EditionContext(club_id="club", edition_id="2024-25")


def test_fixture_from_doc_uses_provider_payload():
    fixture = fixture_from_doc({
        "_id": "abc",
        "round_number": "4",
        "api_data": {
            "home-team": {"name": "Arsenal", "score": 2},
            "away-team": {"name": "Chelsea", "score": 2},
        },
        "status": {"full": "Full Time"},
    })
    assert fixture.fixture_id == "abc"
    assert fixture.round_number == 4
    assert fixture.teams == ("Arsenal", "Chelsea")
    assert (fixture.home_score, fixture.away_score) == (2, 2)
    assert fixture.status == "Full Time"


def test_pick_from_doc_falls_back_to_created_at():
    created = datetime(2025, 8, 1, 9, 0, tzinfo=timezone.utc)
    oid = ObjectId()
    pick = pick_from_doc({
        "_id": oid,
        "competitor_id": 42,
        "round_number": 1,
        "team_picked": "Arsenal",
        "outcome": "Loss",
        "created_at": created,
    })
    assert pick.pick_id == str(oid)
    assert pick.competitor_id == "42"
    assert pick.outcome == "Loss"
    assert pick.recorded_at == created


@pytest.mark.asyncio
async def test_queries_are_scoped_to_edition(monkeypatch):
    fake_db = make_db(
        editions=scoped([{"is_active": True}]) + scoped([{"is_active": False}], edition_id="2024-25"),
        picks=scoped([
            {"competitor_id": "a", "round_number": 1, "team_picked": "Arsenal", "outcome": "win",
             "recorded_at": datetime(2025, 8, 1, tzinfo=timezone.utc)},
            {"competitor_id": "a", "round_number": 2, "team_picked": "Chelsea", "outcome": None,
             "recorded_at": datetime(2025, 8, 8, tzinfo=timezone.utc)},
        ]) + scoped([
            {"competitor_id": "a", "round_number": 3, "team_picked": "Leeds", "outcome": "pending",
             "recorded_at": datetime(2025, 8, 15, tzinfo=timezone.utc)},
        ], edition_id="2024-25"),
    )
    monkeypatch.setattr(edition_repository._db, "db", fake_db, raising=False)

    active = await EditionRepository().list_active()
    assert [e.edition_id for e in active] == ["2025-26"]

    repo = PickRepository()
    assert len(await repo.list_all(CTX)) == 2
    assert await repo.pending_round_numbers(CTX) == [2]


@pytest.mark.asyncio
async def test_set_outcome_only_touches_pending_picks(monkeypatch):
    fake_db = make_db()
    monkeypatch.setattr(edition_repository._db, "db", fake_db, raising=False)
    repo = PickRepository()

    stored = await repo.insert(CTX, Pick(
        competitor_id="a", round_number=1, team_picked="Arsenal",
        recorded_at=datetime(2025, 8, 1, tzinfo=timezone.utc),
    ))
    assert fake_db.picks.docs[0]["club_id"] == "club"
    assert "pick_id" not in fake_db.picks.docs[0]

    assert await repo.set_outcome(CTX, stored, PickOutcome.win) is True
    assert await repo.set_outcome(CTX, stored, PickOutcome.loss) is False
    assert fake_db.picks.docs[0]["outcome"] == "win"

    unsaved = stored.model_copy(update={"pick_id": None})
    with pytest.raises(ValueError):
        await repo.set_outcome(CTX, unsaved, PickOutcome.win)


def test_fixture_from_doc_drops_unparseable_kickoff(caplog):
    with caplog.at_level(logging.WARNING, logger="lastman.edition_repository"):
        fixture = fixture_from_doc({
            "fixture_id": "f9",
            "round_number": 2,
            "home_team": "Arsenal",
            "away_team": "Chelsea",
            "kickoff_at": "TBC",
            "date": 20250816,
            "kick_off_time": "15:00",
            "status": 1,
        })
    assert fixture.kickoff_at is None
    assert fixture.date is None
    assert fixture.kick_off_time == "15:00"
    assert fixture.status == "1"
    assert "TBC" in caplog.text


def test_fixture_from_doc_parses_iso_kickoff_strings():
    fixture = fixture_from_doc({
        "fixture_id": "f9",
        "round_number": 2,
        "home_team": "Arsenal",
        "away_team": "Chelsea",
        "kickoff_at": "2025-08-16T14:00:00Z",
    })
    assert fixture.kickoff_at == datetime(2025, 8, 16, 14, 0, tzinfo=timezone.utc)


def test_pick_from_doc_keeps_non_text_outcome_as_unknown(caplog):
    pick = pick_from_doc({
        "competitor_id": "a",
        "round_number": 1,
        "team_picked": "Arsenal",
        "outcome": 0,
        "recorded_at": datetime(2025, 8, 1, tzinfo=timezone.utc),
    })
    assert pick.outcome == "0"

    with caplog.at_level(logging.WARNING, logger="lastman.lives_service"):
        result = replay_lives([pick], 2)
    assert result.lives_remaining == 2
    assert "'0'" in caplog.text


@pytest.mark.asyncio
async def test_correct_outcome_overwrites_resolved_pick(monkeypatch):
    fake_db = make_db()
    monkeypatch.setattr(edition_repository._db, "db", fake_db, raising=False)
    repo = PickRepository()
    now = datetime(2025, 8, 20, tzinfo=timezone.utc)

    stored = await repo.insert(CTX, Pick(
        competitor_id="a", round_number=1, team_picked="Arsenal", outcome="win",
        recorded_at=datetime(2025, 8, 1, tzinfo=timezone.utc),
    ))

    corrected = await repo.correct_outcome(CTX, stored.pick_id, PickOutcome.loss, now=now)
    assert corrected.outcome == "loss"
    assert corrected.resolved_at == now
    assert fake_db.picks.docs[0]["corrected_at"] == now

    reopened = await repo.correct_outcome(CTX, stored.pick_id, PickOutcome.pending, now=now)
    assert reopened.outcome == "pending"
    assert reopened.resolved_at is None

    other = EditionContext(club_id="club", edition_id="2024-25")
    assert await repo.correct_outcome(other, stored.pick_id, PickOutcome.win) is None
    assert await repo.correct_outcome(CTX, str(ObjectId()), PickOutcome.win) is None
