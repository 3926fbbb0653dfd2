"""Fixture results: scores, finished detection and per-team outcome."""

from __future__ import annotations

from lastman.models.fixture import Fixture
from lastman.models.pick import PickOutcome

_FINISHED_STATUSES = {"finished", "completed", "ft", "full time"}


def _score(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract_scores(doc: dict) -> tuple[int | None, int | None]:
    """Read (home, away) scores from a fixture document.

    Top-level `home_score`/`away_score` win; missing values fall back to the
    provider payload in `api_data` (`home-team.score` or `homeScore`).
    """
    home = _score(doc.get("home_score"))
    away = _score(doc.get("away_score"))
    api = doc.get("api_data") or {}
    if home is None:
        home = _score((api.get("home-team") or {}).get("score"))
        if home is None:
            home = _score(api.get("homeScore"))
    if away is None:
        away = _score((api.get("away-team") or {}).get("score"))
        if away is None:
            away = _score(api.get("awayScore"))
    return home, away


def extract_status(doc: dict) -> str | None:
    """Status may be a plain string or a provider dict with full/short labels."""
    status = doc.get("status")
    if isinstance(status, dict):
        return status.get("short") or status.get("full")
    if status is not None and not isinstance(status, str):
        return str(status)
    return status


def is_fixture_finished(status: str | None) -> bool:
    return bool(status) and status.strip().lower() in _FINISHED_STATUSES


def team_outcome(fixture: Fixture, team: str) -> PickOutcome | None:
    """Outcome for `team` in a finished, scored fixture; None otherwise."""
    if not is_fixture_finished(fixture.status):
        return None
    if fixture.home_score is None or fixture.away_score is None:
        return None

    if team == fixture.home_team:
        own, other = fixture.home_score, fixture.away_score
    elif team == fixture.away_team:
        own, other = fixture.away_score, fixture.home_score
    else:
        return None

    if own > other:
        return PickOutcome.win
    if own < other:
        return PickOutcome.loss
    return PickOutcome.draw
