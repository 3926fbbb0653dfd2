from lastman.models.fixture import Fixture
from lastman.models.pick import PickOutcome
from lastman.services.result_service import (
    extract_scores,
    extract_status,
    is_fixture_finished,
    team_outcome,
)


def _finished(home_score, away_score, status="finished") -> Fixture:
    return Fixture(
        fixture_id="f1",
        round_number=1,
        home_team="Arsenal",
        away_team="Chelsea",
        home_score=home_score,
        away_score=away_score,
        status=status,
    )


def test_extract_scores_prefers_top_level():
    assert extract_scores({"home_score": 2, "away_score": "1"}) == (2, 1)


def test_extract_scores_falls_back_to_provider_payload():
    doc = {"api_data": {"home-team": {"score": "3"}, "away-team": {"score": 0}}}
    assert extract_scores(doc) == (3, 0)
    assert extract_scores({"api_data": {"homeScore": 1, "awayScore": 1}}) == (1, 1)


def test_extract_scores_missing():
    assert extract_scores({"home_score": "", "away_score": "n/a"}) == (None, None)


def test_extract_status():
    assert extract_status({"status": "FT"}) == "FT"
    assert extract_status({"status": {"full": "Full Time", "short": "FT"}}) == "FT"
    assert extract_status({"status": {"full": "Full Time"}}) == "Full Time"
    assert extract_status({}) is None


def test_is_fixture_finished():
    for status in ("finished", "Completed", "FT", "full time"):
        assert is_fixture_finished(status)
    for status in (None, "", "scheduled", "HT", "postponed"):
        assert not is_fixture_finished(status)


def test_team_outcome():
    assert team_outcome(_finished(2, 1), "Arsenal") is PickOutcome.win
    assert team_outcome(_finished(2, 1), "Chelsea") is PickOutcome.loss
    assert team_outcome(_finished(1, 1), "Chelsea") is PickOutcome.draw


def test_team_outcome_unresolvable():
    assert team_outcome(_finished(2, 1, status="scheduled"), "Arsenal") is None
    assert team_outcome(_finished(None, 1), "Arsenal") is None
    assert team_outcome(_finished(2, 1), "Everton") is None
