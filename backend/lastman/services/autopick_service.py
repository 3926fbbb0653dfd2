"""
backend/lastman/services/autopick_service.py

Purpose:
    Fallback team selection for competitors who miss a round's deadline.
    Round 1, or a competitor with no earlier pick at all, draws at random
    from the sorted team list. Later rounds rotate to the team alphabetically
    after the previous round's pick, wrapping at the end; a missed previous
    round falls back to the first team.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping

from lastman.models.fixture import Fixture
from lastman.models.pick import Pick, PickOutcome
from lastman.utils import utcnow

logger = logging.getLogger("lastman.autopick_service")


class NoTeamsAvailable(LookupError):
    """Raised when an auto-pick is requested but the round offers no team."""

    def __init__(self, round_number: int, competitor_id: str | None = None):
        self.round_number = round_number
        self.competitor_id = competitor_id
        who = f" for competitor {competitor_id}" if competitor_id else ""
        super().__init__(f"No teams available for auto-pick in round {round_number}{who}")


def available_teams_from_fixtures(fixtures: Iterable[Fixture]) -> list[str]:
    """Flatten home/away teams of a round into a sorted, de-duplicated list."""
    teams: set[str] = set()
    for fixture in fixtures:
        for team in fixture.teams:
            if team:
                teams.add(team)
    return sorted(teams)


def choose_auto_pick(
    round_number: int,
    previous_picks: Mapping[int, str],
    available_teams: Iterable[str],
    *,
    rng=None,
    strict_lockout: bool = False,
    competitor_id: str | None = None,
) -> str:
    """Pick the fallback team for `round_number`.

    `rng` only needs a `randrange(n)` method; the `random` module is used by
    default. With `strict_lockout`, every team used in an earlier round is
    removed before the rotation is applied.
    """
    teams = sorted({t for t in available_teams if t})
    if strict_lockout:
        used = {team for rnd, team in previous_picks.items() if rnd < round_number}
        teams = [t for t in teams if t not in used]
        logger.debug(
            "Strict lockout: round=%d excluded=%s remaining=%d",
            round_number, sorted(used), len(teams),
        )
    if not teams:
        raise NoTeamsAvailable(round_number, competitor_id)

    earlier = [rnd for rnd in previous_picks if rnd < round_number]
    if round_number == 1 or not earlier:
        rng = rng or random
        return teams[rng.randrange(len(teams))]

    # Previous round missed: start from the first team.
    previous = previous_picks.get(round_number - 1)
    if previous is None:
        return teams[0]

    try:
        index = teams.index(previous)
    except ValueError:
        return teams[0]
    if index == len(teams) - 1:
        return teams[0]
    return teams[index + 1]


def build_auto_pick(competitor_id: str, round_number: int, team: str, now=None) -> Pick:
    return Pick(
        competitor_id=competitor_id,
        round_number=round_number,
        team_picked=team,
        is_auto_assigned=True,
        outcome=PickOutcome.pending.value,
        recorded_at=now or utcnow(),
    )
