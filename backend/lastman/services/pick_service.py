"""Pick submission: one team per round, before the deadline, never reused."""

import logging
from datetime import datetime

from fastapi import HTTPException, status

from lastman.models.edition import EditionContext
from lastman.models.pick import Pick, PickOutcome
from lastman.services.deadline_service import evaluate_deadline
from lastman.services.edition_repository import (
    CompetitorRepository,
    EditionRepository,
    FixtureRepository,
    PickRepository,
)
from lastman.services.lives_service import replay_lives
from lastman.services.pick_ledger import is_locked_out, reconcile_picks
from lastman.utils import utcnow

logger = logging.getLogger("lastman.pick_service")

_editions = EditionRepository()
_competitors = CompetitorRepository()
_fixtures = FixtureRepository()
_picks = PickRepository()


async def make_pick(
    ctx: EditionContext,
    competitor_id: str,
    round_number: int,
    team: str,
    now: datetime | None = None,
) -> Pick:
    """Record a competitor's pick for a round.

    Validates:
    - Edition and competitor exist
    - Competitor still has lives
    - Round has fixtures and its deadline has not passed
    - Team plays in the round
    - Team was not picked in any earlier round

    Re-picking before the deadline appends a newer record, which supersedes
    the earlier one.
    """
    now = now or utcnow()

    edition = await _editions.get(ctx)
    if not edition:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Edition not found.")

    competitor = await _competitors.get(ctx, competitor_id)
    if not competitor:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Competitor not found.")

    history = await _picks.list_for_competitor(ctx, competitor_id)
    lives = replay_lives(history, edition.starting_lives, draw_costs_life=edition.draw_costs_life)
    if lives.eliminated:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "You have been eliminated.")

    fixtures = await _fixtures.list_round(ctx, round_number)
    if not fixtures:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "No fixtures found for this round.")

    deadline = evaluate_deadline(fixtures, now=now, round_number=round_number)
    if deadline.is_passed:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "The deadline for this round has passed.")

    team = team.strip()
    fixture = next((f for f in fixtures if team in f.teams), None)
    if fixture is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Team is not playing in this round.")

    if is_locked_out(history, team, round_number):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            f"'{team}' has already been used. Choose a different team.",
        )

    pick = Pick(
        competitor_id=competitor_id,
        round_number=round_number,
        team_picked=team,
        is_auto_assigned=False,
        outcome=PickOutcome.pending.value,
        recorded_at=now,
        fixture_id=fixture.fixture_id,
    )
    stored = await _picks.insert(ctx, pick)

    logger.info(
        "Pick recorded: club=%s edition=%s competitor=%s team=%s round=%d",
        ctx.club_id, ctx.edition_id, competitor_id, team, round_number,
    )
    return stored


async def get_competitor_picks(ctx: EditionContext, competitor_id: str) -> dict:
    """Active picks (one per round) and current lives for a competitor."""
    edition = await _editions.get(ctx)
    if not edition:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Edition not found.")
    competitor = await _competitors.get(ctx, competitor_id)
    if not competitor:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Competitor not found.")

    history = await _picks.list_for_competitor(ctx, competitor_id)
    lives = replay_lives(history, edition.starting_lives, draw_costs_life=edition.draw_costs_life)
    return {
        "competitor_id": competitor_id,
        "lives_remaining": lives.lives_remaining,
        "eliminated": lives.eliminated,
        "picks": reconcile_picks(history),
    }
