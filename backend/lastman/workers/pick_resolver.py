"""Resolve pending picks against finished fixtures and refresh lives."""

import logging
from datetime import datetime

from lastman.models.edition import Edition, EditionContext
from lastman.models.pick import PickOutcome
from lastman.services.edition_repository import (
    CompetitorRepository,
    EditionRepository,
    FixtureRepository,
    PickRepository,
)
from lastman.services.lives_service import replay_lives
from lastman.services.pick_ledger import group_by_competitor, normalize_outcome
from lastman.services.result_service import team_outcome
from lastman.utils import utcnow
from lastman.workers._state import set_marker

logger = logging.getLogger("lastman.pick_resolver")

_editions = EditionRepository()
_competitors = CompetitorRepository()
_fixtures = FixtureRepository()
_picks = PickRepository()


async def refresh_competitor_lives(ctx: EditionContext, edition: Edition | None = None) -> list[dict]:
    """Replay every competitor's history and store the resulting lives."""
    edition = edition or await _editions.get(ctx)
    if edition is None:
        return []

    picks_by_competitor = group_by_competitor(await _picks.list_all(ctx))
    rows = []
    for competitor in await _competitors.list(ctx):
        result = replay_lives(
            picks_by_competitor.get(competitor.competitor_id, []),
            edition.starting_lives,
            draw_costs_life=edition.draw_costs_life,
        )
        if result.eliminated and not competitor.eliminated:
            logger.info(
                "Competitor eliminated: club=%s edition=%s competitor=%s",
                ctx.club_id, ctx.edition_id, competitor.competitor_id,
            )
        await _competitors.update_lives(ctx, competitor.competitor_id, result)
        rows.append({
            "competitor_id": competitor.competitor_id,
            "lives_remaining": result.lives_remaining,
            "eliminated": result.eliminated,
        })
    return rows


async def resolve_round(ctx: EditionContext, round_number: int, now: datetime | None = None) -> dict:
    """Attach outcomes to pending picks of a round whose fixture has finished.

    Picks that already carry an outcome are never overwritten.
    """
    now = now or utcnow()
    edition = await _editions.get(ctx)
    if edition is None:
        return {"round_number": round_number, "status": "edition_not_found", "resolved": 0, "pending": 0}

    fixtures = await _fixtures.list_round(ctx, round_number)
    fixture_by_id = {f.fixture_id: f for f in fixtures}
    fixture_by_team = {team: f for f in fixtures for team in f.teams}

    resolved = 0
    pending = 0
    for pick in await _picks.list_for_round(ctx, round_number):
        if normalize_outcome(pick.outcome) != PickOutcome.pending:
            continue

        fixture = fixture_by_id.get(pick.fixture_id or "")
        if fixture is None or pick.team_picked not in fixture.teams:
            fixture = fixture_by_team.get(pick.team_picked)
        if fixture is None:
            logger.error(
                "Picked team not in round: club=%s edition=%s competitor=%s team=%s round=%d",
                ctx.club_id, ctx.edition_id, pick.competitor_id, pick.team_picked, round_number,
            )
            pending += 1
            continue

        outcome = team_outcome(fixture, pick.team_picked)
        if outcome is None:
            pending += 1
            continue

        if await _picks.set_outcome(ctx, pick, outcome, now=now):
            resolved += 1
            logger.info(
                "Pick resolved: competitor=%s team=%s round=%d outcome=%s",
                pick.competitor_id, pick.team_picked, round_number, outcome.value,
            )

    if resolved:
        await refresh_competitor_lives(ctx, edition)
    return {"round_number": round_number, "status": "processed", "resolved": resolved, "pending": pending}


async def correct_pick_outcome(
    ctx: EditionContext, pick_id: str, outcome: PickOutcome, now: datetime | None = None,
) -> dict:
    """Overwrite one pick's outcome and refresh stored lives for the edition."""
    edition = await _editions.get(ctx)
    if edition is None:
        return {"status": "edition_not_found"}

    previous = await _picks.get(ctx, pick_id)
    if previous is None:
        return {"status": "pick_not_found"}

    pick = await _picks.correct_outcome(ctx, pick_id, outcome, now=now)
    logger.warning(
        "Pick outcome corrected: club=%s edition=%s competitor=%s round=%d %s -> %s",
        ctx.club_id, ctx.edition_id, previous.competitor_id, previous.round_number,
        previous.outcome, outcome.value,
    )
    rows = await refresh_competitor_lives(ctx, edition)
    return {
        "status": "corrected",
        "pick_id": pick_id,
        "previous_outcome": previous.outcome,
        "outcome": pick.outcome if pick else outcome.value,
        "competitor": next((r for r in rows if r["competitor_id"] == previous.competitor_id), None),
    }


async def resolve_pending_picks() -> int:
    """Scheduled job: resolve every round with pending picks in active editions."""
    total = 0
    for edition in await _editions.list_active():
        ctx = edition.context
        try:
            for round_number in await _picks.pending_round_numbers(ctx):
                summary = await resolve_round(ctx, round_number)
                total += summary["resolved"]
        except Exception:
            logger.exception(
                "Pick resolution failed: club=%s edition=%s", ctx.club_id, ctx.edition_id,
            )

    if total:
        logger.info("Resolved %d picks", total)
    await set_marker("pick_resolver", resolved=total)
    return total
