"""Assign auto-picks once a round's deadline has passed."""

import logging
from datetime import datetime

from lastman.models.edition import EditionContext
from lastman.services.autopick_service import (
    NoTeamsAvailable,
    available_teams_from_fixtures,
    build_auto_pick,
    choose_auto_pick,
)
from lastman.services.deadline_service import evaluate_deadline
from lastman.services.edition_repository import (
    CompetitorRepository,
    EditionRepository,
    FixtureRepository,
    PickRepository,
)
from lastman.services.lives_service import replay_lives
from lastman.services.pick_ledger import (
    active_pick_for_round,
    group_by_competitor,
    previous_picks_map,
)
from lastman.utils import utcnow
from lastman.workers._state import get_marker, set_marker

logger = logging.getLogger("lastman.deadline_worker")

_editions = EditionRepository()
_competitors = CompetitorRepository()
_fixtures = FixtureRepository()
_picks = PickRepository()


async def assign_auto_picks(
    ctx: EditionContext,
    round_number: int,
    now: datetime | None = None,
    *,
    force: bool = False,
    rng=None,
) -> dict:
    """Give every live competitor without a pick for the round an auto-pick.

    Does nothing while the deadline is still open unless `force` is set.
    Competitors for whom no team can be chosen are reported under `failed`.
    """
    now = now or utcnow()
    summary = {
        "round_number": round_number,
        "status": "processed",
        "deadline": None,
        "assigned": [],
        "skipped": [],
        "failed": [],
    }

    edition = await _editions.get(ctx)
    if edition is None:
        logger.error("Auto-pick: edition not found club=%s edition=%s", ctx.club_id, ctx.edition_id)
        summary["status"] = "edition_not_found"
        return summary

    fixtures = await _fixtures.list_round(ctx, round_number)
    deadline = evaluate_deadline(fixtures, now=now, round_number=round_number)
    summary["deadline"] = deadline.deadline
    if not deadline.is_passed and not force:
        summary["status"] = "deadline_open"
        return summary

    available = available_teams_from_fixtures(fixtures)
    fixture_by_team = {team: f.fixture_id for f in fixtures for team in f.teams}
    picks_by_competitor = group_by_competitor(await _picks.list_all(ctx))

    for competitor in await _competitors.list(ctx):
        competitor_id = competitor.competitor_id
        history = picks_by_competitor.get(competitor_id, [])

        if active_pick_for_round(history, round_number) is not None:
            summary["skipped"].append(competitor_id)
            continue
        lives = replay_lives(history, edition.starting_lives, draw_costs_life=edition.draw_costs_life)
        if lives.eliminated:
            summary["skipped"].append(competitor_id)
            continue

        try:
            team = choose_auto_pick(
                round_number,
                previous_picks_map(history, before_round=round_number),
                available,
                rng=rng,
                strict_lockout=edition.strict_lockout,
                competitor_id=competitor_id,
            )
        except NoTeamsAvailable as exc:
            logger.error(
                "Auto-pick failed: club=%s edition=%s %s",
                ctx.club_id, ctx.edition_id, exc,
            )
            summary["failed"].append({"competitor_id": competitor_id, "reason": str(exc)})
            continue

        pick = build_auto_pick(competitor_id, round_number, team, now=now)
        pick.fixture_id = fixture_by_team.get(team)
        await _picks.insert(ctx, pick)
        summary["assigned"].append({"competitor_id": competitor_id, "team": team})
        logger.info(
            "Auto-pick assigned: club=%s edition=%s competitor=%s team=%s round=%d",
            ctx.club_id, ctx.edition_id, competitor_id, team, round_number,
        )

    if summary["assigned"]:
        logger.info("%d auto-picks assigned for round %d", len(summary["assigned"]), round_number)
    return summary


def _state_key(ctx: EditionContext, round_number: int) -> str:
    return f"autopicks:{ctx.club_id}:{ctx.edition_id}:{round_number}"


async def check_deadlines(now: datetime | None = None) -> int:
    """Scheduled job: process every passed, not yet handled round of active editions.

    A round is only marked handled when no competitor failed, so failures are
    re-reported on the next run until the fixture data is fixed.
    """
    now = now or utcnow()
    processed = 0

    for edition in await _editions.list_active():
        ctx = edition.context
        try:
            for round_number in await _fixtures.round_numbers(ctx):
                key = _state_key(ctx, round_number)
                if await get_marker(key):
                    continue
                summary = await assign_auto_picks(ctx, round_number, now=now)
                if summary["status"] != "processed":
                    continue
                processed += 1
                if not summary["failed"]:
                    await set_marker(key, assigned=len(summary["assigned"]))
        except Exception:
            logger.exception(
                "Deadline check failed: club=%s edition=%s", ctx.club_id, ctx.edition_id,
            )

    if processed:
        logger.info("Deadline check processed %d rounds", processed)
    return processed
