"""Competitor endpoints for picks, round deadlines and available teams."""

from datetime import timedelta

from fastapi import APIRouter, HTTPException, status

from lastman.models.edition import EditionContext
from lastman.models.pick import Pick, PickCreate, PickResponse
from lastman.services import pick_service
from lastman.services.autopick_service import available_teams_from_fixtures
from lastman.services.deadline_service import evaluate_deadline, format_time_until_deadline
from lastman.services.edition_repository import FixtureRepository
from lastman.services.pick_ledger import normalize_outcome

router = APIRouter(prefix="/api/clubs/{club_id}/editions/{edition_id}", tags=["picks"])

_fixtures = FixtureRepository()


@router.post("/picks", status_code=status.HTTP_201_CREATED)
async def make_pick(club_id: str, edition_id: str, body: PickCreate):
    """Submit (or replace, before the deadline) a pick for a round."""
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    pick = await pick_service.make_pick(ctx, body.competitor_id, body.round_number, body.team)
    return _pick_response(pick)


@router.get("/competitors/{competitor_id}/picks")
async def get_competitor_picks(club_id: str, edition_id: str, competitor_id: str):
    """Active pick per round plus current lives."""
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    data = await pick_service.get_competitor_picks(ctx, competitor_id)
    data["picks"] = [_pick_response(p) for p in data["picks"]]
    return data


@router.get("/rounds/{round_number}/deadline")
async def get_deadline(club_id: str, edition_id: str, round_number: int):
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    fixtures = await _fixtures.list_round(ctx, round_number)
    if not fixtures:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "No fixtures found for this round.")

    info = evaluate_deadline(fixtures, round_number=round_number)
    payload = info.model_dump()
    payload["time_remaining"] = None
    if info.seconds_until_deadline is not None:
        payload["time_remaining"] = format_time_until_deadline(
            timedelta(seconds=info.seconds_until_deadline)
        )
    return payload


@router.get("/rounds/{round_number}/teams")
async def get_available_teams(club_id: str, edition_id: str, round_number: int):
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    fixtures = await _fixtures.list_round(ctx, round_number)
    return {"round_number": round_number, "teams": available_teams_from_fixtures(fixtures)}


def _pick_response(pick: Pick) -> dict:
    outcome = normalize_outcome(pick.outcome)
    return PickResponse(
        competitor_id=pick.competitor_id,
        round_number=pick.round_number,
        team_picked=pick.team_picked,
        is_auto_assigned=pick.is_auto_assigned,
        outcome=outcome.value if outcome else str(pick.outcome),
        recorded_at=pick.recorded_at,
    ).model_dump()
