"""Operator endpoints for auto-picks, round resolution, outcome corrections and lives replay."""

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from lastman.config import settings
from lastman.models.edition import EditionContext
from lastman.models.pick import OutcomeCorrection
from lastman.services.edition_repository import EditionRepository
from lastman.workers import deadline_worker, pick_resolver

router = APIRouter(prefix="/api/admin/clubs/{club_id}/editions/{edition_id}", tags=["admin"])

_editions = EditionRepository()


async def verify_admin_key(x_admin_key: str = Header(...)):
    """Verify the operator API key."""
    if not settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key not configured on server.",
        )
    if not secrets.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin API key.",
        )


def _raise_if_missing(summary: dict) -> dict:
    if summary.get("status") == "edition_not_found":
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Edition not found.")
    return summary


@router.post("/rounds/{round_number}/autopicks", dependencies=[Depends(verify_admin_key)])
async def trigger_auto_picks(
    club_id: str,
    edition_id: str,
    round_number: int,
    force: bool = Query(False),
):
    """Assign auto-picks for a round; `force` ignores an open deadline."""
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    summary = await deadline_worker.assign_auto_picks(ctx, round_number, force=force)
    return _raise_if_missing(summary)


@router.post("/rounds/{round_number}/resolve", dependencies=[Depends(verify_admin_key)])
async def resolve_round(club_id: str, edition_id: str, round_number: int):
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    summary = await pick_resolver.resolve_round(ctx, round_number)
    return _raise_if_missing(summary)


@router.post("/lives/replay", dependencies=[Depends(verify_admin_key)])
async def replay_lives(club_id: str, edition_id: str):
    """Recompute and store lives for every competitor in the edition."""
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    edition = await _editions.get(ctx)
    if edition is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Edition not found.")
    rows = await pick_resolver.refresh_competitor_lives(ctx, edition)
    return {"competitors": rows}


@router.post("/picks/{pick_id}/outcome", dependencies=[Depends(verify_admin_key)])
async def correct_pick_outcome(club_id: str, edition_id: str, pick_id: str, body: OutcomeCorrection):
    """Overwrite a pick's outcome (e.g. after an amended score) and replay lives."""
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    summary = await pick_resolver.correct_pick_outcome(ctx, pick_id, body.outcome)
    if summary["status"] == "pick_not_found":
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Pick not found.")
    return _raise_if_missing(summary)
