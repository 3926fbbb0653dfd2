"""Standings endpoint."""

from fastapi import APIRouter

from lastman.models.edition import EditionContext
from lastman.services import standings_service

router = APIRouter(prefix="/api/clubs/{club_id}/editions/{edition_id}", tags=["standings"])


@router.get("/standings")
async def get_standings(club_id: str, edition_id: str):
    ctx = EditionContext(club_id=club_id, edition_id=edition_id)
    rows = await standings_service.get_standings(ctx)
    return [row.model_dump() for row in rows]
