"""Edition standings, with lives replayed for every competitor on each read."""

from fastapi import HTTPException, status

from lastman.models.edition import EditionContext
from lastman.models.standings import StandingEntry
from lastman.services.edition_repository import (
    CompetitorRepository,
    EditionRepository,
    PickRepository,
)
from lastman.services.lives_service import card_status, replay_lives
from lastman.services.pick_ledger import group_by_competitor, reconcile_picks
from lastman.utils import END_OF_TIME, as_utc

_editions = EditionRepository()
_competitors = CompetitorRepository()
_picks = PickRepository()


async def get_standings(ctx: EditionContext) -> list[StandingEntry]:
    """Most lives first, then earliest last pick, then name."""
    edition = await _editions.get(ctx)
    if not edition:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Edition not found.")

    competitors = await _competitors.list(ctx)
    picks_by_competitor = group_by_competitor(await _picks.list_all(ctx))

    rows: list[StandingEntry] = []
    for competitor in competitors:
        picks = reconcile_picks(picks_by_competitor.get(competitor.competitor_id, []))
        lives = replay_lives(picks, edition.starting_lives, draw_costs_life=edition.draw_costs_life)
        last = picks[-1] if picks else None
        current = next((p for p in picks if p.round_number == edition.current_round), None)
        rows.append(StandingEntry(
            competitor_id=competitor.competitor_id,
            display_name=competitor.display_name,
            lives_remaining=lives.lives_remaining,
            eliminated=lives.eliminated,
            card_status=card_status(lives.lives_remaining),
            last_pick=last.team_picked if last else None,
            last_pick_round=last.round_number if last else None,
            last_pick_at=last.recorded_at if last else None,
            current_round_pick=current.team_picked if current else None,
        ))

    rows.sort(key=lambda r: (
        -r.lives_remaining,
        as_utc(r.last_pick_at) if r.last_pick_at else END_OF_TIME,
        r.display_name.lower(),
    ))
    return rows
