"""Replay lives for every competitor of an edition and store the result.

Usage:
    python -m tools.replay_lives --club my-club --edition 2025-26
    python -m tools.replay_lives --club my-club --edition 2025-26 --dry-run
"""

import argparse
import asyncio
import sys

sys.path.insert(0, "backend")

from lastman.models.edition import EditionContext
from lastman.services.edition_repository import (
    CompetitorRepository,
    EditionRepository,
    PickRepository,
)
from lastman.services.lives_service import card_status, replay_lives
from lastman.services.pick_ledger import group_by_competitor


async def run(club_id: str, edition_id: str, dry_run: bool, verbose: bool) -> int:
    import lastman.database as _db

    await _db.connect_db()
    try:
        ctx = EditionContext(club_id=club_id, edition_id=edition_id)
        edition = await EditionRepository().get(ctx)
        if edition is None:
            print(f"edition not found: club={club_id} edition={edition_id}")
            return 1

        competitors = CompetitorRepository()
        picks_by_competitor = group_by_competitor(await PickRepository().list_all(ctx))
        changed = 0

        for competitor in await competitors.list(ctx):
            result = replay_lives(
                picks_by_competitor.get(competitor.competitor_id, []),
                edition.starting_lives,
                draw_costs_life=edition.draw_costs_life,
            )
            differs = (
                competitor.lives_remaining != result.lives_remaining
                or competitor.eliminated != result.eliminated
            )
            if differs:
                changed += 1
            if verbose or differs:
                print(
                    f"{'[dry-run] ' if dry_run else ''}{competitor.display_name}: "
                    f"{competitor.lives_remaining} -> {result.lives_remaining} "
                    f"({card_status(result.lives_remaining)})"
                )
            if not dry_run and differs:
                await competitors.update_lives(ctx, competitor.competitor_id, result)

        print(
            f"{'planned' if dry_run else 'completed'} lives updates: {changed} "
            f"(club={club_id} edition={edition_id})"
        )
        return 0
    finally:
        await _db.close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay competitor lives from pick history.")
    parser.add_argument("--club", required=True, help="Club id.")
    parser.add_argument("--edition", required=True, help="Edition id.")
    parser.add_argument("--dry-run", action="store_true", help="Preview without DB writes.")
    parser.add_argument("--verbose", action="store_true", help="Print every competitor.")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(run(args.club, args.edition, args.dry_run, args.verbose)))


if __name__ == "__main__":
    main()
