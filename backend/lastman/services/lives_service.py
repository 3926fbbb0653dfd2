"""Lives replay: recompute a competitor's remaining lives from pick history."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lastman.models.pick import Pick, PickOutcome
from lastman.models.standings import LivesResult
from lastman.services.pick_ledger import normalize_outcome, reconcile_picks

logger = logging.getLogger("lastman.lives_service")


def replay_lives(
    picks: Iterable[Pick],
    starting_lives: int,
    *,
    draw_costs_life: bool = False,
) -> LivesResult:
    """Replay a pick history in round order and return the lives left.

    Duplicate picks for a round are reconciled first (latest recorded wins).
    A loss costs one life, a draw costs one only when `draw_costs_life` is
    set. Pending and unrecognized outcomes are neutral. The result is clamped
    at zero, so the same history always yields the same answer.
    """
    if starting_lives < 0:
        raise ValueError(f"starting_lives must be >= 0, got {starting_lives}")

    lives = starting_lives
    losses = 0
    for pick in reconcile_picks(picks):
        outcome = normalize_outcome(pick.outcome)
        if outcome is None:
            logger.warning(
                "Unknown pick outcome %r: competitor=%s round=%d, treating as neutral",
                pick.outcome, pick.competitor_id, pick.round_number,
            )
            continue
        if outcome == PickOutcome.loss or (outcome == PickOutcome.draw and draw_costs_life):
            lives -= 1
            losses += 1

    lives = max(0, lives)
    return LivesResult(lives_remaining=lives, eliminated=lives == 0, losses=losses)


def card_status(lives: int) -> str:
    """Standings card: red when eliminated, yellow on the last life."""
    if lives <= 0:
        return "red-card"
    if lives == 1:
        return "yellow-card"
    return "no-cards"
