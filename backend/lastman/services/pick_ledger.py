"""
backend/lastman/services/pick_ledger.py

Purpose:
    Pure helpers over a competitor's pick history: outcome normalization,
    duplicate reconciliation (latest recorded_at wins per round), lockout
    checks and per-round pick state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lastman.models.pick import Pick, PickOutcome, RoundPickState
from lastman.utils import as_utc

logger = logging.getLogger("lastman.pick_ledger")

_OUTCOME_ALIASES: dict[str, PickOutcome] = {
    "win": PickOutcome.win,
    "won": PickOutcome.win,
    "w": PickOutcome.win,
    "loss": PickOutcome.loss,
    "lost": PickOutcome.loss,
    "l": PickOutcome.loss,
    "draw": PickOutcome.draw,
    "d": PickOutcome.draw,
    "pending": PickOutcome.pending,
}


def normalize_outcome(raw: object) -> PickOutcome | None:
    """Map a stored outcome value onto PickOutcome.

    Missing/empty values mean pending. Unrecognized values return None so the
    caller can decide how to treat (and report) them.
    """
    if raw is None:
        return PickOutcome.pending
    if isinstance(raw, PickOutcome):
        return raw
    key = str(raw).strip().lower()
    if not key:
        return PickOutcome.pending
    return _OUTCOME_ALIASES.get(key)


def reconcile_picks(picks: Iterable[Pick]) -> list[Pick]:
    """Collapse duplicates to one active pick per round, ordered by round."""
    latest: dict[int, Pick] = {}
    for pick in picks:
        current = latest.get(pick.round_number)
        if current is None:
            latest[pick.round_number] = pick
            continue
        logger.debug(
            "Duplicate pick: competitor=%s round=%d (%s vs %s)",
            pick.competitor_id, pick.round_number, current.team_picked, pick.team_picked,
        )
        if as_utc(pick.recorded_at) >= as_utc(current.recorded_at):
            latest[pick.round_number] = pick
    return [latest[r] for r in sorted(latest)]


def group_by_competitor(picks: Iterable[Pick]) -> dict[str, list[Pick]]:
    grouped: dict[str, list[Pick]] = {}
    for pick in picks:
        grouped.setdefault(pick.competitor_id, []).append(pick)
    return grouped


def active_pick_for_round(picks: Iterable[Pick], round_number: int) -> Pick | None:
    for pick in reconcile_picks(picks):
        if pick.round_number == round_number:
            return pick
    return None


def previous_picks_map(picks: Iterable[Pick], before_round: int | None = None) -> dict[int, str]:
    """Active team per round, optionally limited to rounds before `before_round`."""
    return {
        pick.round_number: pick.team_picked
        for pick in reconcile_picks(picks)
        if before_round is None or pick.round_number < before_round
    }


def used_teams_before(picks: Iterable[Pick], round_number: int) -> set[str]:
    return set(previous_picks_map(picks, before_round=round_number).values())


def is_locked_out(picks: Iterable[Pick], team: str, round_number: int) -> bool:
    """True when `team` was the active pick of any strictly earlier round."""
    return team in used_teams_before(picks, round_number)


def round_pick_state(pick: Pick | None) -> RoundPickState:
    if pick is None:
        return RoundPickState.no_pick
    if normalize_outcome(pick.outcome) != PickOutcome.pending:
        return RoundPickState.resolved
    if pick.is_auto_assigned:
        return RoundPickState.auto_pick
    return RoundPickState.manual_pick
