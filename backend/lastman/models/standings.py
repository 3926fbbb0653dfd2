"""Lives and standings models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LivesResult(BaseModel):
    lives_remaining: int
    eliminated: bool
    losses: int = 0


class StandingEntry(BaseModel):
    """Single row in an edition's standings."""
    competitor_id: str
    display_name: str
    lives_remaining: int
    eliminated: bool
    card_status: str  # no-cards | yellow-card | red-card
    last_pick: Optional[str] = None
    last_pick_round: Optional[int] = None
    last_pick_at: Optional[datetime] = None
    current_round_pick: Optional[str] = None
