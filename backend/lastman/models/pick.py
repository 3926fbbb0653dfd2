"""Pick models: one competitor's team choice for one round."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PickOutcome(str, Enum):
    win = "win"
    loss = "loss"
    draw = "draw"
    pending = "pending"


class RoundPickState(str, Enum):
    no_pick = "no_pick"
    manual_pick = "manual_pick"
    auto_pick = "auto_pick"
    resolved = "resolved"


class Pick(BaseModel):
    pick_id: Optional[str] = None  # str(_id) once stored
    competitor_id: str
    round_number: int = Field(ge=1)
    team_picked: str
    is_auto_assigned: bool = False
    # Raw stored value; older writers used L / Loss / W / D etc.
    outcome: Optional[str] = PickOutcome.pending.value
    recorded_at: datetime
    fixture_id: Optional[str] = None
    resolved_at: Optional[datetime] = None


class PickCreate(BaseModel):
    """Request body for submitting a pick."""
    competitor_id: str
    round_number: int = Field(ge=1)
    team: str


class PickResponse(BaseModel):
    competitor_id: str
    round_number: int
    team_picked: str
    is_auto_assigned: bool
    outcome: str
    recorded_at: datetime


class OutcomeCorrection(BaseModel):
    """Operator request body for overwriting a pick's outcome."""
    outcome: PickOutcome
