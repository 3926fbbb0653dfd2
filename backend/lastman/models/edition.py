"""Edition models: one run of the competition inside a club."""

from typing import Optional

from pydantic import BaseModel, Field

from lastman.config import settings


class EditionContext(BaseModel):
    """Explicit (club, edition) scope passed into every service call."""
    model_config = {"frozen": True}

    club_id: str
    edition_id: str

    def query(self, **extra) -> dict:
        """Mongo filter scoped to this edition."""
        return {"club_id": self.club_id, "edition_id": self.edition_id, **extra}


class Edition(BaseModel):
    club_id: str
    edition_id: str
    name: Optional[str] = None
    starting_lives: int = Field(default_factory=lambda: settings.DEFAULT_STARTING_LIVES, ge=0)
    draw_costs_life: bool = Field(default_factory=lambda: settings.DRAW_COSTS_LIFE)
    strict_lockout: bool = Field(default_factory=lambda: settings.AUTOPICK_STRICT_LOCKOUT)
    current_round: int = Field(default=1, ge=1)
    total_rounds: int = Field(default_factory=lambda: settings.DEFAULT_TOTAL_ROUNDS, ge=1)
    is_active: bool = True
    registration_open: bool = True

    @property
    def context(self) -> EditionContext:
        return EditionContext(club_id=self.club_id, edition_id=self.edition_id)


class Competitor(BaseModel):
    """A registered participant; lives fields cache the last lives replay."""
    competitor_id: str
    display_name: str = "Unknown"
    lives_remaining: Optional[int] = None
    eliminated: bool = False
