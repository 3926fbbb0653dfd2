"""Fixture models: the matches a round's picks are played against."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Fixture(BaseModel):
    fixture_id: str
    round_number: int
    home_team: str
    away_team: str
    kickoff_at: Optional[datetime] = None
    date: Optional[str] = None  # YYYY-MM-DD, used when kickoff_at is missing
    kick_off_time: Optional[str] = None  # HH:MM[:SS]
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: Optional[str] = None  # scheduled | finished | completed | FT | ...

    @property
    def teams(self) -> tuple[str, str]:
        return self.home_team, self.away_team


class DeadlineInfo(BaseModel):
    """Closing time of a round's picking window."""
    round_number: Optional[int] = None
    deadline: Optional[datetime] = None
    is_passed: bool = False
    seconds_until_deadline: Optional[float] = None
    earliest_fixture_id: Optional[str] = None
