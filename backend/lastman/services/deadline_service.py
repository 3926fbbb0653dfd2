"""
backend/lastman/services/deadline_service.py

Purpose:
    Deadline evaluation for a round: the earliest parseable kickoff closes the
    picking window. Rounds without any parseable kickoff have no enforceable
    deadline and are reported as still open.

Dependencies:
    - lastman.config (FIXTURE_TIMEZONE)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from lastman.config import settings
from lastman.models.fixture import DeadlineInfo, Fixture
from lastman.utils import as_utc, utcnow

logger = logging.getLogger("lastman.deadline_service")


def parse_kickoff(fixture: Fixture, tz_name: str | None = None) -> datetime | None:
    """Return the fixture kickoff as an aware UTC datetime, or None if unparseable.

    `kickoff_at` wins when present (naive values are UTC, as stored by Mongo).
    Otherwise `date` + `kick_off_time` are combined and, when they carry no
    offset, read in the configured fixture timezone.
    """
    if fixture.kickoff_at is not None:
        return as_utc(fixture.kickoff_at)

    date_part = (fixture.date or "").strip()
    time_part = (fixture.kick_off_time or "").strip()
    if not date_part or not time_part:
        return None
    try:
        parsed = datetime.fromisoformat(f"{date_part}T{time_part}")
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(tz_name or settings.FIXTURE_TIMEZONE))
    return parsed.astimezone(timezone.utc)


def evaluate_deadline(
    fixtures: Iterable[Fixture],
    now: datetime | None = None,
    round_number: int | None = None,
) -> DeadlineInfo:
    """Compute the round deadline and whether it has passed at `now`."""
    now = as_utc(now) if now else utcnow()
    earliest: tuple[datetime, Fixture] | None = None

    for fixture in fixtures:
        kickoff = parse_kickoff(fixture)
        if kickoff is None:
            logger.warning(
                "Invalid fixture date/time: fixture=%s %s vs %s date=%r time=%r",
                fixture.fixture_id, fixture.home_team, fixture.away_team,
                fixture.date, fixture.kick_off_time,
            )
            continue
        if earliest is None or kickoff < earliest[0]:
            earliest = (kickoff, fixture)

    if earliest is None:
        if round_number is not None:
            logger.warning("Round %d has no enforceable deadline", round_number)
        return DeadlineInfo(round_number=round_number)

    deadline, fixture = earliest
    return DeadlineInfo(
        round_number=round_number,
        deadline=deadline,
        is_passed=now >= deadline,
        seconds_until_deadline=(deadline - now).total_seconds(),
        earliest_fixture_id=fixture.fixture_id,
    )


def format_time_until_deadline(remaining: timedelta) -> str:
    seconds_total = int(remaining.total_seconds())
    if seconds_total <= 0:
        return "Deadline passed"

    hours, rest = divmod(seconds_total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 24:
        return f"{hours // 24} days remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    if minutes > 0:
        return f"{minutes}m {seconds}s remaining"
    return f"{seconds}s remaining"
