"""
backend/lastman/services/edition_repository.py

Purpose:
    Persistence access layer for editions, competitors, fixtures and picks.
    Every query is scoped by an explicit EditionContext. Transient Mongo
    connection failures are retried here with exponential backoff, so
    services and workers never deal with connection readiness.

Dependencies:
    - lastman.database
    - lastman.config
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, TypeVar

from bson import ObjectId
from pymongo.errors import ConnectionFailure

import lastman.database as _db
from lastman.config import settings
from lastman.models.edition import Competitor, Edition, EditionContext
from lastman.models.fixture import Fixture
from lastman.models.pick import Pick, PickOutcome
from lastman.models.standings import LivesResult
from lastman.services.result_service import extract_scores, extract_status
from lastman.utils import EPOCH, utcnow

logger = logging.getLogger("lastman.edition_repository")

T = TypeVar("T")

_PENDING_VALUES = [None, "", PickOutcome.pending.value]


async def with_retry(op_name: str, func: Callable[[], Awaitable[T]]) -> T:
    """Run a Mongo operation, retrying transient connection failures."""
    max_retries = settings.REPOSITORY_MAX_RETRIES
    for attempt in range(max_retries + 1):
        try:
            return await func()
        except ConnectionFailure as exc:
            if attempt >= max_retries:
                logger.error(
                    "[%s] All %d attempts failed: %s", op_name, max_retries + 1, exc,
                )
                raise
            delay = settings.REPOSITORY_RETRY_BASE_DELAY * (2 ** attempt)
            logger.warning(
                "[%s] Connection failure (attempt %d/%d), retrying in %.1fs: %s",
                op_name, attempt + 1, max_retries + 1, delay, exc,
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")


# ---------------------------------------------------------------------------
# Document mapping
# ---------------------------------------------------------------------------

def edition_from_doc(doc: dict) -> Edition:
    data: dict[str, Any] = {
        k: doc[k] for k in Edition.model_fields if k in doc and doc[k] is not None
    }
    # Older edition documents used lives_per_player / total_gameweeks.
    if "starting_lives" not in data and doc.get("lives_per_player") is not None:
        data["starting_lives"] = doc["lives_per_player"]
    if "total_rounds" not in data and doc.get("total_gameweeks") is not None:
        data["total_rounds"] = doc["total_gameweeks"]
    return Edition(**data)


def competitor_from_doc(doc: dict) -> Competitor:
    return Competitor(
        competitor_id=str(doc["competitor_id"]),
        display_name=doc.get("display_name") or "Unknown",
        lives_remaining=doc.get("lives_remaining"),
        eliminated=bool(doc.get("eliminated", False)),
    )


def _kickoff_value(doc: dict) -> datetime | None:
    """Stored kickoff_at as a datetime; ISO strings are parsed, anything else dropped."""
    value = doc.get("kickoff_at")
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    logger.warning(
        "Ignoring unparseable kickoff_at %r on fixture %s", value, doc.get("fixture_id") or doc.get("_id"),
    )
    return None


def _text_value(doc: dict, key: str) -> str | None:
    value = doc.get(key)
    if value is None or isinstance(value, str):
        return value
    logger.warning(
        "Ignoring non-text %s %r on fixture %s", key, value, doc.get("fixture_id") or doc.get("_id"),
    )
    return None


def fixture_from_doc(doc: dict) -> Fixture:
    home_score, away_score = extract_scores(doc)
    api = doc.get("api_data") or {}
    return Fixture(
        fixture_id=str(doc.get("fixture_id") or doc.get("_id")),
        round_number=int(doc["round_number"]),
        home_team=doc.get("home_team") or (api.get("home-team") or {}).get("name") or "",
        away_team=doc.get("away_team") or (api.get("away-team") or {}).get("name") or "",
        kickoff_at=_kickoff_value(doc),
        date=_text_value(doc, "date"),
        kick_off_time=_text_value(doc, "kick_off_time"),
        home_score=home_score,
        away_score=away_score,
        status=extract_status(doc),
    )


def _outcome_value(value) -> str | None:
    # Non-text outcomes reach normalize_outcome as text and are reported there.
    return value if value is None or isinstance(value, str) else str(value)


def pick_from_doc(doc: dict) -> Pick:
    return Pick(
        pick_id=str(doc["_id"]) if doc.get("_id") is not None else None,
        competitor_id=str(doc["competitor_id"]),
        round_number=int(doc["round_number"]),
        team_picked=doc["team_picked"],
        is_auto_assigned=bool(doc.get("is_auto_assigned", False)),
        outcome=_outcome_value(doc.get("outcome")),
        recorded_at=doc.get("recorded_at") or doc.get("created_at") or EPOCH,
        fixture_id=doc.get("fixture_id"),
        resolved_at=doc.get("resolved_at"),
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

class EditionRepository:
    async def get(self, ctx: EditionContext) -> Edition | None:
        doc = await with_retry(
            "editions.get", lambda: _db.db.editions.find_one(ctx.query()),
        )
        return edition_from_doc(doc) if doc else None

    async def list_active(self) -> list[Edition]:
        docs = await with_retry(
            "editions.list_active",
            lambda: _db.db.editions.find({"is_active": True}).to_list(length=None),
        )
        return [edition_from_doc(d) for d in docs]


class CompetitorRepository:
    async def list(self, ctx: EditionContext) -> list[Competitor]:
        docs = await with_retry(
            "competitors.list",
            lambda: _db.db.competitors.find(ctx.query()).to_list(length=None),
        )
        return [competitor_from_doc(d) for d in docs]

    async def get(self, ctx: EditionContext, competitor_id: str) -> Competitor | None:
        doc = await with_retry(
            "competitors.get",
            lambda: _db.db.competitors.find_one(ctx.query(competitor_id=competitor_id)),
        )
        return competitor_from_doc(doc) if doc else None

    async def update_lives(self, ctx: EditionContext, competitor_id: str, result: LivesResult) -> None:
        await with_retry(
            "competitors.update_lives",
            lambda: _db.db.competitors.update_one(
                ctx.query(competitor_id=competitor_id),
                {"$set": {
                    "lives_remaining": result.lives_remaining,
                    "eliminated": result.eliminated,
                    "updated_at": utcnow(),
                }},
            ),
        )


class FixtureRepository:
    async def list_round(self, ctx: EditionContext, round_number: int) -> list[Fixture]:
        docs = await with_retry(
            "fixtures.list_round",
            lambda: _db.db.fixtures.find(ctx.query(round_number=round_number)).to_list(length=None),
        )
        return [fixture_from_doc(d) for d in docs]

    async def list_all(self, ctx: EditionContext) -> list[Fixture]:
        docs = await with_retry(
            "fixtures.list_all",
            lambda: _db.db.fixtures.find(ctx.query()).to_list(length=None),
        )
        return [fixture_from_doc(d) for d in docs]

    async def round_numbers(self, ctx: EditionContext) -> list[int]:
        values = await with_retry(
            "fixtures.round_numbers",
            lambda: _db.db.fixtures.distinct("round_number", ctx.query()),
        )
        return sorted(int(v) for v in values if v is not None)


class PickRepository:
    async def list_for_competitor(self, ctx: EditionContext, competitor_id: str) -> list[Pick]:
        docs = await with_retry(
            "picks.list_for_competitor",
            lambda: _db.db.picks.find(ctx.query(competitor_id=competitor_id)).to_list(length=None),
        )
        return [pick_from_doc(d) for d in docs]

    async def list_for_round(self, ctx: EditionContext, round_number: int) -> list[Pick]:
        docs = await with_retry(
            "picks.list_for_round",
            lambda: _db.db.picks.find(ctx.query(round_number=round_number)).to_list(length=None),
        )
        return [pick_from_doc(d) for d in docs]

    async def list_all(self, ctx: EditionContext) -> list[Pick]:
        docs = await with_retry(
            "picks.list_all",
            lambda: _db.db.picks.find(ctx.query()).to_list(length=None),
        )
        return [pick_from_doc(d) for d in docs]

    async def pending_round_numbers(self, ctx: EditionContext) -> list[int]:
        values = await with_retry(
            "picks.pending_round_numbers",
            lambda: _db.db.picks.distinct(
                "round_number", ctx.query(outcome={"$in": _PENDING_VALUES}),
            ),
        )
        return sorted(int(v) for v in values if v is not None)

    async def insert(self, ctx: EditionContext, pick: Pick) -> Pick:
        doc = ctx.query(**pick.model_dump(exclude={"pick_id"}))
        doc["created_at"] = utcnow()
        result = await with_retry("picks.insert", lambda: _db.db.picks.insert_one(doc))
        return pick.model_copy(update={"pick_id": str(result.inserted_id)})

    async def set_outcome(
        self, ctx: EditionContext, pick: Pick, outcome: PickOutcome, now: datetime | None = None,
    ) -> bool:
        """Attach an outcome to a still-pending pick. Returns False if it was already resolved."""
        if not pick.pick_id:
            raise ValueError("Cannot resolve a pick that has not been stored")
        result = await with_retry(
            "picks.set_outcome",
            lambda: _db.db.picks.update_one(
                ctx.query(_id=ObjectId(pick.pick_id), outcome={"$in": _PENDING_VALUES}),
                {"$set": {"outcome": outcome.value, "resolved_at": now or utcnow()}},
            ),
        )
        return bool(result.modified_count)

    async def get(self, ctx: EditionContext, pick_id: str) -> Pick | None:
        doc = await with_retry(
            "picks.get", lambda: _db.db.picks.find_one(ctx.query(_id=ObjectId(pick_id))),
        )
        return pick_from_doc(doc) if doc else None

    async def correct_outcome(
        self, ctx: EditionContext, pick_id: str, outcome: PickOutcome, now: datetime | None = None,
    ) -> Pick | None:
        """Overwrite a stored outcome, e.g. after an amended score. None if the pick is unknown."""
        now = now or utcnow()
        update = {
            "outcome": outcome.value,
            "resolved_at": None if outcome == PickOutcome.pending else now,
            "corrected_at": now,
        }
        result = await with_retry(
            "picks.correct_outcome",
            lambda: _db.db.picks.update_one(ctx.query(_id=ObjectId(pick_id)), {"$set": update}),
        )
        if not result.matched_count:
            return None
        return await self.get(ctx, pick_id)
