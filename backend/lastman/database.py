"""
backend/lastman/database.py

Purpose:
    MongoDB connection bootstrap and index management for edition, competitor,
    fixture and pick collections.

Dependencies:
    - motor.motor_asyncio
    - lastman.config
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from lastman.config import settings

client: AsyncIOMotorClient = None
db: AsyncIOMotorDatabase = None

logger = logging.getLogger("lastman.database")


async def connect_db() -> None:
    global client, db
    client = AsyncIOMotorClient(
        settings.MONGO_URI,
        serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        tz_aware=True,
    )
    db = client[settings.MONGO_DB]
    await _ensure_indexes()
    logger.info("Connected to MongoDB database %s", settings.MONGO_DB)


async def close_db() -> None:
    global client
    if client:
        client.close()
        client = None


async def ping() -> bool:
    if db is None:
        return False
    try:
        result = await db.command("ping")
    except PyMongoError as exc:
        logger.warning("MongoDB ping failed: %s", exc)
        return False
    return result.get("ok") == 1.0


async def _ensure_indexes() -> None:
    """Create indexes on startup. Idempotent."""

    # ---- Editions ----

    await db.editions.create_index([("club_id", 1), ("edition_id", 1)], unique=True)
    await db.editions.create_index("is_active")

    # ---- Competitors ----

    await db.competitors.create_index(
        [("club_id", 1), ("edition_id", 1), ("competitor_id", 1)], unique=True
    )
    await db.competitors.create_index([("club_id", 1), ("edition_id", 1), ("eliminated", 1)])

    # ---- Fixtures ----

    await db.fixtures.create_index(
        [("club_id", 1), ("edition_id", 1), ("fixture_id", 1)], unique=True
    )
    await db.fixtures.create_index([("club_id", 1), ("edition_id", 1), ("round_number", 1)])

    # ---- Picks ----
    # No unique (competitor, round) index: retried writes may duplicate, and
    # readers reconcile by recorded_at.

    await db.picks.create_index(
        [("club_id", 1), ("edition_id", 1), ("competitor_id", 1), ("round_number", 1)]
    )
    await db.picks.create_index(
        [("club_id", 1), ("edition_id", 1), ("round_number", 1), ("outcome", 1)]
    )
    await db.picks.create_index("recorded_at")
