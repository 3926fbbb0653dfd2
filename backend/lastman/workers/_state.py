"""Processed markers in the `worker_state` collection.

The deadline worker writes one marker per (club, edition, round) once its
auto-picks are done, so a restart never assigns them twice. The resolver
writes a single run marker.
"""

import lastman.database as _db
from lastman.utils import utcnow


async def get_marker(key: str) -> dict | None:
    return await _db.db.worker_state.find_one({"_id": key})


async def set_marker(key: str, **info) -> None:
    """Upsert a marker stamped with processed_at plus any run details."""
    await _db.db.worker_state.update_one(
        {"_id": key},
        {"$set": {"processed_at": utcnow(), **info}},
        upsert=True,
    )
