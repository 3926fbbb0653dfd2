"""
backend/tests/_fakes.py

Purpose:
    Minimal in-memory stand-ins for the Motor collections used by the
    repositories: equality and `$in` filters, `$set` updates, distinct.
"""

from __future__ import annotations

from types import SimpleNamespace

from bson import ObjectId

COLLECTIONS = ("editions", "competitors", "fixtures", "picks", "worker_state")


def _matches(doc: dict, query: dict) -> bool:
    for key, expected in query.items():
        value = doc.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if value not in expected["$in"]:
                return False
        elif value != expected:
            return False
    return True


class _Cursor:
    def __init__(self, docs: list[dict]):
        self._docs = list(docs)

    async def to_list(self, length: int | None = None):
        if length is None:
            return list(self._docs)
        return list(self._docs)[:length]


class FakeCollection:
    def __init__(self, docs: list[dict] | None = None):
        self.docs = [dict(d) for d in docs or []]

    async def find_one(self, query: dict, projection: dict | None = None):
        for doc in self.docs:
            if _matches(doc, query):
                return dict(doc)
        return None

    def find(self, query: dict | None = None, projection: dict | None = None):
        return _Cursor([dict(d) for d in self.docs if _matches(d, query or {})])

    async def insert_one(self, doc: dict):
        row = dict(doc)
        row.setdefault("_id", ObjectId())
        self.docs.append(row)
        return SimpleNamespace(inserted_id=row["_id"])

    async def update_one(self, query: dict, update: dict, upsert: bool = False):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            row = {k: v for k, v in query.items() if not isinstance(v, dict)}
            row.update(update.get("$set", {}))
            result = await self.insert_one(row)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=result.inserted_id)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def distinct(self, key: str, query: dict | None = None):
        values = []
        for doc in self.docs:
            if _matches(doc, query or {}) and doc.get(key) not in values:
                values.append(doc.get(key))
        return values


def make_db(**collections: list[dict]) -> SimpleNamespace:
    return SimpleNamespace(**{name: FakeCollection(collections.get(name)) for name in COLLECTIONS})


def scoped(docs: list[dict], club_id: str = "club", edition_id: str = "2025-26") -> list[dict]:
    return [{"club_id": club_id, "edition_id": edition_id, **doc} for doc in docs]
