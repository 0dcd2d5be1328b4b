from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from models.base import MongoModel


def utcnow() -> datetime:
    # Mongo hands back naive datetimes; keep writes naive UTC to match
    return datetime.now(timezone.utc).replace(tzinfo=None)


NEWEST_FIRST: Sequence[tuple[str, int]] = (("created_at", DESCENDING),)

RecordT = TypeVar("RecordT", bound=MongoModel)


class BaseRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    @staticmethod
    def _ensure_object_id(value: Any) -> ObjectId:
        if isinstance(value, ObjectId):
            return value
        return ObjectId(str(value))

    @staticmethod
    def _maybe_object_id(value: Any) -> Optional[ObjectId]:
        try:
            return BaseRepository._ensure_object_id(value)
        except (InvalidId, TypeError):
            return None

    async def find_many(
        self,
        collection: str,
        query: Dict[str, Any] | None = None,
        *,
        sort: Optional[Sequence[tuple[str, int]]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(query or {})
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [doc async for doc in cursor]

    async def count_many(self, collection: str, query: Dict[str, Any] | None = None) -> int:
        return await self.db[collection].count_documents(query or {})

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.db[collection].find_one(query)

    async def insert_one(self, collection: str, doc: Dict[str, Any], *, with_timestamps: bool = True) -> ObjectId:
        # Special-case: never persist a null _id; MongoDB will auto-generate one
        if doc.get("_id", "__absent__") is None:
            doc = {k: v for k, v in doc.items() if k != "_id"}

        if with_timestamps:
            now = utcnow()
            if doc.get("created_at") is None:
                doc["created_at"] = now
            if doc.get("updated_at") is None:
                doc["updated_at"] = now
        result = await self.db[collection].insert_one(doc)
        return result.inserted_id

    async def update_one(
        self,
        collection: str,
        filter_query: Dict[str, Any],
        update: Dict[str, Any],
        *,
        touch_updated_at: bool = True,
    ) -> None:
        if touch_updated_at:
            update = {**update}
            set_part = update.get("$set", {})
            set_part = {**set_part, "updated_at": utcnow()}
            update["$set"] = set_part
        await self.db[collection].update_one(filter_query, update)

    async def delete_one(self, collection: str, query: Dict[str, Any]) -> bool:
        result = await self.db[collection].delete_one(query)
        return result.deleted_count > 0


class RecordRepository(BaseRepository, Generic[RecordT]):
    """Typed CRUD over one collection.

    Lookups return ``None`` or ``[]`` when nothing matches; driver failures
    propagate as ``PyMongoError``.
    """

    collection: str
    model: Type[RecordT]

    def _wrap(self, docs: List[Dict[str, Any]]) -> List[RecordT]:
        return [self.model.from_document(doc) for doc in docs]

    async def get_all(self, *, sort: Optional[Sequence[tuple[str, int]]] = NEWEST_FIRST) -> List[RecordT]:
        return self._wrap(await self.find_many(self.collection, {}, sort=sort))

    async def get_by_id(self, record_id: Any) -> Optional[RecordT]:
        oid = self._maybe_object_id(record_id)
        if oid is None:
            return None
        doc = await self.find_one(self.collection, {"_id": oid})
        return self.model.from_document(doc) if doc else None

    async def get_by_ids(self, record_ids: Sequence[Any]) -> Dict[str, RecordT]:
        oids = [oid for oid in (self._maybe_object_id(r) for r in record_ids) if oid is not None]
        if not oids:
            return {}
        docs = await self.find_many(self.collection, {"_id": {"$in": oids}})
        return {str(doc["_id"]): self.model.from_document(doc) for doc in docs}

    async def get_by_field(
        self,
        field: str,
        value: Any,
        *,
        sort: Optional[Sequence[tuple[str, int]]] = NEWEST_FIRST,
    ) -> List[RecordT]:
        return self._wrap(await self.find_many(self.collection, {field: value}, sort=sort))

    async def first_by_field(self, field: str, value: Any) -> Optional[RecordT]:
        doc = await self.find_one(self.collection, {field: value})
        return self.model.from_document(doc) if doc else None

    async def search(self, term: str, *, field: str = "name") -> List[RecordT]:
        # Substring match, case-sensitive like the name "contains" query it replaces
        query = {field: {"$regex": re.escape(term)}}
        return self._wrap(await self.find_many(self.collection, query, sort=NEWEST_FIRST))

    async def count(self, query: Dict[str, Any] | None = None) -> int:
        return await self.count_many(self.collection, query)

    async def create(self, record: RecordT) -> RecordT:
        doc = record.to_document()
        inserted_id = await self.insert_one(self.collection, doc)
        return self.model.from_document({**doc, "_id": inserted_id})

    async def update(self, record: RecordT) -> RecordT:
        """Save a mutated record back in full."""
        if record.id is None:
            raise ValueError(f"cannot update unsaved {self.model.__name__}")
        doc = record.to_document()
        doc.pop("created_at", None)
        doc.pop("updated_at", None)
        oid = self._ensure_object_id(record.id)
        await self.update_one(self.collection, {"_id": oid}, {"$set": doc})
        saved = await self.find_one(self.collection, {"_id": oid})
        return self.model.from_document(saved) if saved else record

    async def delete(self, record_id: Any) -> bool:
        oid = self._maybe_object_id(record_id)
        if oid is None:
            return False
        return await self.delete_one(self.collection, {"_id": oid})


__all__ = ["ASCENDING", "DESCENDING", "NEWEST_FIRST", "BaseRepository", "RecordRepository", "utcnow"]
