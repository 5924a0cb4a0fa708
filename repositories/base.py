"""
Base repository for MongoDB collections.

Each repository owns one collection of the async pymongo database and maps
raw documents to its MongoBaseModel subclass. Repositories never swallow
driver errors; duplicate-key violations are translated where the caller has
a meaningful domain error for them.
"""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from bson import ObjectId
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from builders.query import BuiltQuery
from schemas.models.base import MongoBaseModel

T = TypeVar("T", bound=MongoBaseModel)


class BaseRepository(Generic[T]):
    """
    Common plumbing for collection-backed repositories.

    Subclasses set ``collection_name`` and ``model`` and add domain-specific
    queries on top of ``self._col``.
    """

    collection_name: str
    model: type[T]

    def __init__(self, db: AsyncDatabase) -> None:
        self._db = db
        self._col: AsyncCollection = db[self.collection_name]

    def _to_model(self, raw: Optional[dict[str, Any]]) -> Optional[T]:
        return self.model.from_mongo(raw)

    async def find_by_id(self, doc_id: ObjectId) -> Optional[T]:
        return self._to_model(await self._col.find_one({"_id": doc_id}))

    async def find_page(self, built: BuiltQuery) -> tuple[list[T], int]:
        """Return one page of documents matching *built* plus the total match count.

        Newest first. No limit means every matching document.
        """
        cursor = self._col.find(built.filter).sort("created_at", -1).skip(built.skip)
        if built.limit:
            cursor = cursor.limit(built.limit)
        items = [self.model.model_validate(raw) async for raw in cursor]
        total = await self._col.count_documents(built.filter)
        return items, total
