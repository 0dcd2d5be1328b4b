from __future__ import annotations

from typing import List

from models.design import Design

from .base import NEWEST_FIRST, RecordRepository


# Missing flag counts as available
AVAILABLE_QUERY = {"available": {"$ne": False}}


class DesignRepository(RecordRepository[Design]):
    collection = "designs"
    model = Design

    async def get_available(self) -> List[Design]:
        return self._wrap(await self.find_many(self.collection, AVAILABLE_QUERY, sort=NEWEST_FIRST))

    async def get_by_category(self, category: str) -> List[Design]:
        query = {"category": category, **AVAILABLE_QUERY}
        return self._wrap(await self.find_many(self.collection, query, sort=NEWEST_FIRST))

    async def get_by_submitter(self, email: str) -> List[Design]:
        return await self.get_by_field("submitted_by_email", email)
