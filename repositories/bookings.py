from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from models.booking import Booking, BookingStatus

from .base import ASCENDING, NEWEST_FIRST, RecordRepository, utcnow


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class BookingRepository(RecordRepository[Booking]):
    collection = "bookings"
    model = Booking

    async def get_by_status(self, status: BookingStatus | str) -> List[Booking]:
        return await self.get_by_field("status", BookingStatus(status).value)

    async def get_by_client_email(self, email: str) -> List[Booking]:
        # Exact, case-sensitive match on the stored address
        return await self.get_by_field("client_email", email)

    async def get_by_client(self, client_id: str) -> List[Booking]:
        return await self.get_by_field("client_id", str(client_id))

    async def get_by_date(self, day: date, *, status: Optional[BookingStatus] = None) -> List[Booking]:
        start, end = day_bounds(day)
        query = {"preferred_date": {"$gte": start, "$lt": end}}
        if status is not None:
            query["status"] = BookingStatus(status).value
        docs = await self.find_many(self.collection, query, sort=[("preferred_time", ASCENDING)])
        return self._wrap(docs)

    async def get_upcoming(self, *, now: Optional[datetime] = None) -> List[Booking]:
        now = now or utcnow()
        docs = await self.find_many(
            self.collection,
            {"preferred_date": {"$gte": now}},
            sort=[("preferred_date", ASCENDING)],
        )
        return self._wrap(docs)

    async def count_for_design(self, design_id: str) -> int:
        return await self.count({"design_id": str(design_id)})

    async def get_for_designs(self, design_ids: List[str]) -> List[Booking]:
        docs = await self.find_many(self.collection, {"design_id": {"$in": [str(d) for d in design_ids]}}, sort=NEWEST_FIRST)
        return self._wrap(docs)
