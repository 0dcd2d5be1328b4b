from __future__ import annotations

from typing import Optional

from models.client import Client

from .base import RecordRepository


class ClientRepository(RecordRepository[Client]):
    collection = "clients"
    model = Client

    async def get_by_email(self, email: str) -> Optional[Client]:
        return await self.first_by_field("email", email)
