from __future__ import annotations

import re
from typing import Optional

from models.user import StoredUser

from .base import RecordRepository


def _ci_exact(value: str) -> dict:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


class UserRepository(RecordRepository[StoredUser]):
    collection = "users"
    model = StoredUser

    async def get_by_username(self, username: str) -> Optional[StoredUser]:
        # Usernames are unique regardless of case
        return await self.first_by_field("username", _ci_exact(username))

    async def get_by_email(self, email: str) -> Optional[StoredUser]:
        return await self.first_by_field("email", _ci_exact(email))
