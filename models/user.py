from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field

from .base import MongoModel


class User(MongoModel):
    username: str
    email: Optional[str] = None
    is_admin: bool = False
    extra: Dict[str, Any] = Field(default_factory=dict)


class StoredUser(User):
    # Only the hosted store keeps this; it never leaves the session layer
    hashed_password: str
