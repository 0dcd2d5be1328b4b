from __future__ import annotations

import asyncio
import os
from pathlib import Path

from motor.motor_asyncio import AsyncIOMotorClient

from core.config import settings
from models.user import User
from repositories.users import UserRepository
from services.sessions import HostedSessionStore, LocalSessionStore


async def upsert_admin(*, username: str, email: str, password: str) -> User:
    """Write the is_admin flag through whichever session store is configured."""
    if settings.auth_backend == "local":
        return await LocalSessionStore(Path(settings.local_users_file)).ensure_admin(username, email, password)

    client = AsyncIOMotorClient(settings.mongo_uri)
    try:
        store = HostedSessionStore(UserRepository(client[settings.database_name]))
        return await store.ensure_admin(username, email, password)
    finally:
        client.close()


if __name__ == "__main__":
    # Defaults are demo values; set SEED_ADMIN_* before running against a real database.
    admin_username = os.getenv("SEED_ADMIN_USERNAME", settings.admin_username or "admin")
    admin_email = os.getenv("SEED_ADMIN_EMAIL", settings.admin_email or "admin@example.com")
    admin_password = os.getenv("SEED_ADMIN_PASSWORD", "change-me")

    created = asyncio.run(upsert_admin(username=admin_username, email=admin_email, password=admin_password))
    print("Seeded admin:", created.model_dump(include={"id", "username", "email", "is_admin"}))
