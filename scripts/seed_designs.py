from __future__ import annotations

import asyncio
from pathlib import Path

from motor.motor_asyncio import AsyncIOMotorClient

from core.config import settings
from models.design import Design, DesignSize
from repositories.designs import DesignRepository
from services.content import ContentLibrary


async def seed_designs(content_dir: Path) -> int:
    """Copy the static gallery into the designs collection, skipping names already present."""
    client = AsyncIOMotorClient(settings.mongo_uri)
    repo = DesignRepository(client[settings.database_name])
    created = 0
    try:
        for item in ContentLibrary(content_dir).gallery().designs:
            if await repo.first_by_field("name", item["name"]):
                continue
            await repo.create(
                Design(
                    name=item["name"],
                    description=item.get("description"),
                    category=item.get("category"),
                    available=item.get("available", True),
                    sizes=[DesignSize(**s) for s in item.get("sizes", [])],
                )
            )
            created += 1
        return created
    finally:
        client.close()


if __name__ == "__main__":
    root = Path(settings.content_dir)
    if not root.is_absolute():
        root = Path(__file__).resolve().parents[1] / root
    count = asyncio.run(seed_designs(root))
    print(f"Seeded {count} designs")
