"""Request-scoped wiring.

Services are built per request from the database handle so that tests can
swap any layer through ``app.dependency_overrides``.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from core.config import settings
from db.database import get_database, get_gridfs_bucket
from models.user import User
from repositories.bookings import BookingRepository
from repositories.clients import ClientRepository
from repositories.designs import DesignRepository
from repositories.users import UserRepository
from services.availability import ScheduleCalendar
from services.bookings import BookingService
from services.clients import ClientService
from services.content import ContentLibrary, get_content_library
from services.designs import DesignService
from services.security import is_admin_identity
from services.sessions import HostedSessionStore, LocalSessionStore, SessionStore
from services.storage import GridFSStorage


logger = logging.getLogger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[1]
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def get_booking_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> BookingRepository:
    return BookingRepository(db)


def get_client_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ClientRepository:
    return ClientRepository(db)


def get_design_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> DesignRepository:
    return DesignRepository(db)


def get_storage(db: AsyncIOMotorDatabase = Depends(get_database)) -> GridFSStorage:
    return GridFSStorage(get_gridfs_bucket(db), base_url=settings.public_base_url)


def get_content() -> ContentLibrary:
    root = Path(settings.content_dir)
    if not root.is_absolute():
        root = PROJECT_ROOT / root
    return get_content_library(str(root))


@lru_cache(maxsize=1)
def _default_calendar(path: str) -> ScheduleCalendar:
    # Tables are validated once, when first loaded
    return ScheduleCalendar.from_file(path)


def get_calendar(content: ContentLibrary = Depends(get_content)) -> ScheduleCalendar:
    return _default_calendar(str(content.schedule_path()))


def get_session_store(db: AsyncIOMotorDatabase = Depends(get_database)) -> SessionStore:
    if settings.auth_backend == "local":
        return LocalSessionStore(Path(settings.local_users_file))
    return HostedSessionStore(UserRepository(db))


def get_client_service(
    clients: ClientRepository = Depends(get_client_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
) -> ClientService:
    return ClientService(clients, bookings)


def get_booking_service(
    bookings: BookingRepository = Depends(get_booking_repository),
    designs: DesignRepository = Depends(get_design_repository),
    storage: GridFSStorage = Depends(get_storage),
    clients: ClientService = Depends(get_client_service),
) -> BookingService:
    return BookingService(bookings, designs, storage, clients=clients)


def get_design_service(
    designs: DesignRepository = Depends(get_design_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
    storage: GridFSStorage = Depends(get_storage),
    lifecycle: BookingService = Depends(get_booking_service),
) -> DesignService:
    return DesignService(designs, bookings, storage, lifecycle)


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    store: SessionStore = Depends(get_session_store),
) -> Optional[User]:
    return await store.check_current_user(token)


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not is_admin_identity(user):
        logger.warning("auth.admin_denied", extra={"username": user.username})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
