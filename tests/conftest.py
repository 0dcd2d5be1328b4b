"""
Pytest configuration and fixtures.
Tests run against an in-memory Mongo (mongomock-motor) and an in-memory
file store, never against a real database.
"""

import os

# Settings are read at import time; pin them before any app module loads
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTH_BACKEND"] = "hosted"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.setdefault("ALLOWED_ORIGINS", "*")

from datetime import date, datetime
from typing import Dict, List, Optional

import pytest
from bson import ObjectId
from gridfs.errors import GridFSError, NoFile
from mongomock_motor import AsyncMongoMockClient

from models.booking import Booking
from models.files import FileRef
from repositories.bookings import BookingRepository
from repositories.clients import ClientRepository
from repositories.designs import DesignRepository
from repositories.users import UserRepository
from schemas.public import BookingRequest
from services.bookings import BookingService
from services.clients import ClientService
from services.designs import DesignService
from services.storage import StoredFile, UploadBlob


FIXED_NOW = datetime(2025, 9, 1, 12, 0)


class MemoryStorage:
    """Drop-in for GridFSStorage keeping files in a dict."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.files: Dict[str, StoredFile] = {}
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_on = fail_on

    def url_for(self, file_id: str) -> str:
        return f"/api/v1/files/{file_id}"

    async def upload(self, blob: UploadBlob) -> FileRef:
        if self.fail_on is not None and blob.filename == self.fail_on:
            raise GridFSError(f"upload failed for {blob.filename}")
        file_id = str(ObjectId())
        self.files[file_id] = StoredFile(blob.filename, blob.content, blob.content_type)
        self.uploaded.append(blob.filename)
        return FileRef(file_id=file_id, filename=blob.filename, content_type=blob.content_type, url=self.url_for(file_id))

    async def fetch(self, file_id: str) -> Optional[StoredFile]:
        return self.files.get(file_id)

    async def delete(self, file_id: str) -> None:
        self.deleted.append(file_id)
        self.files.pop(file_id, None)


class StubDownload:
    def __init__(self, filename: str, content: bytes, metadata: dict) -> None:
        self.filename = filename
        self.metadata = metadata
        self._content = content

    async def read(self) -> bytes:
        return self._content


class StubBucket:
    """Just enough of AsyncIOMotorGridFSBucket to drive GridFSStorage."""

    def __init__(self) -> None:
        self.files: Dict[ObjectId, tuple] = {}

    async def upload_from_stream(self, filename, source, metadata=None):
        file_id = ObjectId()
        self.files[file_id] = (filename, bytes(source), metadata or {})
        return file_id

    async def open_download_stream(self, file_id):
        if file_id not in self.files:
            raise NoFile(f"no file {file_id}")
        return StubDownload(*self.files[file_id])

    async def delete(self, file_id):
        if file_id not in self.files:
            raise NoFile(f"no file {file_id}")
        del self.files[file_id]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def json_logging():
    """Root logging exactly as the running app configures it."""
    from main import configure_logging

    configure_logging()


@pytest.fixture
def db():
    return AsyncMongoMockClient()["melvink-studio-test"]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def booking_repo(db):
    return BookingRepository(db)


@pytest.fixture
def design_repo(db):
    return DesignRepository(db)


@pytest.fixture
def client_repo(db):
    return ClientRepository(db)


@pytest.fixture
def user_repo(db):
    return UserRepository(db)


@pytest.fixture
def client_service(client_repo, booking_repo):
    return ClientService(client_repo, booking_repo)


@pytest.fixture
def booking_service(booking_repo, design_repo, storage, client_service):
    return BookingService(booking_repo, design_repo, storage, clients=client_service, clock=lambda: FIXED_NOW)


@pytest.fixture
def design_service(design_repo, booking_repo, storage, booking_service):
    return DesignService(design_repo, booking_repo, storage, booking_service)


def make_request(**overrides) -> BookingRequest:
    data = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "tattoo_type": "custom",
        "body_part": "arm",
        "preferred_date": date(2025, 9, 10),
    }
    data.update(overrides)
    return BookingRequest.model_validate(data)


def make_booking(**overrides) -> Booking:
    data = {
        "client_name": "Jane Doe",
        "client_email": "jane@example.com",
        "tattoo_type": "custom",
        "body_part": "arm",
        "preferred_date": datetime(2025, 9, 10),
    }
    data.update(overrides)
    return Booking(**data)
