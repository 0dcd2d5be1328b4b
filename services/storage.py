from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from bson import ObjectId
from bson.errors import InvalidId
from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorGridFSBucket

from models.files import FileRef


logger = logging.getLogger(__name__)


class UploadBlob(NamedTuple):
    filename: str
    content: bytes
    content_type: Optional[str] = None


class StoredFile(NamedTuple):
    filename: str
    content: bytes
    content_type: Optional[str]


class GridFSStorage:
    """Uploads and serves files from a GridFS bucket."""

    def __init__(self, bucket: AsyncIOMotorGridFSBucket, *, base_url: str = "") -> None:
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")

    def url_for(self, file_id: str) -> str:
        return f"{self.base_url}/api/v1/files/{file_id}"

    async def upload(self, blob: UploadBlob) -> FileRef:
        file_id = await self.bucket.upload_from_stream(
            blob.filename,
            blob.content,
            metadata={"content_type": blob.content_type},
        )
        logger.info("storage.uploaded", extra={"file_id": str(file_id), "upload_name": blob.filename, "size": len(blob.content)})
        return FileRef(
            file_id=str(file_id),
            filename=blob.filename,
            content_type=blob.content_type,
            url=self.url_for(str(file_id)),
        )

    async def fetch(self, file_id: str) -> Optional[StoredFile]:
        try:
            stream = await self.bucket.open_download_stream(ObjectId(file_id))
        except (InvalidId, NoFile):
            return None
        content = await stream.read()
        metadata = stream.metadata or {}
        return StoredFile(filename=stream.filename, content=content, content_type=metadata.get("content_type"))

    async def delete(self, file_id: str) -> None:
        try:
            await self.bucket.delete(ObjectId(file_id))
        except (InvalidId, NoFile):
            logger.warning("storage.delete_missing", extra={"file_id": file_id})
