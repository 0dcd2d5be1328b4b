from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class FileRef(BaseModel):
    """Pointer to an upload held in the GridFS bucket."""

    file_id: str
    filename: str
    content_type: Optional[str] = None
    url: str
