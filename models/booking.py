from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import MongoModel, PyObjectId
from .files import FileRef


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class TattooType(str, Enum):
    flash_everyone = "flash-everyone"
    flash_one = "flash-one"
    custom = "custom"
    cover_up = "cover-up"


class BodyPart(str, Enum):
    arm = "arm"
    leg = "leg"
    back = "back"
    chest = "chest"
    shoulder = "shoulder"
    other = "other"


class NoteKind(str, Enum):
    status = "status"
    cancellation = "cancellation"
    modification_request = "modification_request"
    image_removed = "image_removed"


# Prefixes used when the log is rendered as plain text
NOTE_PREFIXES = {
    NoteKind.cancellation.value: "Cancellation: ",
    NoteKind.modification_request.value: "Modification Request: ",
    NoteKind.image_removed.value: "Reference Image Removed: ",
}


class NoteEntry(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    timestamp: datetime
    actor: Optional[str] = None
    kind: NoteKind
    text: str

    def render(self) -> str:
        return f"{NOTE_PREFIXES.get(self.kind, '')}{self.text}"


class Booking(MongoModel):
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    tattoo_type: TattooType
    body_part: BodyPart
    # Stored as a naive UTC datetime at midnight of the requested day
    preferred_date: datetime
    preferred_time: Optional[str] = None
    custom_description: Optional[str] = None
    reference_images: List[FileRef] = Field(default_factory=list)
    status: BookingStatus = BookingStatus.pending
    notes: List[NoteEntry] = Field(default_factory=list)
    design_id: Optional[PyObjectId] = None
    client_id: Optional[PyObjectId] = None

    def notes_text(self) -> str:
        return "\n".join(entry.render() for entry in self.notes)

    def formatted_date(self) -> str:
        d = self.preferred_date
        return f"{d.strftime('%B')} {d.day}, {d.year}"
