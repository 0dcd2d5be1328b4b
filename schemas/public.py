from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from models.booking import BodyPart, TattooType
from models.files import FileRef


class BookingRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    tattoo_type: TattooType
    body_part: BodyPart
    preferred_date: date
    preferred_time: Optional[str] = None
    custom_description: Optional[str] = None
    design_id: Optional[str] = None


class BookingResponse(BaseModel):
    message: str
    booking_id: str
    status: str
    reference_images: List[FileRef] = Field(default_factory=list)


class DaySelection(BaseModel):
    year: int = Field(ge=2000, le=9999)
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)


class DateHandoff(BaseModel):
    preferred_date: Optional[str] = None
