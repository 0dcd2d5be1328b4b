from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field
from typing_extensions import Annotated

from .base import MongoModel
from .files import FileRef


BOOKING_REFERENCE_CATEGORY = "Booking Reference"


class DesignSize(BaseModel):
    name: str
    price: float


class PriceRange(BaseModel):
    min: float
    max: float


class Design(MongoModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    # None means the flag was never written; it reads as available
    available: Optional[bool] = True
    sizes: List[DesignSize] = Field(default_factory=list)
    image: Optional[FileRef] = None
    submitted_by_email: Optional[str] = None

    def is_available(self) -> bool:
        return self.available is not False

    def price_range(self) -> Optional[PriceRange]:
        if not self.sizes:
            return None
        prices = [size.price for size in self.sizes]
        return PriceRange(min=min(prices), max=max(prices))


class DesignCard(BaseModel):
    """Common display projection of both design variants."""

    id: str
    kind: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    available: bool
    image_urls: List[str] = Field(default_factory=list)
    price_range: Optional[PriceRange] = None
    booking_count: int = 0
    booking_id: Optional[str] = None
    created_at: Optional[datetime] = None


class StudioDesign(BaseModel):
    kind: Literal["studio"] = "studio"
    design: Design

    @property
    def id(self) -> str:
        return str(self.design.id)

    def to_card(self, booking_count: int = 0) -> DesignCard:
        d = self.design
        return DesignCard(
            id=self.id,
            kind=self.kind,
            name=d.name,
            description=d.description,
            category=d.category,
            available=d.is_available(),
            image_urls=[d.image.url] if d.image else [],
            price_range=d.price_range(),
            booking_count=booking_count,
            created_at=d.created_at,
        )


class BookingReferenceDesign(BaseModel):
    kind: Literal["booking-reference"] = "booking-reference"
    booking_id: str
    image_index: int
    image: FileRef
    name: str
    description: str
    created_at: Optional[datetime] = None

    @property
    def id(self) -> str:
        return make_reference_id(self.booking_id, self.image_index)

    def to_card(self, booking_count: int = 0) -> DesignCard:
        # Reference images are never chosen by other bookings
        return DesignCard(
            id=self.id,
            kind=self.kind,
            name=self.name,
            description=self.description,
            category=BOOKING_REFERENCE_CATEGORY,
            available=True,
            image_urls=[self.image.url],
            booking_id=self.booking_id,
            created_at=self.created_at,
        )


DesignView = Annotated[Union[StudioDesign, BookingReferenceDesign], Field(discriminator="kind")]


def make_reference_id(booking_id: str, image_index: int) -> str:
    return f"booking-{booking_id}-img-{image_index}"


def parse_reference_id(design_id: str) -> Optional[tuple[str, int]]:
    """Split ``booking-<id>-img-<n>`` into its parts, or None for real design ids."""
    if not design_id.startswith("booking-"):
        return None
    body = design_id[len("booking-"):]
    booking_id, sep, index = body.rpartition("-img-")
    if not sep or not booking_id or not index.isdigit():
        return None
    return booking_id, int(index)
