from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from models.booking import Booking
from models.design import (
    BookingReferenceDesign,
    Design,
    DesignCard,
    DesignView,
    StudioDesign,
    make_reference_id,
    parse_reference_id,
)
from models.user import User
from repositories.bookings import BookingRepository
from repositories.designs import DesignRepository
from schemas.admin import DesignFields
from services.bookings import BookingService
from services.errors import RecordNotFound
from services.storage import GridFSStorage, UploadBlob


logger = logging.getLogger(__name__)

AVAILABILITY_FILTERS = ("all", "available", "unavailable")


def reference_designs(bookings: Sequence[Booking]) -> List[BookingReferenceDesign]:
    """One pseudo-design per reference image, in booking then image order."""
    items: List[BookingReferenceDesign] = []
    for booking in bookings:
        for index, image in enumerate(booking.reference_images):
            items.append(
                BookingReferenceDesign(
                    booking_id=str(booking.id),
                    image_index=index,
                    image=image,
                    name=f"Reference Image from Booking - {booking.formatted_date()}",
                    description=booking.custom_description or "Reference image from booking submission",
                    created_at=booking.created_at,
                )
            )
    return items


def filter_by_availability(designs: Sequence[Design], availability: str) -> List[Design]:
    if availability == "available":
        return [d for d in designs if d.is_available()]
    if availability == "unavailable":
        return [d for d in designs if not d.is_available()]
    return list(designs)


class DesignService:
    def __init__(
        self,
        designs: DesignRepository,
        bookings: BookingRepository,
        storage: GridFSStorage,
        lifecycle: BookingService,
    ) -> None:
        self.designs = designs
        self.bookings = bookings
        self.storage = storage
        self.lifecycle = lifecycle

    async def create_design(
        self,
        fields: DesignFields,
        image: Optional[UploadBlob] = None,
        *,
        submitted_by: Optional[User] = None,
    ) -> Design:
        design = Design(
            name=fields.name,
            description=fields.description,
            category=fields.category,
            available=fields.available is not False,
            sizes=fields.sizes,
            submitted_by_email=submitted_by.email if submitted_by and submitted_by.email else None,
        )
        if image is not None:
            design.image = await self.storage.upload(image)
        saved = await self.designs.create(design)
        logger.info("design.created", extra={"design_id": saved.id, "submitted_by": saved.submitted_by_email})
        return saved

    async def get_design(self, design_id: str) -> Design:
        design = await self.designs.get_by_id(design_id)
        if design is None:
            raise RecordNotFound("Design", design_id)
        return design

    async def update_availability(self, design_id: str, available: bool) -> Design:
        design = await self.get_design(design_id)
        design.available = available
        saved = await self.designs.update(design)
        logger.info("design.availability_updated", extra={"design_id": design_id, "available": available})
        return saved

    async def booking_counts(self, designs: Sequence[Design]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for design in designs:
            counts[str(design.id)] = await self.bookings.count_for_design(str(design.id))
        return counts

    async def catalogue(self, availability: str = "all", q: Optional[str] = None) -> List[DesignCard]:
        """Admin listing: every studio design with its booking count, optionally matching ``q`` in the name."""
        found = await (self.designs.search(q) if q else self.designs.get_all())
        designs = filter_by_availability(found, availability)
        counts = await self.booking_counts(designs)
        return [StudioDesign(design=d).to_card(counts.get(str(d.id), 0)) for d in designs]

    async def public_designs(self, category: Optional[str] = None, q: Optional[str] = None) -> List[DesignCard]:
        if q:
            designs = [d for d in await self.designs.search(q) if d.is_available()]
            if category:
                designs = [d for d in designs if d.category == category]
        else:
            designs = await (self.designs.get_by_category(category) if category else self.designs.get_available())
        return [StudioDesign(design=d).to_card() for d in designs]

    async def user_designs(self, user: User) -> List[DesignCard]:
        """Designs the user submitted plus the reference images of their bookings."""
        own: List[Design] = await self.designs.get_by_submitter(user.email) if user.email else []
        counts = await self.booking_counts(own)
        views: List[DesignView] = [StudioDesign(design=d) for d in own]
        views.extend(reference_designs(await self.lifecycle.get_user_bookings(user)))
        return [view.to_card(counts.get(view.id, 0)) for view in views]

    async def delete_design(self, design_id: str, *, actor: Optional[User] = None) -> None:
        """Delete a studio design, or drop a reference image from its booking."""
        reference = parse_reference_id(design_id)
        actor_name = (actor.email or actor.username) if actor else None
        if reference is not None:
            booking_id, index = reference
            await self.lifecycle.remove_reference_image(booking_id, index, actor=actor_name)
            logger.info("design.reference_deleted", extra={"design_id": design_id, "actor": actor_name})
            return

        design = await self.get_design(design_id)
        await self.designs.delete(design.id)
        if design.image is not None:
            await self.storage.delete(design.image.file_id)
        logger.info("design.deleted", extra={"design_id": design_id, "actor": actor_name})

    async def owns_design(self, user: User, design_id: str) -> bool:
        reference = parse_reference_id(design_id)
        if reference is not None:
            booking_ids = {str(b.id) for b in await self.lifecycle.get_user_bookings(user)}
            return reference[0] in booking_ids
        design = await self.designs.get_by_id(design_id)
        return bool(design and user.email and design.submitted_by_email == user.email)


__all__ = [
    "AVAILABILITY_FILTERS",
    "DesignService",
    "filter_by_availability",
    "make_reference_id",
    "reference_designs",
]
