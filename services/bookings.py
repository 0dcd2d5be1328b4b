"""Booking lifecycle.

Status moves freely between pending, confirmed, completed and cancelled;
there is no terminal state. Cancellation and modification requests append to
the notes log, while ``update_status``/``confirm_booking`` with notes replace
it. Every transition is a single save with last-write-wins semantics.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel
from pymongo.errors import PyMongoError

from models.booking import Booking, BookingStatus, NoteEntry, NoteKind
from models.client import Client
from models.design import Design
from models.user import User
from repositories.base import utcnow
from repositories.bookings import BookingRepository
from repositories.clients import ClientRepository
from repositories.designs import DesignRepository
from schemas.public import BookingRequest
from services.clients import ClientProfile, ClientService
from services.errors import BookingValidationError, RecordNotFound
from services.storage import GridFSStorage, UploadBlob


logger = logging.getLogger(__name__)

# Hourly slots offered for a day: 09:00 .. 17:00
SLOT_HOURS = range(9, 18)


class BookingDetail(BaseModel):
    booking: Booking
    design: Optional[Design] = None
    client: Optional[Client] = None
    notes_text: str = ""


class BookingService:
    def __init__(
        self,
        bookings: BookingRepository,
        designs: DesignRepository,
        storage: GridFSStorage,
        *,
        clients: Optional[ClientService] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.bookings = bookings
        self.designs = designs
        self.storage = storage
        self.clients = clients
        self.clock = clock

    # ---------------- creation ----------------

    async def create_booking(
        self,
        request: BookingRequest,
        images: Sequence[UploadBlob] = (),
        *,
        client_id: Optional[str] = None,
    ) -> Booking:
        design_id: Optional[str] = None
        if request.design_id:
            design = await self.designs.get_by_id(request.design_id)
            if design is None:
                raise RecordNotFound("Design", request.design_id)
            design_id = design.id

        uploaded = []
        try:
            # One at a time, in the order given
            for blob in images:
                uploaded.append(await self.storage.upload(blob))

            booking = Booking(
                client_name=request.name,
                client_email=str(request.email),
                client_phone=request.phone or None,
                tattoo_type=request.tattoo_type,
                body_part=request.body_part,
                preferred_date=datetime.combine(request.preferred_date, time.min),
                preferred_time=request.preferred_time or None,
                custom_description=request.custom_description or None,
                reference_images=uploaded,
                status=BookingStatus.pending,
                notes=[],
                design_id=design_id,
                client_id=client_id,
            )
            saved = await self.bookings.create(booking)
        except Exception:
            await self._discard_uploads([ref.file_id for ref in uploaded])
            raise

        logger.info(
            "booking.created",
            extra={"booking_id": saved.id, "design_id": design_id, "images": len(uploaded)},
        )
        return saved

    async def submit_request(self, request: BookingRequest, images: Sequence[UploadBlob] = ()) -> Booking:
        """Public form flow: upsert the client profile, then create and link the booking."""
        if self.clients is None:
            return await self.create_booking(request, images)
        client = await self.clients.create_or_update_client(
            ClientProfile(name=request.name, email=str(request.email), phone=request.phone or None)
        )
        booking = await self.create_booking(request, images, client_id=client.id)
        await self.clients.add_booking_to_history(client, str(booking.id))
        return booking

    async def _discard_uploads(self, file_ids: List[str]) -> None:
        for file_id in file_ids:
            try:
                await self.storage.delete(file_id)
            except PyMongoError:
                logger.exception("booking.upload_cleanup_failed", extra={"file_id": file_id})

    # ---------------- transitions ----------------

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await self.bookings.get_by_id(booking_id)
        if booking is None:
            raise RecordNotFound("Booking", booking_id)
        return booking

    def _note(self, kind: NoteKind, text: str, actor: Optional[str]) -> NoteEntry:
        return NoteEntry(timestamp=self.clock(), actor=actor, kind=kind, text=text)

    async def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus | str,
        notes: Optional[str] = None,
        *,
        actor: Optional[str] = None,
    ) -> Booking:
        booking = await self.get_booking(booking_id)
        previous = booking.status
        booking.status = BookingStatus(new_status).value
        if notes:
            # Replaces the whole log, unlike cancel/modify which append
            booking.notes = [self._note(NoteKind.status, notes, actor)]
        saved = await self.bookings.update(booking)
        logger.info(
            "booking.status_updated",
            extra={"booking_id": booking_id, "from": previous, "to": saved.status, "actor": actor},
        )
        return saved

    async def confirm_booking(self, booking_id: str, notes: Optional[str] = None, *, actor: Optional[str] = None) -> Booking:
        return await self.update_status(booking_id, BookingStatus.confirmed, notes, actor=actor)

    async def cancel_booking(self, booking_id: str, reason: str = "", *, actor: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        booking.status = BookingStatus.cancelled.value
        if reason:
            booking.notes.append(self._note(NoteKind.cancellation, reason, actor))
        saved = await self.bookings.update(booking)
        logger.info("booking.cancelled", extra={"booking_id": booking_id, "actor": actor, "with_reason": bool(reason)})
        return saved

    async def request_modification(self, booking_id: str, text: str, *, actor: Optional[str] = None) -> Booking:
        if not text or not text.strip():
            raise BookingValidationError("Modification request text is required.")
        booking = await self.get_booking(booking_id)
        booking.notes.append(self._note(NoteKind.modification_request, text, actor))
        # Back to pending so the studio reviews it again
        booking.status = BookingStatus.pending.value
        saved = await self.bookings.update(booking)
        logger.info("booking.modification_requested", extra={"booking_id": booking_id, "actor": actor})
        return saved

    async def remove_reference_image(self, booking_id: str, index: int, *, actor: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        if not 0 <= index < len(booking.reference_images):
            raise RecordNotFound("Reference image", f"{booking_id}#{index}")
        removed = booking.reference_images.pop(index)
        booking.notes.append(self._note(NoteKind.image_removed, removed.filename, actor))
        saved = await self.bookings.update(booking)
        await self.storage.delete(removed.file_id)
        logger.info("booking.reference_image_removed", extra={"booking_id": booking_id, "index": index, "file_id": removed.file_id})
        return saved

    # ---------------- queries ----------------

    async def get_user_bookings(self, user: User) -> List[Booking]:
        identity = user.email or user.username
        if not identity:
            logger.warning("booking.user_without_identity", extra={"user_id": user.id})
            return []

        found = await self.bookings.get_by_client_email(identity)
        if found:
            return found

        # Stored addresses may differ in case; fall back to a full scan
        wanted = identity.lower()
        matched = [b for b in await self.bookings.get_all() if (b.client_email or "").lower() == wanted]
        logger.info("booking.user_lookup_fallback", extra={"identity": identity, "matched": len(matched)})
        return matched

    async def list_bookings(self, *, status: Optional[str] = None, on_date: Optional[date] = None) -> List[Booking]:
        if status and status != "all":
            items = await self.bookings.get_by_status(status)
        else:
            items = await self.bookings.get_all()
        if on_date is not None:
            items = [b for b in items if b.preferred_date.date() == on_date]
        return items

    async def upcoming_bookings(self) -> List[Booking]:
        return await self.bookings.get_upcoming(now=self.clock())

    async def available_time_slots(self, day: date) -> List[str]:
        confirmed = await self.bookings.get_by_date(day, status=BookingStatus.confirmed)
        taken = {b.preferred_time for b in confirmed}
        return [slot for slot in (f"{hour:02d}:00" for hour in SLOT_HOURS) if slot not in taken]

    def split_by_date(self, bookings: Sequence[Booking]) -> tuple[List[Booking], List[Booking]]:
        """(upcoming, past) relative to the start of today."""
        today = datetime.combine(self.clock().date(), time.min)
        upcoming = [b for b in bookings if b.preferred_date >= today]
        past = [b for b in bookings if b.preferred_date < today]
        return upcoming, past

    async def with_relations(
        self, bookings: Sequence[Booking], clients: Optional[ClientRepository] = None
    ) -> List[BookingDetail]:
        designs = await self.designs.get_by_ids([b.design_id for b in bookings if b.design_id])
        client_map = {}
        if clients is not None:
            client_map = await clients.get_by_ids([b.client_id for b in bookings if b.client_id])
        return [
            BookingDetail(
                booking=b,
                design=designs.get(b.design_id) if b.design_id else None,
                client=client_map.get(b.client_id) if b.client_id else None,
                notes_text=b.notes_text(),
            )
            for b in bookings
        ]
