from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from api.deps import get_booking_service, get_current_user, get_design_service
from api.forms import parse_design_form, read_upload
from models.design import DesignCard, StudioDesign
from models.user import User
from schemas.admin import CancelRequest, ModificationRequest
from services.bookings import BookingDetail, BookingService
from services.designs import DesignService


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/me", tags=["me"])


class MyBookings(BaseModel):
    upcoming: List[BookingDetail]
    past: List[BookingDetail]


def _actor(user: User) -> str:
    return user.email or user.username


async def _require_own_booking(bookings: BookingService, user: User, booking_id: str) -> None:
    own = {str(b.id) for b in await bookings.get_user_bookings(user)}
    if booking_id not in own:
        # Same answer as a missing booking, ids of other clients are not disclosed
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")


@router.get("/bookings", response_model=MyBookings)
async def my_bookings(
    user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> MyBookings:
    mine = await bookings.get_user_bookings(user)
    upcoming, past = bookings.split_by_date(mine)
    return MyBookings(
        upcoming=await bookings.with_relations(upcoming),
        past=await bookings.with_relations(past),
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingDetail)
async def cancel_my_booking(
    booking_id: str,
    payload: CancelRequest,
    user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingDetail:
    await _require_own_booking(bookings, user, booking_id)
    booking = await bookings.cancel_booking(booking_id, payload.reason, actor=_actor(user))
    return (await bookings.with_relations([booking]))[0]


@router.post("/bookings/{booking_id}/modification", response_model=BookingDetail)
async def request_modification(
    booking_id: str,
    payload: ModificationRequest,
    user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingDetail:
    await _require_own_booking(bookings, user, booking_id)
    booking = await bookings.request_modification(booking_id, payload.text, actor=_actor(user))
    return (await bookings.with_relations([booking]))[0]


@router.get("/designs", response_model=List[DesignCard])
async def my_designs(
    user: User = Depends(get_current_user),
    designs: DesignService = Depends(get_design_service),
) -> List[DesignCard]:
    return await designs.user_designs(user)


@router.post("/designs", response_model=DesignCard, status_code=status.HTTP_201_CREATED)
async def submit_design(
    name: str = Form(...),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    sizes: Optional[str] = Form(None, description="JSON list of {name, price}"),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    designs: DesignService = Depends(get_design_service),
) -> DesignCard:
    fields = parse_design_form(name, description, category, sizes)
    blob = await read_upload(image)
    design = await designs.create_design(fields, blob, submitted_by=user)
    return StudioDesign(design=design).to_card()


@router.delete("/designs/{design_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_design(
    design_id: str,
    user: User = Depends(get_current_user),
    designs: DesignService = Depends(get_design_service),
) -> None:
    if not await designs.owns_design(user, design_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Design not found")
    await designs.delete_design(design_id, actor=user)

