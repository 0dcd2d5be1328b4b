from __future__ import annotations

import logging
from datetime import MAXYEAR, MINYEAR, date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from api.deps import get_booking_service, get_calendar, get_content, get_design_service, get_storage
from models.design import DesignCard
from schemas.public import BookingRequest, BookingResponse, DateHandoff, DaySelection
from services.availability import CalendarDay, CalendarMonth, ScheduleCalendar
from services.bookings import BookingService
from services.content import BookingInfoDocument, ContentLibrary, FaqDocument, GalleryDocument
from services.designs import DesignService
from services.storage import GridFSStorage, UploadBlob


router = APIRouter(tags=["public"])
logger = logging.getLogger(__name__)

SELECTED_DATE_COOKIE = "selected_date"


def _check_month(year: int, month: int) -> None:
    if not MINYEAR <= year <= MAXYEAR:
        raise HTTPException(status_code=400, detail=f"Year must be between {MINYEAR} and {MAXYEAR}")
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")


# ---------------- static content ----------------

@router.get("/content/designs", response_model=GalleryDocument)
async def gallery(content: ContentLibrary = Depends(get_content)) -> GalleryDocument:
    return content.gallery()


@router.get("/content/faq", response_model=FaqDocument)
async def faq(content: ContentLibrary = Depends(get_content)) -> FaqDocument:
    return content.faq()


@router.get("/content/booking-info", response_model=BookingInfoDocument)
async def booking_info(content: ContentLibrary = Depends(get_content)) -> BookingInfoDocument:
    return content.booking_info()


@router.get("/designs", response_model=List[DesignCard])
async def public_designs(
    category: Optional[str] = None,
    q: Optional[str] = None,
    designs: DesignService = Depends(get_design_service),
) -> List[DesignCard]:
    return await designs.public_designs(category, q)


# ---------------- schedule ----------------

@router.get("/schedule/{year}/{month}", response_model=CalendarMonth)
async def schedule_month(
    year: int,
    month: int,
    calendar: ScheduleCalendar = Depends(get_calendar),
) -> CalendarMonth:
    _check_month(year, month)
    grid = calendar.month_grid(year, month - 1)
    # Months go out 1-based like they came in
    return grid.model_copy(update={"month": month})


@router.get("/schedule/{year}/{month}/{day}", response_model=CalendarDay)
async def schedule_day(
    year: int,
    month: int,
    day: int,
    calendar: ScheduleCalendar = Depends(get_calendar),
) -> CalendarDay:
    _check_month(year, month)
    try:
        date(year, month, day)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date")
    return calendar.day_status(month - 1, day)


@router.post("/schedule/select", response_model=DateHandoff)
async def select_day(
    selection: DaySelection,
    response: Response,
    calendar: ScheduleCalendar = Depends(get_calendar),
) -> DateHandoff:
    iso = calendar.select_day(selection.year, selection.month - 1, selection.day)
    if iso is None:
        raise HTTPException(status_code=409, detail="That day is not available")
    # Session cookie: read once by the booking form, then cleared
    response.set_cookie(SELECTED_DATE_COOKIE, iso, httponly=True, samesite="lax")
    return DateHandoff(preferred_date=iso)


@router.get("/bookings/prefill", response_model=DateHandoff)
async def booking_prefill(request: Request, response: Response) -> DateHandoff:
    selected = request.cookies.get(SELECTED_DATE_COOKIE)
    if selected:
        response.delete_cookie(SELECTED_DATE_COOKIE)
    return DateHandoff(preferred_date=selected)


# ---------------- booking form ----------------

@router.get("/bookings/slots")
async def available_slots(
    day: date = Query(..., alias="date"),
    bookings: BookingService = Depends(get_booking_service),
) -> dict[str, list[str]]:
    return {day.isoformat(): await bookings.available_time_slots(day)}


@router.post("/bookings", response_model=BookingResponse, status_code=201)
async def submit_booking(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    tattoo_type: Optional[str] = Form(None),
    body_part: Optional[str] = Form(None),
    preferred_date: Optional[str] = Form(None),
    preferred_time: Optional[str] = Form(None),
    custom_description: Optional[str] = Form(None),
    design_id: Optional[str] = Form(None),
    reference_images: Optional[List[UploadFile]] = File(None),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        payload = BookingRequest.model_validate(
            {
                "name": name,
                "email": email,
                "phone": phone,
                "tattoo_type": tattoo_type,
                "body_part": body_part,
                "preferred_date": preferred_date,
                "preferred_time": preferred_time,
                "custom_description": custom_description,
                "design_id": design_id or None,
            }
        )
    except ValidationError as exc:
        logger.info("booking.form_rejected", extra={"errors": len(exc.errors())})
        raise RequestValidationError(exc.errors(include_url=False, include_context=False))

    blobs = []
    for upload in reference_images or []:
        blobs.append(UploadBlob(upload.filename or "reference.jpg", await upload.read(), upload.content_type))

    booking = await bookings.submit_request(payload, blobs)
    return BookingResponse(
        message="Form submitted successfully. I will get back to you shortly.",
        booking_id=str(booking.id),
        status=booking.status,
        reference_images=booking.reference_images,
    )


# ---------------- uploads ----------------

@router.get("/files/{file_id}")
async def download_file(file_id: str, storage: GridFSStorage = Depends(get_storage)) -> Response:
    stored = await storage.fetch(file_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="File not found")
    return Response(
        content=stored.content,
        media_type=stored.content_type or "application/octet-stream",
        headers={"Content-Disposition": f'inline; filename="{stored.filename}"'},
    )
