from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from api.deps import (
    get_booking_service,
    get_client_repository,
    get_client_service,
    get_design_service,
    require_admin,
)
from api.forms import parse_design_form, read_upload
from models.booking import BookingStatus
from models.client import Client
from models.design import DesignCard, StudioDesign
from models.user import User
from repositories.clients import ClientRepository
from schemas.admin import (
    AvailabilityUpdate,
    ConfirmRequest,
    DashboardStats,
    PreferencesUpdate,
    StatusUpdateRequest,
)
from services.bookings import BookingDetail, BookingService
from services.clients import ClientService
from services.designs import AVAILABILITY_FILTERS, DesignService


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _actor(user: User) -> str:
    return user.email or user.username


# ---------------- bookings ----------------

@router.get("/bookings", response_model=List[BookingDetail])
async def list_bookings(
    status_filter: str = Query("all", alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    bookings: BookingService = Depends(get_booking_service),
    clients: ClientRepository = Depends(get_client_repository),
) -> List[BookingDetail]:
    if status_filter != "all" and status_filter not in {s.value for s in BookingStatus}:
        raise HTTPException(status_code=400, detail=f"Unknown status filter: {status_filter}")
    items = await bookings.list_bookings(status=status_filter, on_date=on_date)
    return await bookings.with_relations(items, clients)


@router.get("/bookings/upcoming", response_model=List[BookingDetail])
async def upcoming_bookings(
    bookings: BookingService = Depends(get_booking_service),
    clients: ClientRepository = Depends(get_client_repository),
) -> List[BookingDetail]:
    return await bookings.with_relations(await bookings.upcoming_bookings(), clients)


@router.get("/bookings/{booking_id}", response_model=BookingDetail)
async def get_booking(
    booking_id: str,
    bookings: BookingService = Depends(get_booking_service),
    clients: ClientRepository = Depends(get_client_repository),
) -> BookingDetail:
    booking = await bookings.get_booking(booking_id)
    return (await bookings.with_relations([booking], clients))[0]


@router.patch("/bookings/{booking_id}/status", response_model=BookingDetail)
async def update_booking_status(
    booking_id: str,
    payload: StatusUpdateRequest,
    admin: User = Depends(require_admin),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingDetail:
    booking = await bookings.update_status(booking_id, payload.status, payload.notes, actor=_actor(admin))
    return (await bookings.with_relations([booking]))[0]


@router.post("/bookings/{booking_id}/confirm", response_model=BookingDetail)
async def confirm_booking(
    booking_id: str,
    payload: ConfirmRequest,
    admin: User = Depends(require_admin),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingDetail:
    booking = await bookings.confirm_booking(booking_id, payload.notes, actor=_actor(admin))
    return (await bookings.with_relations([booking]))[0]


# ---------------- designs ----------------

@router.get("/designs", response_model=List[DesignCard])
async def list_designs(
    availability: str = Query("all"),
    q: Optional[str] = None,
    designs: DesignService = Depends(get_design_service),
) -> List[DesignCard]:
    if availability not in AVAILABILITY_FILTERS:
        raise HTTPException(status_code=400, detail=f"availability must be one of {', '.join(AVAILABILITY_FILTERS)}")
    return await designs.catalogue(availability, q)


@router.post("/designs", response_model=DesignCard, status_code=status.HTTP_201_CREATED)
async def create_design(
    name: str = Form(...),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    available: bool = Form(True),
    sizes: Optional[str] = Form(None, description="JSON list of {name, price}"),
    image: Optional[UploadFile] = File(None),
    designs: DesignService = Depends(get_design_service),
) -> DesignCard:
    fields = parse_design_form(name, description, category, sizes, available)
    design = await designs.create_design(fields, await read_upload(image))
    return StudioDesign(design=design).to_card()


@router.patch("/designs/{design_id}/availability", response_model=DesignCard)
async def update_design_availability(
    design_id: str,
    payload: AvailabilityUpdate,
    designs: DesignService = Depends(get_design_service),
) -> DesignCard:
    design = await designs.update_availability(design_id, payload.available)
    counts = await designs.booking_counts([design])
    return StudioDesign(design=design).to_card(counts.get(str(design.id), 0))


@router.delete("/designs/{design_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_design(
    design_id: str,
    admin: User = Depends(require_admin),
    designs: DesignService = Depends(get_design_service),
) -> None:
    await designs.delete_design(design_id, actor=admin)


# ---------------- clients ----------------

@router.get("/clients", response_model=List[Client])
async def search_clients(
    q: Optional[str] = None,
    clients: ClientService = Depends(get_client_service),
) -> List[Client]:
    return await clients.search(q)


@router.get("/clients/{client_id}/bookings", response_model=List[BookingDetail])
async def client_bookings(
    client_id: str,
    clients: ClientService = Depends(get_client_service),
    bookings: BookingService = Depends(get_booking_service),
) -> List[BookingDetail]:
    return await bookings.with_relations(await clients.client_bookings(client_id))


@router.put("/clients/{client_id}/preferences", response_model=Client)
async def update_client_preferences(
    client_id: str,
    payload: PreferencesUpdate,
    clients: ClientService = Depends(get_client_service),
) -> Client:
    return await clients.update_preferences(client_id, payload.preferences)


# ---------------- dashboard ----------------

@router.get("/dashboard-stats", response_model=DashboardStats)
async def dashboard_stats(
    bookings: BookingService = Depends(get_booking_service),
    designs: DesignService = Depends(get_design_service),
    clients: ClientRepository = Depends(get_client_repository),
) -> DashboardStats:
    by_status = {}
    for s in BookingStatus:
        by_status[s.value] = await bookings.bookings.count({"status": s.value})
    return DashboardStats(
        bookings_total=await bookings.bookings.count(),
        bookings_by_status=by_status,
        upcoming=len(await bookings.upcoming_bookings()),
        designs_total=await designs.designs.count(),
        designs_available=await designs.designs.count({"available": {"$ne": False}}),
        clients_total=await clients.count(),
    )
