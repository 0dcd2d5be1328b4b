from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.booking import BookingStatus
from models.design import DesignSize


class StatusUpdateRequest(BaseModel):
    status: BookingStatus
    notes: Optional[str] = None


class ConfirmRequest(BaseModel):
    notes: Optional[str] = None


class CancelRequest(BaseModel):
    reason: str = ""


class ModificationRequest(BaseModel):
    text: str = Field(min_length=1)


class AvailabilityUpdate(BaseModel):
    available: bool


class DesignFields(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    available: bool = True
    sizes: List[DesignSize] = Field(default_factory=list)


class PreferencesUpdate(BaseModel):
    preferences: Dict[str, Any]


class DashboardStats(BaseModel):
    bookings_total: int
    bookings_by_status: Dict[str, int]
    upcoming: int
    designs_total: int
    designs_available: int
    clients_total: int
