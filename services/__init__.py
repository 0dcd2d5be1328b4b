from __future__ import annotations

# Re-export key service classes for convenient imports
from .availability import ScheduleCalendar
from .bookings import BookingService
from .clients import ClientService
from .designs import DesignService
from .sessions import HostedSessionStore, LocalSessionStore

__all__ = [
    "BookingService",
    "ClientService",
    "DesignService",
    "HostedSessionStore",
    "LocalSessionStore",
    "ScheduleCalendar",
]
