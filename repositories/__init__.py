from .base import BaseRepository, RecordRepository
from .bookings import BookingRepository
from .clients import ClientRepository
from .designs import DesignRepository
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "RecordRepository",
    "BookingRepository",
    "ClientRepository",
    "DesignRepository",
    "UserRepository",
]
