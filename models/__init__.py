from .booking import Booking
from .client import Client
from .design import Design, StudioDesign, BookingReferenceDesign
from .files import FileRef
from .user import User

__all__ = [
    "Booking",
    "Client",
    "Design",
    "StudioDesign",
    "BookingReferenceDesign",
    "FileRef",
    "User",
]
