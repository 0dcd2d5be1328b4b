from __future__ import annotations


class StudioError(Exception):
    """Base class for errors raised by the booking and design services."""


class RecordNotFound(StudioError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class BookingValidationError(StudioError):
    pass


class ScheduleTableError(StudioError):
    """Raised when a city schedule table is malformed or has overlapping ranges."""
