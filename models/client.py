from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import MongoModel


class ChannelType(str, Enum):
    email = "email"
    phone = "phone"
    sms = "sms"


class Client(MongoModel):
    name: str
    email: str
    phone: Optional[str] = None
    preferred_contact: ChannelType = ChannelType.email
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    previous_tattoos: Optional[str] = None
    booking_history: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)

    def full_name(self) -> str:
        return self.name or "Unknown Client"
