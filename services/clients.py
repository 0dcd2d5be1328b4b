from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from models.client import ChannelType, Client
from repositories.bookings import BookingRepository
from repositories.clients import ClientRepository
from models.booking import Booking
from services.errors import RecordNotFound


logger = logging.getLogger(__name__)


class ClientProfile(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    preferred_contact: Optional[ChannelType] = None
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    previous_tattoos: Optional[str] = None


class ClientService:
    def __init__(self, clients: ClientRepository, bookings: BookingRepository) -> None:
        self.clients = clients
        self.bookings = bookings

    async def create_or_update_client(self, profile: ClientProfile) -> Client:
        """Email is the key: update the existing profile or create a new one."""
        client = await self.clients.get_by_email(profile.email)
        is_new = client is None
        if client is None:
            client = Client(name=profile.name, email=profile.email)

        client.name = profile.name
        client.email = profile.email
        client.phone = profile.phone
        client.preferred_contact = profile.preferred_contact or ChannelType.email
        # Medical details are only ever added, a blank form does not erase them
        if profile.allergies:
            client.allergies = profile.allergies
        if profile.medical_conditions:
            client.medical_conditions = profile.medical_conditions
        if profile.previous_tattoos:
            client.previous_tattoos = profile.previous_tattoos

        saved = await (self.clients.create(client) if is_new else self.clients.update(client))
        logger.info("client.saved", extra={"client_id": saved.id, "is_new": is_new})
        return saved

    async def add_booking_to_history(self, client: Client, booking_id: str) -> Client:
        if booking_id in client.booking_history:
            return client
        client.booking_history.append(booking_id)
        return await self.clients.update(client)

    async def update_preferences(self, client_id: str, preferences: Dict[str, Any]) -> Client:
        client = await self._require(client_id)
        client.preferences = preferences
        return await self.clients.update(client)

    async def client_bookings(self, client_id: str) -> List[Booking]:
        client = await self._require(client_id)
        return await self.bookings.get_by_client(str(client.id))

    async def search(self, term: Optional[str]) -> List[Client]:
        if not term:
            return await self.clients.get_all()
        return await self.clients.search(term)

    async def _require(self, client_id: str) -> Client:
        client = await self.clients.get_by_id(client_id)
        if client is None:
            raise RecordNotFound("Client", client_id)
        return client
