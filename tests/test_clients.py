import pytest

from services.clients import ClientProfile
from services.errors import RecordNotFound
from tests.conftest import make_request


pytestmark = pytest.mark.anyio


async def test_create_then_update_by_email(client_service, client_repo):
    created = await client_service.create_or_update_client(
        ClientProfile(name="Jane Doe", email="jane@example.com", allergies="latex")
    )
    updated = await client_service.create_or_update_client(
        ClientProfile(name="Jane D.", email="jane@example.com", phone="555-0100")
    )

    assert updated.id == created.id
    assert updated.name == "Jane D."
    assert updated.phone == "555-0100"
    # Blank medical fields never erase what is on file
    assert updated.allergies == "latex"
    assert updated.preferred_contact == "email"
    assert await client_repo.count() == 1


async def test_booking_history_has_no_duplicates(client_service):
    client = await client_service.create_or_update_client(ClientProfile(name="Jane", email="jane@example.com"))

    client = await client_service.add_booking_to_history(client, "b1")
    client = await client_service.add_booking_to_history(client, "b1")

    assert client.booking_history == ["b1"]


async def test_update_preferences(client_service):
    client = await client_service.create_or_update_client(ClientProfile(name="Jane", email="jane@example.com"))

    updated = await client_service.update_preferences(client.id, {"style": "fine-line"})

    assert updated.preferences == {"style": "fine-line"}


async def test_update_preferences_unknown_client(client_service):
    with pytest.raises(RecordNotFound):
        await client_service.update_preferences("64b7f0000000000000000000", {})


async def test_client_bookings_and_search(client_service, booking_service):
    booking = await booking_service.submit_request(make_request())
    await client_service.create_or_update_client(ClientProfile(name="Bob Stone", email="bob@example.com"))

    [jane] = await client_service.search("Jane")
    bookings = await client_service.client_bookings(jane.id)

    assert [b.id for b in bookings] == [booking.id]
    assert len(await client_service.search(None)) == 2
    assert await client_service.search("jane") == []


async def test_upsert_with_app_logging_config(client_service, json_logging, caplog):
    with caplog.at_level("INFO", logger="services.clients"):
        created = await client_service.create_or_update_client(ClientProfile(name="Jane", email="jane@example.com"))
        await client_service.create_or_update_client(ClientProfile(name="Jane", email="jane@example.com"))

    saved = [r for r in caplog.records if r.getMessage() == "client.saved"]
    assert created.id is not None
    assert [r.is_new for r in saved] == [True, False]
