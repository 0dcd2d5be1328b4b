import asyncio

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from api.deps import get_storage
from db.database import get_database
from main import app
from repositories.users import UserRepository
from services.sessions import HostedSessionStore
from services.storage import GridFSStorage
from tests.conftest import MemoryStorage, StubBucket


API = "/api/v1"

BOOKING_FORM = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "tattoo_type": "custom",
    "body_part": "arm",
    "preferred_date": "2025-09-10",
}


@pytest.fixture
def client(db, storage):
    async def _database():
        return db

    app.dependency_overrides[get_database] = _database
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, username, email, password="secret1"):
    resp = client.post(f"{API}/auth/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def jane(client):
    return register(client, "jane", "jane@example.com")


@pytest.fixture
def admin(client, db):
    # Admin rights only come from the seeded flag
    asyncio.run(HostedSessionStore(UserRepository(db)).ensure_admin("owner", "owner@example.com", "secret1"))
    resp = client.post(f"{API}/auth/login", json={"username": "owner", "password": "secret1"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def submit_booking(client, **overrides):
    form = {**BOOKING_FORM, **overrides}
    resp = client.post(f"{API}/bookings", data=form)
    assert resp.status_code == 201, resp.text
    return resp.json()["booking_id"]


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


def test_static_content(client):
    assert client.get(f"{API}/content/faq").json()["faqs"]
    info = client.get(f"{API}/content/booking-info").json()
    assert {"value": "custom", "label": "Custom Design"} in info["tattooTypes"]


def test_schedule_month_and_day(client):
    month = client.get(f"{API}/schedule/2025/9").json()
    assert month["month"] == 9
    assert month["month_name"] == "September"
    assert month["days"][0]["in_month"] is False

    day = client.get(f"{API}/schedule/2025/9/6").json()
    assert day == {"day": 6, "in_month": True, "city": "New York", "fully_booked": True, "available": False}

    assert client.get(f"{API}/schedule/2025/13").status_code == 400


def test_selected_day_hands_off_to_booking_form(client):
    resp = client.post(f"{API}/schedule/select", json={"year": 2025, "month": 9, "day": 5})
    assert resp.status_code == 200
    assert resp.json()["preferred_date"] == "2025-09-05"

    assert client.get(f"{API}/bookings/prefill").json()["preferred_date"] == "2025-09-05"
    assert client.get(f"{API}/bookings/prefill").json()["preferred_date"] is None


def test_selecting_fully_booked_day_conflicts(client):
    resp = client.post(f"{API}/schedule/select", json={"year": 2025, "month": 9, "day": 6})
    assert resp.status_code == 409


def test_submit_booking_with_reference_image(client, storage):
    resp = client.post(
        f"{API}/bookings",
        data=BOOKING_FORM,
        files=[("reference_images", ("ref.png", b"\x89PNG", "image/png"))],
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "pending"
    assert body["message"] == "Form submitted successfully. I will get back to you shortly."
    [image] = body["reference_images"]
    assert client.get(image["url"]).content == b"\x89PNG"


def test_submit_booking_rejects_missing_fields(client):
    resp = client.post(f"{API}/bookings", data={"name": "Jane Doe"})
    assert resp.status_code == 422


def test_submit_booking_with_unknown_design(client):
    resp = client.post(f"{API}/bookings", data={**BOOKING_FORM, "design_id": "64b7f0000000000000000000"})
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Design not found"}


def test_my_bookings_and_cancel(client, jane):
    booking_id = submit_booking(client)

    mine = client.get(f"{API}/me/bookings", headers=jane).json()
    assert [d["booking"]["_id"] for d in mine["upcoming"] + mine["past"]] == [booking_id]

    resp = client.post(f"{API}/me/bookings/{booking_id}/cancel", json={"reason": "Travelling"}, headers=jane)
    assert resp.status_code == 200
    assert resp.json()["booking"]["status"] == "cancelled"
    assert resp.json()["notes_text"] == "Cancellation: Travelling"


def test_cannot_touch_someone_elses_booking(client):
    booking_id = submit_booking(client, email="other@example.com")
    bob = register(client, "bob", "bob@example.com")

    resp = client.post(f"{API}/me/bookings/{booking_id}/modification", json={"text": "Bigger"}, headers=bob)
    assert resp.status_code == 404


def test_me_requires_login(client):
    assert client.get(f"{API}/me/bookings").status_code == 401
    assert client.get(f"{API}/users/me").status_code == 401


def test_admin_routes_require_admin(client, jane):
    assert client.get(f"{API}/admin/bookings", headers=jane).status_code == 403


def test_admin_confirms_and_filters(client, admin):
    booking_id = submit_booking(client, preferred_time="10:00")

    resp = client.post(f"{API}/admin/bookings/{booking_id}/confirm", json={"notes": "Deposit paid"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["notes_text"] == "Deposit paid"

    confirmed = client.get(f"{API}/admin/bookings", params={"status": "confirmed"}, headers=admin).json()
    assert [d["booking"]["_id"] for d in confirmed] == [booking_id]
    assert confirmed[0]["client"]["email"] == "jane@example.com"

    slots = client.get(f"{API}/bookings/slots", params={"date": "2025-09-10"}).json()["2025-09-10"]
    assert "10:00" not in slots

    assert client.get(f"{API}/admin/bookings", params={"status": "bogus"}, headers=admin).status_code == 400


def test_admin_design_lifecycle(client, admin):
    resp = client.post(
        f"{API}/admin/designs",
        data={"name": "Rose", "category": "Flash", "sizes": '[{"name": "S", "price": 80}]'},
        headers=admin,
    )
    assert resp.status_code == 201
    design = resp.json()
    assert design["price_range"] == {"min": 80.0, "max": 80.0}

    resp = client.patch(f"{API}/admin/designs/{design['id']}/availability", json={"available": False}, headers=admin)
    assert resp.json()["available"] is False
    assert client.get(f"{API}/designs").json() == []

    assert client.delete(f"{API}/admin/designs/{design['id']}", headers=admin).status_code == 204
    assert client.get(f"{API}/admin/designs", headers=admin).json() == []


def test_admin_design_rejects_bad_sizes(client, admin):
    resp = client.post(f"{API}/admin/designs", data={"name": "Rose", "sizes": "not json"}, headers=admin)
    assert resp.status_code == 422


def test_dashboard_stats(client, admin):
    submit_booking(client)

    stats = client.get(f"{API}/admin/dashboard-stats", headers=admin).json()

    assert stats["bookings_total"] == 1
    assert stats["bookings_by_status"]["pending"] == 1
    assert stats["clients_total"] == 1


def test_store_failure_maps_to_503(client):
    class BrokenStorage(MemoryStorage):
        async def fetch(self, file_id):
            raise ServerSelectionTimeoutError("no servers")

    app.dependency_overrides[get_storage] = lambda: BrokenStorage()

    resp = client.get(f"{API}/files/64b7f0000000000000000000")

    assert resp.status_code == 503
    assert resp.json() == {"detail": "Service temporarily unavailable. Please try again."}


def test_admin_identity_cannot_be_self_registered(client):
    by_name = client.post(
        f"{API}/auth/register", json={"username": "admin", "email": "mallory@example.com", "password": "secret1"}
    )
    by_email = client.post(
        f"{API}/auth/register", json={"username": "mallory", "email": "ADMIN@melvink.com", "password": "secret1"}
    )

    assert by_name.status_code == 400
    assert by_email.status_code == 400


def test_self_registered_user_is_not_admin(client):
    mallory = register(client, "mallory", "mallory@example.com")

    assert client.get(f"{API}/users/me", headers=mallory).json()["is_admin"] is False
    assert client.get(f"{API}/admin/dashboard-stats", headers=mallory).status_code == 403


def test_seeded_admin_reaches_admin_routes(client, admin):
    assert client.get(f"{API}/users/me", headers=admin).json()["is_admin"] is True
    assert client.get(f"{API}/admin/bookings", headers=admin).status_code == 200


def test_schedule_rejects_out_of_range_years(client):
    assert client.get(f"{API}/schedule/0/9").status_code == 400
    assert client.get(f"{API}/schedule/10000/9/5").status_code == 400

    resp = client.post(f"{API}/schedule/select", json={"year": 10000, "month": 9, "day": 5})
    assert resp.status_code == 422


def test_booking_with_image_through_gridfs_storage(client, json_logging):
    storage = GridFSStorage(StubBucket())
    app.dependency_overrides[get_storage] = lambda: storage

    resp = client.post(
        f"{API}/bookings",
        data=BOOKING_FORM,
        files=[("reference_images", ("ref.jpg", b"jpeg-bytes", "image/jpeg"))],
    )

    assert resp.status_code == 201, resp.text
    [image] = resp.json()["reference_images"]
    assert image["filename"] == "ref.jpg"
    download = client.get(image["url"])
    assert download.status_code == 200
    assert download.content == b"jpeg-bytes"
    assert download.headers["content-type"] == "image/jpeg"


def test_design_search_by_name(client, admin):
    for name in ("Red Rose", "Skull", "Rose Vine"):
        client.post(f"{API}/admin/designs", data={"name": name}, headers=admin)
    client.post(f"{API}/admin/designs", data={"name": "Rose Hidden", "available": "false"}, headers=admin)

    public = client.get(f"{API}/designs", params={"q": "Rose"}).json()
    catalogue = client.get(f"{API}/admin/designs", params={"q": "Rose"}, headers=admin).json()

    assert sorted(card["name"] for card in public) == ["Red Rose", "Rose Vine"]
    assert sorted(card["name"] for card in catalogue) == ["Red Rose", "Rose Hidden", "Rose Vine"]
