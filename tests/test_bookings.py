from datetime import timedelta

import pytest

from storefront.core.security import utcnow
from storefront.models.booking import Booking, BookingStatus
from storefront.models.feedback import Feedback
from storefront.models.user import UserRole


def _future(days=2):
    return (utcnow() + timedelta(days=days)).isoformat()


@pytest.fixture
def assigned_booking(customer, staff, create_booking):
    return create_booking(customer, staff=staff)


def test_create_booking_forces_owner_and_status(customer_client, customer, staff):
    response = customer_client.post("/api/bookings", json={
        "date": _future(3),
        "location": "123 Main St, City",
        "attendees": 5,
        "userId": 999,
        "status": "completed",
        "staffId": staff.id,
    })

    assert response.status_code == 201
    body = response.json()
    assert body["userId"] == customer.id
    assert body["status"] == "pending"
    assert body["staffId"] is None
    assert body["attendees"] == 5
    assert body["location"] == "123 Main St, City"


def test_create_booking_validation(customer_client):
    response = customer_client.post("/api/bookings", json={
        "date": _future(), "location": "short", "attendees": 51,
    })

    assert response.status_code == 400
    fields = {error["loc"][-1] for error in response.json()["errors"]}
    assert fields == {"location", "attendees"}


def test_create_booking_requires_login(client):
    response = client.post("/api/bookings", json={"date": _future(), "location": "123 Main St, City"})

    assert response.status_code == 401


def test_admin_can_preassign_staff(admin_client, staff, customer):
    response = admin_client.post("/api/bookings", json={
        "date": _future(), "location": "Civic Center Plaza", "staffId": staff.id,
    })
    assert response.status_code == 201
    assert response.json()["staffId"] == staff.id

    invalid = admin_client.post("/api/bookings", json={
        "date": _future(), "location": "Civic Center Plaza", "staffId": customer.id,
    })
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid staff ID"


def test_list_visibility_by_role(customer, staff, create_user, create_booking, login_as, admin_client):
    other = create_user("bob")
    mine = create_booking(customer, staff=staff)
    create_booking(other)
    create_booking(other, staff=staff, days_ahead=5)

    customer_ids = [b["id"] for b in login_as("alice").get("/api/bookings").json()]
    staff_bookings = login_as("staff").get("/api/bookings").json()
    admin_bookings = admin_client.get("/api/bookings").json()

    assert customer_ids == [mine.id]
    assert len(staff_bookings) == 2
    assert all(b["staffId"] == staff.id for b in staff_bookings)
    assert len(admin_bookings) == 3


def test_get_booking_visibility(customer_client, staff_client, admin_client, assigned_booking,
                                create_user, login_as):
    create_user("bob")
    stranger = login_as("bob")
    url = f"/api/bookings/{assigned_booking.id}"

    assert customer_client.get(url).status_code == 200
    assert staff_client.get(url).status_code == 200
    assert admin_client.get(url).status_code == 200
    assert stranger.get(url).status_code == 403
    assert customer_client.get("/api/bookings/999").status_code == 404


@pytest.mark.parametrize("payload", [
    {"status": "cancelled"},
    {"staffId": 1},
    {"staff_id": 1},
    {"notes": "ok", "status": "pending"},
    {"status": "confirmed", "location": "x"},
])
def test_customer_cannot_patch_status_or_staff(customer_client, assigned_booking, payload):
    response = customer_client.patch(f"/api/bookings/{assigned_booking.id}", json=payload)

    assert response.status_code == 403


def test_customer_patches_own_booking(customer_client, assigned_booking):
    response = customer_client.patch(f"/api/bookings/{assigned_booking.id}", json={
        "notes": "Bring sample frames", "attendees": 8,
    })

    assert response.status_code == 200
    assert response.json()["notes"] == "Bring sample frames"
    assert response.json()["attendees"] == 8
    assert response.json()["status"] == "pending"


def test_customer_cannot_patch_other_booking(customer, create_user, create_booking, login_as):
    other = create_user("bob")
    booking = create_booking(other)

    response = login_as("alice").patch(f"/api/bookings/{booking.id}", json={"notes": "mine now"})

    assert response.status_code == 403


def test_owner_cannot_be_changed(admin_client, customer_client, assigned_booking, staff):
    admin_client.patch(f"/api/bookings/{assigned_booking.id}", json={"userId": staff.id})
    customer_client.patch(f"/api/bookings/{assigned_booking.id}", json={"userId": staff.id, "notes": "n"})

    response = admin_client.get(f"/api/bookings/{assigned_booking.id}")
    assert response.json()["userId"] == assigned_booking.user_id


def test_staff_patch_with_extra_field_is_refused(staff_client, assigned_booking):
    response = staff_client.patch(f"/api/bookings/{assigned_booking.id}", json={
        "status": "confirmed", "foo": "bar",
    })

    assert response.status_code == 403
    assert response.json()["detail"] == "Staff can only update status, notes"


@pytest.mark.parametrize("payload", [{"location": "Somewhere far away"}, {"staffId": None}, {"date": "x"}])
def test_staff_limited_fields(staff_client, assigned_booking, payload):
    response = staff_client.patch(f"/api/bookings/{assigned_booking.id}", json=payload)

    assert response.status_code == 403


def test_staff_confirms_assigned_booking(staff_client, assigned_booking):
    response = staff_client.patch(f"/api/bookings/{assigned_booking.id}", json={
        "status": "confirmed", "notes": "Van booked",
    })

    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["notes"] == "Van booked"


def test_staff_cannot_patch_unassigned_booking(staff_client, customer, create_booking):
    booking = create_booking(customer)

    response = staff_client.patch(f"/api/bookings/{booking.id}", json={"status": "confirmed"})

    assert response.status_code == 403


def test_full_status_workflow(staff_client, assigned_booking):
    url = f"/api/bookings/{assigned_booking.id}"

    assert staff_client.patch(url, json={"status": "confirmed"}).status_code == 200
    assert staff_client.patch(url, json={"status": "completed"}).json()["status"] == "completed"

    reopened = staff_client.patch(url, json={"status": "pending"})
    assert reopened.status_code == 400
    assert reopened.json()["detail"] == "Cannot change booking status from completed to pending"


def test_cancel_from_pending(admin_client, assigned_booking):
    response = admin_client.patch(f"/api/bookings/{assigned_booking.id}", json={"status": "cancelled"})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_skipping_confirmation_is_rejected(admin_client, assigned_booking):
    response = admin_client.patch(f"/api/bookings/{assigned_booking.id}", json={"status": "completed"})

    assert response.status_code == 400


def test_unknown_status_is_rejected(staff_client, assigned_booking):
    response = staff_client.patch(f"/api/bookings/{assigned_booking.id}", json={"status": "in-progress"})

    assert response.status_code == 400
    assert response.json()["errors"][0]["loc"][-1] == "status"


def test_admin_reassigns_staff(admin_client, assigned_booking, create_user, customer):
    other_staff = create_user("sam", UserRole.STAFF)
    url = f"/api/bookings/{assigned_booking.id}"

    response = admin_client.patch(url, json={"staffId": other_staff.id})
    assert response.status_code == 200
    assert response.json()["staffId"] == other_staff.id

    assert admin_client.patch(url, json={"staffId": customer.id}).status_code == 400
    assert admin_client.patch(url, json={"staffId": None}).json()["staffId"] is None


def test_patch_missing_booking(admin_client):
    assert admin_client.patch("/api/bookings/999", json={"notes": "x"}).status_code == 404


def test_status_always_in_vocabulary(admin_client, customer, create_booking, db_session):
    booking = create_booking(customer)
    url = f"/api/bookings/{booking.id}"
    for status in ("confirmed", "bogus", "completed", "pending"):
        admin_client.patch(url, json={"status": status})

    db_session.expire_all()
    assert db_session.get(Booking, booking.id).status in set(BookingStatus)


def test_delete_booking_permissions(customer_client, staff_client, admin_client, customer, staff,
                                    create_booking):
    own = create_booking(customer, staff=staff)
    other = create_booking(customer)

    assert staff_client.delete(f"/api/bookings/{own.id}").status_code == 403
    assert customer_client.delete(f"/api/bookings/{own.id}").status_code == 200
    assert admin_client.delete(f"/api/bookings/{other.id}").status_code == 200
    assert admin_client.delete(f"/api/bookings/{other.id}").status_code == 404


def test_delete_booking_removes_feedback(customer_client, customer, create_booking, db_session):
    booking = create_booking(customer, status=BookingStatus.COMPLETED)
    customer_client.post("/api/feedback", json={"bookingId": booking.id, "rating": 4})

    assert customer_client.delete(f"/api/bookings/{booking.id}").status_code == 200
    assert db_session.query(Feedback).count() == 0


def test_offset_dates_are_stored_as_utc(customer_client):
    created = customer_client.post("/api/bookings", json={
        "date": "2030-01-01T10:00:00+05:00", "location": "123 Main St, City",
    })
    assert created.status_code == 201
    assert created.json()["date"] == "2030-01-01T05:00:00"

    url = f"/api/bookings/{created.json()['id']}"
    assert customer_client.get(url).json()["date"] == "2030-01-01T05:00:00"

    moved = customer_client.patch(url, json={"date": "2030-01-02T09:30:00-02:00"})
    assert moved.json()["date"] == "2030-01-02T11:30:00"


def test_staff_manage_their_own_bookings(staff_client, staff, customer, create_booking):
    assigned = create_booking(customer, staff=staff)
    created = staff_client.post("/api/bookings", json={
        "date": _future(4), "location": "Staff Room, Head Office",
    })
    assert created.status_code == 201
    own_id = created.json()["id"]

    listed = {b["id"] for b in staff_client.get("/api/bookings").json()}
    assert listed == {assigned.id, own_id}

    url = f"/api/bookings/{own_id}"
    assert staff_client.patch(url, json={"notes": "Team fitting"}).json()["notes"] == "Team fitting"
    assert staff_client.patch(url, json={"status": "confirmed"}).status_code == 403
