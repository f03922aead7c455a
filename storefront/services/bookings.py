"""
Booking workflow rules for the mobile caravan.

Status moves pending -> confirmed -> completed, and any non-terminal
booking may be cancelled. Which fields a caller may write depends on
their role:

* customers patch their own bookings but never ``status`` or ``staff_id``
* staff patch bookings assigned to them, and only ``status`` and ``notes``;
  a booking a staff member made for themselves follows the customer rule
* admins may write anything
"""
from typing import Dict, Iterable, Optional, Set

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from storefront.models.booking import Booking, BookingStatus
from storefront.models.user import UserRole

ALLOWED_TRANSITIONS: Dict[BookingStatus, Set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {BookingStatus.COMPLETED, BookingStatus.CANCELLED}

STAFF_WRITABLE_FIELDS = ("status", "notes")
CUSTOMER_FORBIDDEN_FIELDS = ("staff_id", "status")


def can_transition(current: BookingStatus, new: BookingStatus) -> bool:
    """Setting the current status again is always allowed."""
    if current == new:
        return True
    return new in ALLOWED_TRANSITIONS[current]


def can_view(booking: Booking, user_id: int, role: UserRole) -> bool:
    """Admins see everything, owners see their bookings, staff see their assignments."""
    if role == UserRole.ADMIN:
        return True
    if booking.user_id == user_id:
        return True
    return role == UserRole.STAFF and booking.staff_id == user_id


def can_delete(booking: Booking, user_id: int, role: UserRole) -> bool:
    return role == UserRole.ADMIN or booking.user_id == user_id


def patch_violation(
    booking: Booking, user_id: int, role: UserRole, fields: Iterable[str]
) -> Optional[str]:
    """
    Return the reason a patch is forbidden, or None if the caller may apply it.

    ``fields`` are the keys of the request body resolved to schema field
    names; unknown keys are passed through untouched.
    """
    fields = set(fields)

    if role == UserRole.ADMIN:
        return None

    if role == UserRole.STAFF and booking.staff_id == user_id:
        if fields - set(STAFF_WRITABLE_FIELDS):
            return f"Staff can only update {', '.join(STAFF_WRITABLE_FIELDS)}"
        return None

    if booking.user_id != user_id:
        return "Forbidden"
    if fields & set(CUSTOMER_FORBIDDEN_FIELDS):
        return "Customers cannot change staff assignment or booking status"
    return None


def visible_bookings(db: Session, user_id: int, role: UserRole) -> Query:
    """Bookings a caller may list, ordered by appointment date."""
    query = db.query(Booking)

    if role == UserRole.STAFF:
        query = query.filter(or_(Booking.staff_id == user_id, Booking.user_id == user_id))
    elif role != UserRole.ADMIN:
        query = query.filter(Booking.user_id == user_id)

    return query.order_by(Booking.date, Booking.id)
