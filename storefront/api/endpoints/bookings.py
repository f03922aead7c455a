import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.database.session import get_db
from storefront.models.booking import Booking, BookingStatus
from storefront.models.user import User, UserRole
from storefront.models.user_session import UserSession
from storefront.schemas.base import field_names_in
from storefront.schemas.booking import BookingCreate, BookingInDB, BookingUpdate
from storefront.services import bookings as workflow
from storefront.api.endpoints.auth import get_current_session

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_NULL_FIELDS = ("date", "location", "status", "attendees")


def get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )
    return booking


def ensure_can_view(booking: Booking, current: UserSession):
    if not workflow.can_view(booking, current.user_id, current.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )


def _ensure_staff_member(db: Session, staff_id: Optional[int]):
    if staff_id is None:
        return
    staff = db.query(User).filter(User.id == staff_id).first()
    if not staff or staff.role not in (UserRole.STAFF, UserRole.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid staff ID"
        )


@router.get("", response_model=List[BookingInDB])
async def get_bookings(
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """
    List bookings visible to the caller.
    Admins see all bookings, staff see their assignments, customers their own.
    """
    return workflow.visible_bookings(db, current.user_id, current.role).all()


@router.post("", response_model=BookingInDB, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """Book the mobile caravan. The caller owns the booking and it starts pending."""
    staff_id = None
    if current.role == UserRole.ADMIN:
        _ensure_staff_member(db, booking.staff_id)
        staff_id = booking.staff_id

    db_booking = Booking(
        user_id=current.user_id,
        date=booking.date,
        location=booking.location,
        notes=booking.notes,
        attendees=booking.attendees,
        status=BookingStatus.PENDING,
        staff_id=staff_id,
    )
    db.add(db_booking)
    db.commit()
    db.refresh(db_booking)

    logger.info(f"Booking {db_booking.id} created by user {current.user_id} for {db_booking.date}")
    return db_booking


@router.get("/{booking_id}", response_model=BookingInDB)
async def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    booking = get_booking_or_404(db, booking_id)
    ensure_can_view(booking, current)
    return booking


@router.patch("/{booking_id}", response_model=BookingInDB)
async def update_booking(
    booking_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """
    Update a booking.

    Role restrictions are checked against the raw body before it is
    validated, so a forbidden field is refused even when the rest of the
    body is malformed.
    """
    db_booking = get_booking_or_404(db, booking_id)

    reason = workflow.patch_violation(
        db_booking, current.user_id, current.role, field_names_in(BookingUpdate, payload)
    )
    if reason:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=reason
        )

    try:
        booking_update = BookingUpdate.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=payload)

    update_data = booking_update.model_dump(exclude_unset=True)

    new_status = update_data.get("status")
    if new_status is not None and not workflow.can_transition(db_booking.status, new_status):
        logger.warning(
            f"Rejected status change {db_booking.status.value} -> {new_status.value} "
            f"on booking {booking_id} by user {current.user_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change booking status from {db_booking.status.value} to {new_status.value}"
        )

    if "staff_id" in update_data:
        _ensure_staff_member(db, update_data["staff_id"])

    previous_status = db_booking.status
    for key, value in update_data.items():
        if key in NOT_NULL_FIELDS and value is None:
            continue
        setattr(db_booking, key, value)

    db.commit()
    db.refresh(db_booking)

    if db_booking.status != previous_status:
        logger.info(
            f"Booking {booking_id} moved {previous_status.value} -> {db_booking.status.value} "
            f"by user {current.user_id}"
        )

    return db_booking


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """Delete a booking. Only admins or the booking owner."""
    db_booking = get_booking_or_404(db, booking_id)

    if not workflow.can_delete(db_booking, current.user_id, current.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )

    db.delete(db_booking)
    db.commit()

    logger.info(f"Booking {booking_id} deleted by user {current.user_id}")
    return {"detail": "Booking deleted successfully"}
