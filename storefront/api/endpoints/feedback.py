import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.database.session import get_db
from storefront.models.feedback import Feedback
from storefront.models.user_session import UserSession
from storefront.schemas.feedback import FeedbackCreate, FeedbackInDB
from storefront.api.endpoints.auth import get_current_session, require_staff
from storefront.api.endpoints.bookings import ensure_can_view, get_booking_or_404

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_FEEDBACK = "Feedback already exists for this booking"


def _feedback_exists(db: Session, booking_id: int) -> bool:
    return db.query(Feedback.id).filter(Feedback.booking_id == booking_id).first() is not None


@router.post("", response_model=FeedbackInDB, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    feedback: FeedbackCreate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """Leave feedback on one of the caller's bookings. One entry per booking."""
    booking = get_booking_or_404(db, feedback.booking_id)

    if booking.user_id != current.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only provide feedback for your own bookings"
        )

    if _feedback_exists(db, booking.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DUPLICATE_FEEDBACK
        )

    db_feedback = Feedback(
        booking_id=booking.id,
        user_id=current.user_id,
        rating=feedback.rating,
        comment=feedback.comment,
    )
    db.add(db_feedback)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission for the same booking
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DUPLICATE_FEEDBACK
        )
    db.refresh(db_feedback)

    logger.info(f"Feedback {db_feedback.id} ({db_feedback.rating}/5) left on booking {booking.id}")
    return db_feedback


@router.get("", response_model=List[FeedbackInDB])
async def get_all_feedback(
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_staff)
):
    """All feedback, newest first (staff and admins)."""
    return db.query(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc()).all()


@router.get("/booking/{booking_id}", response_model=FeedbackInDB)
async def get_booking_feedback(
    booking_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """Feedback for a single booking, visible to whoever may see the booking."""
    booking = get_booking_or_404(db, booking_id)
    ensure_can_view(booking, current)

    feedback = db.query(Feedback).filter(Feedback.booking_id == booking_id).first()
    if not feedback:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No feedback found for this booking"
        )
    return feedback
