from datetime import datetime, timedelta
from typing import Any, Dict
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.core.security import utcnow
from storefront.database.session import get_db
from storefront.models.booking import Booking, BookingStatus
from storefront.models.feedback import Feedback
from storefront.models.product import Product
from storefront.models.user import User, UserRole
from storefront.models.user_session import UserSession
from storefront.schemas.booking import BookingInDB
from storefront.schemas.feedback import FeedbackInDB
from storefront.services.bookings import TERMINAL_STATUSES
from storefront.api.endpoints.auth import require_admin, require_staff

router = APIRouter()

LOW_STOCK_THRESHOLD = 5
RECENT_LIMIT = 5


def _status_counts(query) -> Dict[str, int]:
    """Count bookings per status, reporting zero for statuses with none."""
    counts = {booking_status.value: 0 for booking_status in BookingStatus}
    rows = query.with_entities(
        Booking.status, func.count(Booking.id)
    ).group_by(Booking.status).all()
    for booking_status, count in rows:
        counts[booking_status.value] = count
    return counts


def _average(value) -> float:
    return round(float(value), 2) if value is not None else 0.0


@router.get("/overview")
async def get_dashboard_overview(
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
) -> Dict[str, Any]:
    """Key store metrics for the admin dashboard."""
    # Users by role
    users_by_role = {role.value: 0 for role in UserRole}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        users_by_role[role.value] = count

    # Catalog
    total_products = db.query(func.count(Product.id)).scalar() or 0
    featured_products = db.query(func.count(Product.id)).filter(
        Product.featured.is_(True)
    ).scalar() or 0
    low_stock_products = db.query(func.count(Product.id)).filter(
        Product.in_stock.is_(True),
        Product.stock_count < LOW_STOCK_THRESHOLD
    ).scalar() or 0

    # Bookings and feedback
    bookings_by_status = _status_counts(db.query(Booking))
    feedback_count, average_rating = db.query(
        func.count(Feedback.id), func.avg(Feedback.rating)
    ).one()

    return {
        "totalUsers": sum(users_by_role.values()),
        "usersByRole": users_by_role,
        "totalProducts": total_products,
        "featuredProducts": featured_products,
        "lowStockProducts": low_stock_products,
        "totalBookings": sum(bookings_by_status.values()),
        "bookingsByStatus": bookings_by_status,
        "feedbackCount": feedback_count or 0,
        "averageRating": _average(average_rating),
        "timestamp": utcnow()
    }


@router.get("/staff")
async def get_staff_dashboard(
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_staff)
) -> Dict[str, Any]:
    """The caller's assigned bookings: today's load, what's next, recent feedback."""
    assigned = db.query(Booking).filter(Booking.staff_id == current.user_id)

    now = utcnow()
    day_start = datetime(now.year, now.month, now.day)
    day_end = day_start + timedelta(days=1)

    todays_bookings = assigned.filter(
        Booking.date >= day_start, Booking.date < day_end
    ).count()

    upcoming = assigned.filter(
        Booking.date >= now,
        Booking.status.notin_(list(TERMINAL_STATUSES))
    ).order_by(Booking.date).limit(RECENT_LIMIT).all()

    feedback_query = db.query(Feedback).join(
        Booking, Booking.id == Feedback.booking_id
    ).filter(
        Booking.staff_id == current.user_id
    )
    recent_feedback = feedback_query.order_by(
        Feedback.created_at.desc(), Feedback.id.desc()
    ).limit(RECENT_LIMIT).all()
    average_rating = feedback_query.with_entities(func.avg(Feedback.rating)).scalar()

    return {
        "bookingsByStatus": _status_counts(assigned),
        "todaysBookings": todays_bookings,
        "upcomingBookings": [
            BookingInDB.model_validate(booking).model_dump(by_alias=True, mode="json")
            for booking in upcoming
        ],
        "recentFeedback": [
            FeedbackInDB.model_validate(entry).model_dump(by_alias=True, mode="json")
            for entry in recent_feedback
        ],
        "averageRating": _average(average_rating),
        "timestamp": now
    }
