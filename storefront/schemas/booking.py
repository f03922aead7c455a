from datetime import datetime, timezone
from typing import Optional
from pydantic import Field, field_validator

from storefront.models.booking import BookingStatus
from storefront.schemas.base import CamelModel

MAX_ATTENDEES = 50


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Booking dates are stored as naive UTC; offset-aware input is converted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BookingBase(CamelModel):
    date: datetime
    location: str = Field(min_length=10)
    notes: Optional[str] = None
    attendees: int = Field(1, ge=1, le=MAX_ATTENDEES)

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v)

# userId and status are always set by the server
class BookingCreate(BookingBase):
    staff_id: Optional[int] = None

# userId is deliberately absent: ownership never changes after creation
class BookingUpdate(CamelModel):
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=10)
    status: Optional[BookingStatus] = None
    notes: Optional[str] = None
    attendees: Optional[int] = Field(None, ge=1, le=MAX_ATTENDEES)
    staff_id: Optional[int] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v)

class BookingInDB(BookingBase):
    id: int
    user_id: int
    status: BookingStatus
    staff_id: Optional[int] = None
    location: str
    attendees: Optional[int] = None
    created_at: Optional[datetime] = None
