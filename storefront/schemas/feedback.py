from datetime import datetime
from typing import Optional
from pydantic import Field

from storefront.schemas.base import CamelModel

class FeedbackCreate(CamelModel):
    booking_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None

class FeedbackInDB(CamelModel):
    id: int
    booking_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
