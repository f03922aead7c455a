from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum

from storefront.database.session import Base
from storefront.models.user import UserRole

class UserSession(Base):
    """Server-side half of a login session; the cookie only carries the token."""
    __tablename__ = "user_sessions"

    token = Column(String, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(UserRole), nullable=False)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
