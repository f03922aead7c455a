from datetime import datetime
from typing import Optional
from email_validator import EmailNotValidError, validate_email
from pydantic import EmailStr, Field, field_validator, model_validator

from storefront.models.user import UserRole
from storefront.schemas.base import CamelModel

# Base schema for User shared properties
class UserBase(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

# Schema for registering or creating a User
class UserCreate(UserBase):
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.CUSTOMER

# Schema for updating an existing User
class UserUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    role: Optional[UserRole] = None

# Schema for User returned to client (never carries the credential)
class UserInDB(UserBase):
    id: int
    email: str
    role: UserRole
    created_at: Optional[datetime] = None

# Login accepts either an email or a username in the "email" field
class LoginRequest(CamelModel):
    email: Optional[str] = Field(None, min_length=1)
    username: Optional[str] = Field(None, min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Match the normalization applied to stored addresses at registration."""
        if v is None or "@" not in v:
            return v
        try:
            return validate_email(v, check_deliverability=False).normalized
        except EmailNotValidError:
            return v

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.email or self.username):
            raise ValueError("Provide an email or username")
        return self

    @property
    def identifier(self) -> Optional[str]:
        return self.email or self.username
