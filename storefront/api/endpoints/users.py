import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from storefront.core import sessions
from storefront.core.security import hash_password
from storefront.database.session import get_db
from storefront.models.booking import Booking
from storefront.models.feedback import Feedback
from storefront.models.user import User, UserRole
from storefront.models.user_session import UserSession
from storefront.schemas.user import UserCreate, UserInDB, UserUpdate
from storefront.api.endpoints.auth import get_current_session, require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def _ensure_admin_or_self(record: UserSession, user_id: int):
    if record.role != UserRole.ADMIN and record.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )


@router.get("", response_model=List[UserInDB])
async def get_users(
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """List every user (admin only)."""
    return db.query(User).order_by(User.id).all()


@router.post("", response_model=UserInDB, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Create a user with any role (admin only)."""
    if db.query(User).filter(User.email == user_in.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already in use"
        )
    if db.query(User).filter(User.username == user_in.username).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already in use"
        )

    data = user_in.model_dump(exclude={"password"})
    user = User(**data, password_hash=await run_in_threadpool(hash_password, user_in.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already in use"
        )
    db.refresh(user)

    logger.info(f"Admin {current.user_id} created user {user.id} ({user.role.value})")
    return user


@router.get("/{user_id}", response_model=UserInDB)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """Get a user. Only admins or the user themselves."""
    _ensure_admin_or_self(current, user_id)
    return _get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=UserInDB)
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(get_current_session)
):
    """Update a profile. Only admins may change roles, and never their own."""
    _ensure_admin_or_self(current, user_id)

    update_data = user_update.model_dump(exclude_unset=True)

    if "role" in update_data:
        if current.role != UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot change role"
            )
        if current.user_id == user_id and update_data["role"] != UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot change your own role"
            )

    db_user = _get_user_or_404(db, user_id)

    for field in ("username", "email"):
        value = update_data.get(field)
        if value is None:
            continue
        clash = db.query(User).filter(getattr(User, field) == value, User.id != user_id).first()
        if clash:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field.capitalize()} already in use"
            )

    password = update_data.pop("password", None)
    if password:
        db_user.password_hash = await run_in_threadpool(hash_password, password)

    for key, value in update_data.items():
        if key in ("username", "email", "role") and value is None:
            continue
        setattr(db_user, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already in use"
        )
    db.refresh(db_user)

    if "role" in update_data and update_data["role"] is not None:
        sessions.rebind_role(db, db_user.id, db_user.role)
        logger.info(f"User {db_user.id} role set to {db_user.role.value}")

    return db_user


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Delete a user (admin only). Admins cannot delete themselves."""
    if current.user_id == user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )

    db_user = _get_user_or_404(db, user_id)

    owns_bookings = db.query(Booking).filter(Booking.user_id == user_id).first()
    wrote_feedback = db.query(Feedback).filter(Feedback.user_id == user_id).first()
    if owns_bookings or wrote_feedback:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete user with existing bookings"
        )

    # Assignments fall back to unassigned
    db.query(Booking).filter(Booking.staff_id == user_id).update({Booking.staff_id: None})
    sessions.destroy_user_sessions(db, user_id)

    db.delete(db_user)
    db.commit()

    logger.info(f"Admin {current.user_id} deleted user {user_id}")
    return {"detail": "User deleted successfully"}
