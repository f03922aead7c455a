import logging
from functools import lru_cache
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from storefront.core import sessions
from storefront.core.security import hash_password, needs_rehash, verify_password
from storefront.database.session import get_db
from storefront.models.user import User, UserRole
from storefront.models.user_session import UserSession
from storefront.schemas.user import LoginRequest, UserCreate, UserInDB

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid credentials"


def _session_token(request: Request) -> Optional[str]:
    return request.session.get(sessions.SESSION_TOKEN_KEY)


def get_optional_session(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[UserSession]:
    """Resolve the caller's session, or None for anonymous requests."""
    record = sessions.resolve_session(db, _session_token(request))
    if record is None and _session_token(request):
        # Cookie points at an expired or destroyed session
        request.session.clear()
    return record


def get_current_session(
    record: Optional[UserSession] = Depends(get_optional_session)
) -> UserSession:
    """Authenticated gate: the request must carry a live session."""
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return record


def check_user_role(roles: List[UserRole]):
    """Build a gate that admits only sessions bound to one of the given roles."""
    def role_checker(record: UserSession = Depends(get_current_session)) -> UserSession:
        if record.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return record
    return role_checker


require_admin = check_user_role([UserRole.ADMIN])
require_staff = check_user_role([UserRole.STAFF, UserRole.ADMIN])


def _bind_session(request: Request, db: Session, user: User):
    request.session.clear()
    record = sessions.create_session(db, user)
    request.session[sessions.SESSION_TOKEN_KEY] = record.token


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


def _verify_unknown_user(password: str) -> bool:
    # Spend the same bcrypt work as a real check
    return verify_password(password, _dummy_hash())


@router.post("/register", response_model=UserInDB, status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current: Optional[UserSession] = Depends(get_optional_session)
):
    """Register a new account. Admins use this to create users with any role."""
    by_admin = current is not None and current.role == UserRole.ADMIN

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

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=await run_in_threadpool(hash_password, user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        phone=user_in.phone,
        address=user_in.address,
        role=user_in.role if by_admin else UserRole.CUSTOMER,
    )
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

    if not by_admin:
        _bind_session(request, db, user)

    logger.info(f"Registered user {user.username} ({user.role.value})")
    return user


@router.post("/login", response_model=UserInDB)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """Log in with an email or username. Failures never reveal which part was wrong."""
    identifier = credentials.identifier
    user = db.query(User).filter(User.email == identifier).first()
    if not user:
        user = db.query(User).filter(User.username == identifier).first()

    if not user:
        await run_in_threadpool(_verify_unknown_user, credentials.password)
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS
        )

    if not await run_in_threadpool(verify_password, credentials.password, user.password_hash):
        logger.warning(f"Failed login attempt for user {user.id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS
        )

    if needs_rehash(user.password_hash):
        user.password_hash = await run_in_threadpool(hash_password, credentials.password)
        db.commit()
        logger.info(f"Upgraded legacy credential for user {user.id}")

    _bind_session(request, db, user)
    logger.info(f"User {user.username} logged in")
    return user


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    """Destroy the current session, if any."""
    sessions.destroy_session(db, _session_token(request))
    request.session.clear()
    return {"detail": "Logged out successfully"}


@router.get("/me", response_model=Optional[UserInDB])
async def me(
    request: Request,
    record: Optional[UserSession] = Depends(get_optional_session),
    db: Session = Depends(get_db)
):
    """Return the logged-in user, or 401 with a null body."""
    if record is None:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=None)

    user = db.query(User).filter(User.id == record.user_id).first()
    if not user:
        sessions.destroy_session(db, record.token)
        request.session.clear()
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=None)

    return user
