import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.security import generate_session_token, utcnow
from storefront.models.user import User, UserRole
from storefront.models.user_session import UserSession

logger = logging.getLogger(__name__)

# Key under which the signed cookie stores the session token
SESSION_TOKEN_KEY = "sid"


def create_session(db: Session, user: User, max_age: Optional[int] = None) -> UserSession:
    """Bind a new server-side session to a user and return it."""
    now = utcnow()
    record = UserSession(
        token=generate_session_token(),
        user_id=user.id,
        role=user.role,
        created_at=now,
        expires_at=now + timedelta(seconds=max_age or settings.SESSION_MAX_AGE),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def resolve_session(db: Session, token: Optional[str]) -> Optional[UserSession]:
    """Look up a live session by token. Expired records are removed on sight."""
    if not token:
        return None

    record = db.query(UserSession).filter(UserSession.token == token).first()
    if not record:
        return None

    if record.expires_at <= utcnow():
        db.delete(record)
        db.commit()
        return None

    return record


def destroy_session(db: Session, token: Optional[str]) -> bool:
    if not token:
        return False
    deleted = db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()
    return deleted > 0


def destroy_user_sessions(db: Session, user_id: int) -> int:
    deleted = db.query(UserSession).filter(UserSession.user_id == user_id).delete()
    db.commit()
    return deleted


def rebind_role(db: Session, user_id: int, role: UserRole) -> int:
    """Point every live session of a user at their new role."""
    updated = db.query(UserSession).filter(UserSession.user_id == user_id).update(
        {UserSession.role: role}
    )
    db.commit()
    return updated


def sweep_expired(db: Session) -> int:
    removed = db.query(UserSession).filter(UserSession.expires_at <= utcnow()).delete()
    db.commit()
    return removed


class SessionSweeper:
    """Periodically removes expired sessions while the application runs."""

    def __init__(self, session_factory: Callable[[], Session], interval: Optional[int] = None):
        self.session_factory = session_factory
        self.interval = interval or settings.SESSION_SWEEP_INTERVAL
        self.running = False
        self._task: Optional[asyncio.Task] = None

    def run_cycle(self) -> int:
        """Run one sweep and return how many sessions were removed."""
        db = self.session_factory()
        try:
            removed = sweep_expired(db)
        finally:
            db.close()
        if removed:
            logger.info(f"Removed {removed} expired sessions")
        return removed

    async def start(self):
        self.running = True
        self._task = asyncio.create_task(self._run_cycles())
        logger.info(f"Session sweeper started (interval {self.interval}s)")

    async def stop(self):
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Session sweeper stopped")

    async def _run_cycles(self):
        while self.running:
            await asyncio.sleep(self.interval)
            try:
                await asyncio.to_thread(self.run_cycle)
            except Exception as e:
                logger.error(f"Error sweeping expired sessions: {str(e)}")
