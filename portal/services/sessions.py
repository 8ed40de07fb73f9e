"""Single active session, persisted so it survives reloads."""
from __future__ import annotations

from datetime import datetime, timedelta
import logging
import secrets
from typing import Any, Callable, Optional

from portal.models.base import utcnow
from portal.models.session import Session
from portal.models.user import User
from portal.storage import TABLES, PersistenceAdapter
from portal.stores.users import UsersStore

logger = logging.getLogger(__name__)

SESSION_FIELDS = ("name", "school_name", "profile_image")


class SessionManager:
    def __init__(
        self,
        adapter: PersistenceAdapter,
        users: UsersStore,
        timeout_minutes: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._adapter = adapter
        self.users = users
        self.timeout = timedelta(minutes=timeout_minutes)
        self._clock = clock
        self._current: Optional[Session] = None

    def _save(self, session: Session) -> None:
        self._adapter.save_one(TABLES["current_user"], session)
        self._current = session

    def _is_valid(self, session: Optional[Session]) -> bool:
        return session is not None and self._clock() < session.expires_at

    def create_session(self, user: User) -> Session:
        now = self._clock()
        session = Session(
            session_id=f"session_{secrets.token_urlsafe(16)}",
            user_id=user.id,
            email=user.email,
            role=user.role,
            name=user.name,
            school_name=user.school_name,
            profile_image=user.profile_image,
            created_at=now,
            last_activity=now,
            expires_at=now + self.timeout,
        )
        self._save(session)
        logger.info(f"Session started for {user.email}")
        return session

    def current_session(self) -> Optional[Session]:
        session = self._current or self._adapter.load_one(TABLES["current_user"], Session)
        if session is None:
            return None
        if not self._is_valid(session):
            logger.info(f"Session for {session.email} expired")
            self.destroy_session()
            return None
        self._current = session
        return session

    def validate_session(self) -> dict[str, Any]:
        session = self.current_session()
        if session is None:
            return {"valid": False, "message": "No active session", "reason": "NO_SESSION"}
        if self.users.find_by_id(session.user_id) is None:
            self.destroy_session()
            return {"valid": False, "message": "Session user not found", "reason": "VERIFICATION_FAILED"}
        session = self.update_activity()
        return {"valid": True, "session": session, "message": "Session is valid"}

    def update_activity(self) -> Optional[Session]:
        session = self.current_session()
        if session is None:
            return None
        now = self._clock()
        session = session.model_copy(update={"last_activity": now, "expires_at": now + self.timeout})
        self._save(session)
        return session

    def update_session(self, changes: dict[str, Any]) -> Optional[Session]:
        """Patch the signed-in user's profile and mirror display fields into the session."""
        session = self.current_session()
        if session is None:
            return None
        user = self.users.update(session.user_id, changes)
        mirrored = {key: getattr(user, key) for key in SESSION_FIELDS}
        session = session.model_copy(update={**mirrored, "email": user.email, "last_activity": self._clock()})
        self._save(session)
        return session

    def extend_session(self, minutes: int) -> Optional[Session]:
        session = self.current_session()
        if session is None:
            return None
        session = session.model_copy(
            update={"expires_at": self._clock() + self.timeout + timedelta(minutes=minutes)}
        )
        self._save(session)
        return session

    def time_until_expiry(self) -> dict[str, Any]:
        session = self.current_session()
        if session is None:
            return {"expired": True, "minutes": 0, "seconds": 0, "message": "No active session"}
        remaining = int((session.expires_at - self._clock()).total_seconds())
        return {
            "expired": False,
            "minutes": remaining // 60,
            "seconds": remaining % 60,
            "message": "Session is active",
        }

    def destroy_session(self) -> None:
        self._adapter.delete(TABLES["current_user"])
        self._current = None
