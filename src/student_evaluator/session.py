"""Explicit login sessions carrying the caller's identity and role."""

import hashlib
import hmac
import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from .errors import AuthenticationError, AuthorizationError
from .models.users import Role
from .store import GradebookStore

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash a password as 'pbkdf2_sha256$<iterations>$<salt>$<hex digest>'."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        _, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


class Session(BaseModel):
    """An authenticated caller."""

    model_config = {"frozen": True}

    token: str = Field(..., description="Opaque bearer token")
    user_id: str = Field(..., description="Authenticated user")
    role: str = Field(..., description="Role at login time")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Login time")

    def has_role(self, *roles: Role) -> bool:
        return Role.parse(self.role) in roles


def require_role(session: Session, *roles: Role) -> None:
    """Raise AuthorizationError unless the session has one of the roles."""
    if not session.has_role(*roles):
        allowed = ", ".join(r.value for r in roles)
        raise AuthorizationError(f"Role '{session.role}' is not allowed; requires one of: {allowed}")


class SessionManager:
    """Create sessions at login and destroy them at logout."""

    def __init__(self, store: GradebookStore, ttl_minutes: Optional[int] = None):
        """Initialize session manager.

        Args:
            store: Store holding user accounts.
            ttl_minutes: Session lifetime; None keeps sessions until logout.
        """
        self.store = store
        self.ttl = timedelta(minutes=ttl_minutes) if ttl_minutes else None
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def login(self, username: str, password: str) -> Session:
        user = self.store.find_user_by_username(username)
        if user is None or not user.password_hash or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        session = Session(token=secrets.token_urlsafe(32), user_id=user.id, role=user.role)
        with self._lock:
            self._sessions[session.token] = session
        logger.info(f"User {user.username} logged in as {user.role}")
        return session

    def get(self, token: str, now: Optional[datetime] = None) -> Session:
        """Look up a live session by token."""
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise AuthenticationError("Unknown or expired session")
            if self.ttl is not None and (now or datetime.utcnow()) - session.created_at > self.ttl:
                del self._sessions[token]
                raise AuthenticationError("Unknown or expired session")
        return session

    def logout(self, token: str) -> None:
        with self._lock:
            session = self._sessions.pop(token, None)
        if session is not None:
            logger.info(f"User {session.user_id} logged out")

    @property
    def active_count(self) -> int:
        return len(self._sessions)
