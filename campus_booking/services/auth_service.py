"""Access-code login issuing bearer tokens bound to an actor."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Callable, Optional

from campus_booking.domain.models import Actor, Role
from campus_booking.utils.config import Settings, get_settings
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)

# Each role has its own code, so holding one code never grants another role.
_ROLE_CODES = {
    Role.ADMIN: ("admin_access_code", "ADMIN_TOKEN"),
    Role.CLASS_REPRESENTATIVE: ("class_rep_access_code", "CLASS_REP_ACCESS_CODE"),
    Role.STUDENT: ("student_access_code", "STUDENT_ACCESS_CODE"),
}


class AuthenticationError(Exception):
    """Base authentication failure."""


class AccessCodeNotConfiguredError(AuthenticationError):
    """Raised when no access code is configured for the requested role."""


class InvalidAccessCodeError(AuthenticationError):
    """Raised when the provided access code is wrong."""


class InvalidSessionTokenError(AuthenticationError):
    """Raised when a bearer token does not belong to an active session."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Validates access codes and maps session tokens to actors.

    Sessions expire ``session_ttl_minutes`` after login; expired entries are
    purged on every login and rejected on lookup.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or _utc_now
        self._sessions: dict[str, tuple[Actor, datetime]] = {}
        self._lock = RLock()

    def _expected_code(self, role: Role) -> str:
        attribute, variable = _ROLE_CODES[role]
        code = getattr(self._settings, attribute)
        if not code:
            raise AccessCodeNotConfiguredError(
                f"{variable} is not configured. Set {variable} in environment variables."
            )
        return code

    def _purge_expired(self, now: datetime) -> None:
        expired = [token for token, (_, expires_at) in self._sessions.items() if expires_at <= now]
        for token in expired:
            del self._sessions[token]

    @property
    def active_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)

    def login(
        self,
        *,
        user_id: str,
        name: str,
        role: Role,
        access_code: str,
        roll_number: Optional[str] = None,
    ) -> str:
        expected = self._expected_code(role)
        if not secrets.compare_digest(access_code.encode(), expected.encode()):
            logger.warning("Rejected login for %s as %s", user_id, role.value)
            raise InvalidAccessCodeError("Invalid access code")
        token = secrets.token_urlsafe(32)
        actor = Actor(user_id=user_id, name=name, role=role, roll_number=roll_number)
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            self._sessions[token] = (
                actor,
                now + timedelta(minutes=self._settings.session_ttl_minutes),
            )
        logger.info("Session opened for %s as %s", user_id, role.value)
        return token

    def resolve(self, bearer_token: str) -> Actor:
        with self._lock:
            session = self._sessions.get(bearer_token)
            if session is not None:
                actor, expires_at = session
                if expires_at > self._clock():
                    return actor
                del self._sessions[bearer_token]
        raise InvalidSessionTokenError("Invalid or expired bearer token. Login first.")

    def logout(self, bearer_token: str) -> None:
        with self._lock:
            self._sessions.pop(bearer_token, None)
