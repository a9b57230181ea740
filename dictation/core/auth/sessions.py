"""
Stateless session tokens.

A session is a signed JWT carrying the user's id and email. Nothing is
stored server-side, so logging out only clears the client's cookie and a
token stays valid until it expires.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from .models import SessionUser

SESSION_MAX_AGE_DAYS = 30


class InvalidSessionError(Exception):
    """Raised when a session token is missing, malformed, forged or expired."""
    pass


@dataclass(frozen=True)
class SessionToken:
    """An issued token and the moment it stops being accepted."""
    token: str
    expires_at: datetime


class SessionManager:
    """Issues and verifies session tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        max_age_days: int = SESSION_MAX_AGE_DAYS,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._max_age = timedelta(days=max_age_days)

    @property
    def max_age_seconds(self) -> int:
        return int(self._max_age.total_seconds())

    def issue(self, user: SessionUser) -> SessionToken:
        now = datetime.now(tz=timezone.utc)
        expires_at = now + self._max_age
        payload = {
            "sub": user.id,
            "email": user.email,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        return SessionToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> SessionUser:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidSessionError(str(e)) from e

        email = payload.get("email")
        if not email:
            raise InvalidSessionError("Token has no email claim")
        return SessionUser(id=str(payload["sub"]), email=email)
