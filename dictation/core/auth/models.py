"""Domain models for accounts and sessions."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


@dataclass
class User:
    """A registered account. password_hash never leaves the server."""
    id: str
    email: str
    password_hash: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SessionUser:
    """The identity carried inside a session token."""
    id: str
    email: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "email": self.email}


class AuthFailure(str, Enum):
    """
    Why a login attempt failed.

    Used for logging and tests only. Callers of the HTTP API always see
    the same generic "invalid credentials" error, so nobody can probe
    which emails are registered.
    """
    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    USER_NOT_FOUND = "user_not_found"
    INVALID_PASSWORD = "invalid_password"
    LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a login attempt: exactly one of user or failure is set."""
    user: Optional[SessionUser] = None
    failure: Optional[AuthFailure] = None

    @property
    def ok(self) -> bool:
        return self.user is not None

    @classmethod
    def success(cls, user: SessionUser) -> "AuthResult":
        return cls(user=user)

    @classmethod
    def failed(cls, failure: AuthFailure) -> "AuthResult":
        return cls(failure=failure)
