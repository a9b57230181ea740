"""
Account registration and credential login.

Login runs as a fixed sequence of steps. The first failing step ends the
attempt:

    received -> schema-validated -> rate-limit-checked
             -> user-looked-up -> password-verified -> session-issued

Every step reports its own AuthFailure so logs and tests can tell the
steps apart. The HTTP layer collapses them all into one generic error.
The rate limit is keyed by the submitted email and is reset only after
a fully successful login.
"""

import logging
from typing import Any, Optional, Protocol

from .credentials import LoginCredentials, SignupCredentials, parse_credentials
from .models import AuthFailure, AuthResult, SessionUser, User
from .passwords import PasswordHasher
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class EmailAlreadyExistsError(Exception):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("An account with this email already exists")


class RegistrationInvalidError(Exception):
    """Raised when signup input fails validation."""

    def __init__(self, field_errors: dict[str, list[str]]) -> None:
        self.field_errors = field_errors
        super().__init__("Invalid input data")


class UserStore(Protocol):
    """Persistence operations the auth service needs."""

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def create(self, email: str, password_hash: str) -> User:
        """Insert a user. Raises EmailAlreadyExistsError on a duplicate email."""
        ...


class AuthService:
    """Registers accounts and checks login credentials."""

    def __init__(
        self,
        users: UserStore,
        rate_limiter: RateLimiter,
        hasher: PasswordHasher,
    ) -> None:
        self._users = users
        self._rate_limiter = rate_limiter
        self._hasher = hasher

    def register(self, payload: Any) -> User:
        """
        Create an account from a raw {email, password} payload.

        Raises RegistrationInvalidError or EmailAlreadyExistsError. Any other
        exception is an infrastructure failure and propagates unchanged.
        """
        credentials, field_errors = parse_credentials(SignupCredentials, payload)
        if credentials is None:
            raise RegistrationInvalidError(field_errors)

        if self._users.get_by_email(credentials.email) is not None:
            raise EmailAlreadyExistsError(credentials.email)

        password_hash = self._hasher.hash(credentials.password)
        user = self._users.create(credentials.email, password_hash)

        logger.info("User registered", extra={"user_id": user.id})
        return user

    def authorize(self, payload: Any) -> AuthResult:
        """Check a raw {email, password} payload and return the outcome."""
        credentials, _ = parse_credentials(LoginCredentials, payload)
        if credentials is None:
            return AuthResult.failed(AuthFailure.INVALID_INPUT)

        email = credentials.email

        limit = self._rate_limiter.check(email)
        if not limit.allowed:
            return self._fail(AuthFailure.RATE_LIMITED, email)

        try:
            user = self._users.get_by_email(email)
        except Exception as e:
            logger.error("User lookup failed during login", extra={"error": str(e)})
            return AuthResult.failed(AuthFailure.LOOKUP_FAILED)

        if user is None:
            return self._fail(AuthFailure.USER_NOT_FOUND, email)

        if not self._hasher.verify(credentials.password, user.password_hash):
            return self._fail(AuthFailure.INVALID_PASSWORD, email)

        self._rate_limiter.reset(email)
        logger.info("User logged in", extra={"user_id": user.id})
        return AuthResult.success(SessionUser(id=user.id, email=user.email))

    def _fail(self, failure: AuthFailure, email: str) -> AuthResult:
        logger.warning(
            "Login rejected",
            extra={"reason": failure.value, "identifier": email},
        )
        return AuthResult.failed(failure)
