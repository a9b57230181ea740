"""
Authentication logic.

Contains credential schemas, password hashing, the login rate limiter,
session tokens and the auth service that ties them together.
"""

from .credentials import LoginCredentials, SignupCredentials
from .models import AuthFailure, AuthResult, SessionUser, User
from .passwords import PasswordHasher
from .rate_limiter import RateLimiter, RateLimitResult
from .service import (
    AuthService,
    EmailAlreadyExistsError,
    RegistrationInvalidError,
)
from .sessions import InvalidSessionError, SessionManager, SessionToken

__all__ = [
    "LoginCredentials",
    "SignupCredentials",
    "AuthFailure",
    "AuthResult",
    "SessionUser",
    "User",
    "PasswordHasher",
    "RateLimiter",
    "RateLimitResult",
    "AuthService",
    "EmailAlreadyExistsError",
    "RegistrationInvalidError",
    "InvalidSessionError",
    "SessionManager",
    "SessionToken",
]
