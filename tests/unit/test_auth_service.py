"""
Unit tests for registration and the login sequence.

The user store is an in-memory fake; hashing uses the real bcrypt at
minimum cost.
"""

from typing import Optional

import pytest

from dictation.core.auth.models import AuthFailure, User
from dictation.core.auth.passwords import PasswordHasher
from dictation.core.auth.rate_limiter import RateLimiter
from dictation.core.auth.service import (
    AuthService,
    EmailAlreadyExistsError,
    RegistrationInvalidError,
)

PASSWORD = "Lobster42"


class FakeUserStore:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.lookup_error: Optional[Exception] = None

    def get_by_email(self, email: str) -> Optional[User]:
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.users.get(email)

    def create(self, email: str, password_hash: str) -> User:
        if email in self.users:
            raise EmailAlreadyExistsError(email)
        user = User(id=f"user-{len(self.users) + 1}", email=email, password_hash=password_hash)
        self.users[email] = user
        return user


@pytest.fixture
def users() -> FakeUserStore:
    return FakeUserStore()


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(max_attempts=5, window_seconds=60)


@pytest.fixture
def service(users, limiter) -> AuthService:
    return AuthService(users=users, rate_limiter=limiter, hasher=PasswordHasher(rounds=4))


@pytest.fixture
def registered(service) -> User:
    return service.register({"email": "rachel@centralperk.com", "password": PASSWORD})


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegister:

    def test_creates_user_with_hashed_password(self, service, users):
        user = service.register({"email": "rachel@centralperk.com", "password": PASSWORD})

        assert users.users["rachel@centralperk.com"] is user
        assert user.password_hash != PASSWORD
        assert PasswordHasher(rounds=4).verify(PASSWORD, user.password_hash)

    def test_rejects_password_without_uppercase(self, service, users):
        with pytest.raises(RegistrationInvalidError) as exc_info:
            service.register({"email": "rachel@centralperk.com", "password": "password1"})

        assert "uppercase" in exc_info.value.field_errors["password"][0]
        assert users.users == {}

    def test_rejects_duplicate_email(self, service, registered):
        with pytest.raises(EmailAlreadyExistsError):
            service.register({"email": "rachel@centralperk.com", "password": "Another99"})

    def test_email_uniqueness_is_case_sensitive(self, service, registered):
        user = service.register({"email": "Rachel@centralperk.com", "password": PASSWORD})
        assert user.email == "Rachel@centralperk.com"


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

class TestAuthorize:

    def test_valid_credentials_return_session_user(self, service, registered):
        result = service.authorize({"email": "rachel@centralperk.com", "password": PASSWORD})

        assert result.ok
        assert result.user.id == registered.id
        assert result.user.email == "rachel@centralperk.com"

    def test_invalid_input_does_not_count_against_limit(self, service, limiter):
        result = service.authorize({"email": "not-an-email", "password": PASSWORD})

        assert result.failure == AuthFailure.INVALID_INPUT
        assert len(limiter) == 0

    def test_unknown_email(self, service):
        result = service.authorize({"email": "gunther@centralperk.com", "password": PASSWORD})
        assert result.failure == AuthFailure.USER_NOT_FOUND

    def test_wrong_password(self, service, registered):
        result = service.authorize({"email": "rachel@centralperk.com", "password": "Wrong1234"})

        assert not result.ok
        assert result.failure == AuthFailure.INVALID_PASSWORD

    def test_email_lookup_is_case_sensitive(self, service, registered):
        result = service.authorize({"email": "RACHEL@centralperk.com", "password": PASSWORD})
        assert result.failure == AuthFailure.USER_NOT_FOUND

    def test_sixth_attempt_rejected_even_with_correct_password(self, service, registered):
        for _ in range(5):
            service.authorize({"email": "rachel@centralperk.com", "password": "Wrong1234"})

        result = service.authorize({"email": "rachel@centralperk.com", "password": PASSWORD})

        assert result.failure == AuthFailure.RATE_LIMITED

    def test_success_resets_attempt_count(self, service, registered, limiter):
        for _ in range(4):
            service.authorize({"email": "rachel@centralperk.com", "password": "Wrong1234"})

        assert service.authorize({"email": "rachel@centralperk.com", "password": PASSWORD}).ok
        assert len(limiter) == 0

    def test_lookup_failure_is_reported_not_raised(self, service, users):
        users.lookup_error = RuntimeError("connection reset")

        result = service.authorize({"email": "rachel@centralperk.com", "password": PASSWORD})

        assert result.failure == AuthFailure.LOOKUP_FAILED
