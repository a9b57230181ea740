"""Unit tests for JWT session tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from dictation.core.auth.models import SessionUser
from dictation.core.auth.sessions import InvalidSessionError, SessionManager

SECRET = "unit-test-secret"


@pytest.fixture
def sessions() -> SessionManager:
    return SessionManager(secret_key=SECRET)


@pytest.fixture
def user() -> SessionUser:
    return SessionUser(id="user-42", email="phoebe@centralperk.com")


class TestSessionManager:

    def test_issued_token_verifies_to_same_user(self, sessions, user):
        token = sessions.issue(user)
        assert sessions.verify(token.token) == user

    def test_token_lasts_thirty_days(self, sessions, user):
        before = datetime.now(timezone.utc)
        token = sessions.issue(user)

        assert token.expires_at - before >= timedelta(days=30) - timedelta(seconds=5)
        assert token.expires_at - before <= timedelta(days=30, seconds=5)
        assert sessions.max_age_seconds == 30 * 24 * 60 * 60

    def test_expired_token_is_rejected(self, user):
        expired = SessionManager(secret_key=SECRET, max_age_days=-1).issue(user)

        with pytest.raises(InvalidSessionError):
            SessionManager(secret_key=SECRET).verify(expired.token)

    def test_token_signed_with_other_secret_is_rejected(self, sessions, user):
        forged = SessionManager(secret_key="someone-else").issue(user)

        with pytest.raises(InvalidSessionError):
            sessions.verify(forged.token)

    def test_garbage_token_is_rejected(self, sessions):
        with pytest.raises(InvalidSessionError):
            sessions.verify("not.a.jwt")

    def test_token_without_email_is_rejected(self, sessions):
        token = jwt.encode(
            {"sub": "user-42", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidSessionError, match="email"):
            sessions.verify(token)
