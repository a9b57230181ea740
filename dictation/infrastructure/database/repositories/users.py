"""
Repository for user accounts.

Translates between UserRow and the auth domain's User. The auth service
only sees the UserStore protocol; this is the SQLAlchemy implementation.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ....core.auth.models import User
from ....core.auth.service import EmailAlreadyExistsError
from ..models import UserRow

logger = logging.getLogger(__name__)


class UserRepository:
    """
    Repository for account persistence.

    Emails are stored and matched exactly as given. The unique index on
    email is the final guard against concurrent duplicate signups.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._session.execute(
            select(UserRow).where(UserRow.email == email)
        ).scalar_one_or_none()
        return self._to_domain(row) if row else None

    def create(self, email: str, password_hash: str) -> User:
        """Insert a user. Raises EmailAlreadyExistsError on a duplicate email."""
        row = UserRow(email=email, password_hash=password_hash)
        self._session.add(row)

        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            raise EmailAlreadyExistsError(email)
        except Exception as e:
            self._session.rollback()
            logger.error("Failed to create user", extra={"error": str(e)})
            raise

        return self._to_domain(row)

    @staticmethod
    def _to_domain(row: UserRow) -> User:
        return User(
            id=row.id,
            email=row.email,
            password_hash=row.password_hash,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
