"""Password hashing with bcrypt via passlib."""

from passlib.context import CryptContext

DEFAULT_ROUNDS = 12


class PasswordHasher:
    """Hashes and verifies passwords. Hashes are never logged or returned to clients."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """True if password matches. Malformed hashes count as a mismatch."""
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            return False
