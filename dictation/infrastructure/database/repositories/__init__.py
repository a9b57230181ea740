"""
Repository pattern implementations for SQLAlchemy.

Repositories translate between domain models and database representations.
"""

from .clips import ClipRepository
from .users import UserRepository

__all__ = ["ClipRepository", "UserRepository"]
