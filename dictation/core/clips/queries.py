"""
Validation of clip listing query parameters.

Query strings arrive as raw text. Missing or empty values take the
defaults; anything else must coerce cleanly to the declared type.
"""

from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from ..validation import collect_field_errors
from .models import DifficultyLevel

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class InvalidQueryError(Exception):
    """Raised when list query parameters fail validation."""

    def __init__(self, field_errors: dict[str, list[str]]) -> None:
        self.field_errors = field_errors
        super().__init__("Invalid query parameters")


class ClipQuery(BaseModel):
    """Validated parameters for listing clips."""
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    offset: int = Field(default=0, ge=0)
    difficulty: Optional[DifficultyLevel] = None

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "ClipQuery":
        """
        Build a query from raw query-string values.

        Raises InvalidQueryError with per-field messages on bad input.
        """
        raw = {
            key: params.get(key)
            for key in ("limit", "offset", "difficulty")
            if params.get(key)
        }
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise InvalidQueryError(collect_field_errors(exc)) from exc
