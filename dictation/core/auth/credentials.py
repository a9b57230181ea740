"""
Credential schemas for signup and login.

Signup enforces the password policy: at least 8 characters, one uppercase
letter and one number. Login only checks that both fields are present
and the email is well formed, so policy changes never lock out existing
accounts.

Emails are kept exactly as submitted; lookups are case-sensitive. Addresses
on special-use domains (.local, .test, .localhost and the like) are
rejected as undeliverable.
"""

import re
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from ..validation import collect_field_errors

MIN_PASSWORD_LENGTH = 8

_UPPERCASE = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")


def _check_email(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise PydanticCustomError("email_required", "Email is required")
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError("email_invalid", "Invalid email format")
    return value


class LoginCredentials(BaseModel):
    """Email and password submitted to the login endpoint."""
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, value: Any) -> str:
        return _check_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _validate_password(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("password_required", "Password is required")
        return value


class SignupCredentials(BaseModel):
    """Email and password submitted to the registration endpoint."""
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, value: Any) -> str:
        return _check_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _validate_password(cls, value: Any) -> str:
        if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                "Password must be at least {min_length} characters",
                {"min_length": MIN_PASSWORD_LENGTH},
            )
        if not _UPPERCASE.search(value):
            raise PydanticCustomError(
                "password_no_uppercase",
                "Password must contain at least one uppercase letter",
            )
        if not _DIGIT.search(value):
            raise PydanticCustomError(
                "password_no_number",
                "Password must contain at least one number",
            )
        return value


def parse_credentials(model: type[BaseModel], payload: Any) -> tuple[Any, dict[str, list[str]]]:
    """
    Validate payload against model.

    Returns (credentials, {}) on success or (None, field_errors) on failure.
    Non-mapping payloads fail on every field.
    """
    if not isinstance(payload, dict):
        payload = {}
    payload = {
        "email": payload.get("email"),
        "password": payload.get("password"),
    }
    try:
        return model.model_validate(payload), {}
    except ValidationError as exc:
        return None, collect_field_errors(exc)
