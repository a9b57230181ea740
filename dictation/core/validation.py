"""Helpers shared by the pydantic schemas in the core package."""

from pydantic import ValidationError


def collect_field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten a pydantic ValidationError into {field: [messages]}."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field_name = str(error["loc"][0]) if error["loc"] else "__root__"
        errors.setdefault(field_name, []).append(error["msg"])
    return errors
