"""Format checks used by the concrete services' validation hooks."""
from __future__ import annotations

import re
from typing import Any, Iterable

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from comunidad.services.errors import ServiceError, validation_error

_URL_ADAPTER = TypeAdapter(AnyUrl)
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.match(value))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(data: dict, fields: Iterable[str]) -> ServiceError | None:
    """Creation rule: every field in *fields* is present and non-blank."""
    for name in fields:
        if _is_blank(data.get(name)):
            return validation_error(f"{name} is required", source=name, details={"value": data.get(name)})
    return None


def forbid_blank(data: dict, fields: Iterable[str]) -> ServiceError | None:
    """Update rule: fields may be omitted, but not set to an empty value."""
    for name in fields:
        if name in data and _is_blank(data[name]):
            return validation_error(f"{name} cannot be empty", source=name, details={"value": data[name]})
    return None


def check_urls(data: dict, fields: Iterable[str]) -> ServiceError | None:
    for name in fields:
        value = data.get(name)
        if value and not is_valid_url(value):
            return validation_error(f"Invalid URL format for {name}", source=name, details={"value": value})
    return None


def check_emails(data: dict, fields: Iterable[str]) -> ServiceError | None:
    for name in fields:
        value = data.get(name)
        if value and not is_valid_email(value):
            return validation_error(f"Invalid email format for {name}", source=name, details={"value": value})
    return None


def first_error(*errors: ServiceError | None) -> ServiceError | None:
    return next((error for error in errors if error is not None), None)
