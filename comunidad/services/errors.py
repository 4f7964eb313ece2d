"""
Error taxonomy shared by every entity service.

Two codes exist, and callers branch on them:

- ``VALIDATION_ERROR``: the input failed a precondition (missing field,
  malformed URL, referenced entity not found).  Produced before any I/O
  and not retryable without changing the request.
- ``DB_ERROR``: the storage layer failed.  The driver exception is kept in
  ``details["exception"]`` for diagnosis; the caller may retry.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DB_ERROR = "DB_ERROR"


class ServiceError(BaseModel):
    """Structured error payload carried by a failed ServiceResult."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    message: str
    code: ErrorCode
    source: str | None = None
    details: Any = None

    @property
    def is_not_found(self) -> bool:
        return (
            self.code is ErrorCode.VALIDATION_ERROR
            and isinstance(self.details, dict)
            and self.details.get("reason") == "not_found"
        )


def validation_error(message: str, source: str | None = None, details: Any = None) -> ServiceError:
    return ServiceError(
        name="ValidationError",
        message=message,
        code=ErrorCode.VALIDATION_ERROR,
        source=source,
        details=details,
    )


def not_found_error(entity: str, entity_id: Any, source: str | None = None) -> ServiceError:
    return validation_error(
        f"{entity} not found",
        source=source or entity,
        details={"reason": "not_found", "id": entity_id},
    )


def database_error(exc: BaseException, source: str | None = None, operation: str | None = None) -> ServiceError:
    # Driver messages are kept for logs; they are not meant for end users.
    message = str(getattr(exc, "orig", None) or exc) or "Database operation failed"
    return ServiceError(
        name="DatabaseError",
        message=message,
        code=ErrorCode.DB_ERROR,
        source=source or "database",
        details={"operation": operation, "exception": exc},
    )



def map_exception(exc: BaseException, source: str | None = None, operation: str | None = None) -> ServiceError:
    """
    Turn a raised error into a ServiceError.

    A ``ServiceFailure`` yields the error it carries and storage errors become
    ``DB_ERROR``; anything else is a programming error and is re-raised.
    """
    if isinstance(exc, ServiceFailure):
        return exc.error
    if isinstance(exc, SQLAlchemyError):
        return database_error(exc, source, operation)
    raise exc


class ServiceFailure(Exception):
    """
    Internal control-flow carrier for a ServiceError.

    Raised by helpers deep inside a service operation and converted back
    into a failed result before the operation returns; it never leaves the
    service boundary.
    """

    def __init__(self, error: ServiceError) -> None:
        super().__init__(error.message)
        self.error = error
