"""ServiceResult: the uniform envelope every service operation returns."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator

from comunidad.services.errors import ServiceError

T = TypeVar("T")


class ServiceResult(BaseModel, Generic[T]):
    """
    Either ``success=True`` with ``data`` (which may be None, meaning
    "absent") or ``success=False`` with ``error``; never both.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    data: T | None = None
    error: ServiceError | None = None

    @model_validator(mode="after")
    def _one_branch(self) -> "ServiceResult[T]":
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success and (self.error is None or self.data is not None):
            raise ValueError("a failed result carries an error and no data")
        return self

    def unwrap(self) -> T | None:
        """Return ``data`` or raise if the result is a failure."""
        if not self.success:
            raise RuntimeError(f"{self.error.code.value}: {self.error.message}")
        return self.data


def success(data: Any = None) -> ServiceResult:
    return ServiceResult(success=True, data=data)


def failure(error: ServiceError) -> ServiceResult:
    return ServiceResult(success=False, error=error)
