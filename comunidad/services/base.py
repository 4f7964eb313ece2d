"""
BaseService: generic CRUD over one table.

Design notes
------------
- Every public operation returns a ``ServiceResult``; nothing raises
  across the service boundary.  Internal helpers abort with
  ``ServiceFailure``, which the ``service_operation`` decorator turns back
  into a failed result.
- Input validation (the column whitelist plus the subclass hooks) runs
  strictly before the first statement, so invalid input never produces a
  partial write.
- Statements are SQLAlchemy Core against the ``Table`` registered under
  ``table_name``, using ``RETURNING`` so each write costs one round trip.
- Services execute but never commit; the transaction boundary belongs to
  the caller (``get_db`` for HTTP requests).
"""
from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel
from sqlalchemy import Table, delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

import comunidad.models  # noqa: F401  (registers every table on Base.metadata)
from comunidad.database import Base
from comunidad.services.deletion import (
    DELETED_FLAG,
    SOFT_DELETE_COLUMNS,
    Active,
    deleted_now,
    to_columns,
)
from comunidad.services.errors import (
    ServiceError,
    ServiceFailure,
    map_exception,
    not_found_error,
    validation_error,
)
from comunidad.services.query import (
    Entity,
    Options,
    apply_filters,
    apply_window,
    coerce_options,
    execute,
    row_to_entity,
)
from comunidad.services.result import ServiceResult, failure, success

logger = logging.getLogger(__name__)

# Columns managed by the service layer itself, never by caller payloads.
MANAGED_COLUMNS: frozenset[str] = frozenset({"id", "created_at", "updated_at", *SOFT_DELETE_COLUMNS})


def service_operation(func):
    """Convert a ``ServiceFailure`` raised inside *func* into a failed result."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> ServiceResult:
        try:
            return await func(*args, **kwargs)
        except ServiceFailure as exc:
            return failure(map_exception(exc))

    return wrapper


def to_payload(data: BaseModel | Mapping[str, Any] | None) -> dict[str, Any]:
    """Plain dict from a DTO (only explicitly set fields) or a mapping."""
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class BaseService(ABC):
    """
    Minimal CRUD primitives for one table.

    Subclasses set ``table_name`` / ``entity_type`` and implement the three
    hooks: ``validate_create_input``, ``validate_update_input`` and
    ``get_searchable_fields``.
    """

    table_name: ClassVar[str]
    entity_type: ClassVar[str]
    # Human-readable name used in error messages ("Organizacion not found").
    entity_label: ClassVar[str] = "Entity"
    default_sort: ClassVar[str | None] = "created_at"

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        try:
            self._table: Table = Base.metadata.tables[self.table_name]
        except KeyError:
            raise ValueError(f"Unknown table {self.table_name!r}") from None

    @property
    def supports_soft_delete(self) -> bool:
        return DELETED_FLAG in self._table.c

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def validate_create_input(self, data: Entity) -> ServiceError | None:
        """Return a validation error for *data*, or None when it may be inserted."""

    @abstractmethod
    def validate_update_input(self, data: Entity) -> ServiceError | None:
        """Return a validation error for the partial *data*, or None."""

    @abstractmethod
    def get_searchable_fields(self) -> list[str]:
        """Columns matched by :meth:`search` when the caller names none."""

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_id(self, entity_id: Any) -> None:
        if not entity_id or not isinstance(entity_id, str):
            raise ServiceFailure(
                validation_error("ID is required", source=self.table_name, details={"id": entity_id})
            )

    def _check_columns(self, payload: Entity) -> None:
        unknown = sorted(set(payload) - set(self._table.c.keys()))
        if unknown:
            raise ServiceFailure(
                validation_error(
                    f"Unknown field(s): {', '.join(unknown)}",
                    source=self.table_name,
                    details={"fields": unknown},
                )
            )
        managed = sorted(set(payload) & MANAGED_COLUMNS)
        if managed:
            raise ServiceFailure(
                validation_error(
                    f"Field(s) cannot be set directly: {', '.join(managed)}",
                    source=self.table_name,
                    details={"fields": managed},
                )
            )

    async def _execute(self, stmt, operation: str):
        return await execute(self._db, stmt, source=self.table_name, operation=operation)

    def _not_found(self, entity_id: str) -> ServiceFailure:
        return ServiceFailure(not_found_error(self.entity_label, entity_id, source=self.table_name))

    async def _set_deletion_columns(self, entity_id: str, columns: Entity, operation: str) -> Entity:
        stmt = (
            update(self._table)
            .where(self._table.c.id == entity_id)
            .values(**columns)
            .returning(*self._table.c)
        )
        row = (await self._execute(stmt, operation)).one_or_none()
        if row is None:
            raise self._not_found(entity_id)
        return row_to_entity(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @service_operation
    async def create(self, data: BaseModel | Mapping[str, Any]) -> ServiceResult:
        """Insert a row and return it, including its generated ``id``."""
        payload = to_payload(data)
        self._check_columns(payload)
        error = self.validate_create_input(payload)
        if error is not None:
            return failure(error)

        stmt = insert(self._table).values(**payload).returning(*self._table.c)
        row = (await self._execute(stmt, "create")).one()
        logger.debug("Created %s %s", self.entity_type, row.id)
        return success(row_to_entity(row))

    @service_operation
    async def update(self, entity_id: str, data: BaseModel | Mapping[str, Any]) -> ServiceResult:
        """
        Apply a partial update and return the updated row.

        An id that matches no row is a ``VALIDATION_ERROR`` (not found),
        never a ``DB_ERROR``.
        """
        self._check_id(entity_id)
        payload = to_payload(data)
        if not payload:
            return failure(validation_error("No fields to update", source=self.table_name))
        self._check_columns(payload)
        error = self.validate_update_input(payload)
        if error is not None:
            return failure(error)

        stmt = (
            update(self._table)
            .where(self._table.c.id == entity_id)
            .values(**payload)
            .returning(*self._table.c)
        )
        row = (await self._execute(stmt, "update")).one_or_none()
        if row is None:
            raise self._not_found(entity_id)
        return success(row_to_entity(row))

    @service_operation
    async def delete(self, entity_id: str) -> ServiceResult:
        """Permanently remove the row; returns the removed entity."""
        self._check_id(entity_id)
        stmt = delete(self._table).where(self._table.c.id == entity_id).returning(*self._table.c)
        row = (await self._execute(stmt, "delete")).one_or_none()
        if row is None:
            raise self._not_found(entity_id)
        logger.info("Deleted %s %s permanently", self.entity_type, entity_id)
        return success(row_to_entity(row))

    @service_operation
    async def soft_delete(self, entity_id: str, deleted_by: str) -> ServiceResult:
        """Flag the row as deleted by *deleted_by*; it stays in storage."""
        self._check_id(entity_id)
        if not deleted_by:
            return failure(
                validation_error("deleted_by is required", source=self.table_name, details={"id": entity_id})
            )
        if not self.supports_soft_delete:
            return failure(validation_error(f"{self.entity_label} does not support soft delete", source=self.table_name))
        entity = await self._set_deletion_columns(entity_id, to_columns(deleted_now(deleted_by)), "soft_delete")
        return success(entity)

    @service_operation
    async def restore(self, entity_id: str) -> ServiceResult:
        """Clear the deletion flag, deleter and timestamp.  Restoring an active row is a no-op success."""
        self._check_id(entity_id)
        if not self.supports_soft_delete:
            return failure(validation_error(f"{self.entity_label} does not support soft delete", source=self.table_name))
        entity = await self._set_deletion_columns(entity_id, to_columns(Active()), "restore")
        return success(entity)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @service_operation
    async def get_by_id(self, entity_id: str) -> ServiceResult:
        """Return the entity, or a successful result with ``data=None`` when absent."""
        self._check_id(entity_id)
        stmt = select(self._table).where(self._table.c.id == entity_id)
        row = (await self._execute(stmt, "get_by_id")).one_or_none()
        return success(row_to_entity(row) if row is not None else None)

    @service_operation
    async def get_by_ids(self, ids: list[str]) -> ServiceResult:
        """Fetch several entities in one query.  Missing ids are simply absent from the result."""
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return success([])
        stmt = select(self._table).where(self._table.c.id.in_(unique_ids))
        result = await self._execute(stmt, "get_by_ids")
        return success([row_to_entity(row) for row in result.all()])

    @service_operation
    async def get_all(self, options: Options = None) -> ServiceResult:
        opts = coerce_options(options)
        stmt = apply_filters(select(self._table), self._table, opts)
        stmt = apply_window(stmt, self._table, opts, self.default_sort)
        result = await self._execute(stmt, "get_all")
        return success([row_to_entity(row) for row in result.all()])

    @service_operation
    async def search(self, query: str, options: Options = None) -> ServiceResult:
        """
        Case-insensitive substring search OR-ed across the searchable fields.

        ``options.searchable_fields`` overrides the service's own list.
        No match is an empty list, not an error.
        """
        if not query or not query.strip():
            return failure(validation_error("Search query is required", source=self.table_name))
        opts = coerce_options(options)
        fields = opts.searchable_fields or self.get_searchable_fields()
        unknown = sorted(set(fields) - set(self._table.c.keys()))
        if unknown:
            return failure(
                validation_error(
                    f"Unknown searchable field(s): {', '.join(unknown)}",
                    source=self.table_name,
                    details={"fields": unknown},
                )
            )

        term = query.strip()
        stmt = select(self._table).where(
            or_(*(self._table.c[name].icontains(term, autoescape=True) for name in fields))
        )
        stmt = apply_filters(stmt, self._table, opts)
        stmt = apply_window(stmt, self._table, opts, self.default_sort)
        result = await self._execute(stmt, "search")
        return success([row_to_entity(row) for row in result.all()])

    @service_operation
    async def count(self, options: Options = None) -> ServiceResult:
        opts = coerce_options(options)
        stmt = apply_filters(select(func.count()).select_from(self._table), self._table, opts)
        total = (await self._execute(stmt, "count")).scalar_one()
        return success(total)

    @service_operation
    async def exists(self, entity_id: str) -> ServiceResult:
        self._check_id(entity_id)
        stmt = select(self._table.c.id).where(self._table.c.id == entity_id)
        found = (await self._execute(stmt, "exists")).first() is not None
        return success(found)
