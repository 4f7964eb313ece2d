"""
Statement helpers shared by the entity services and the relation resolver.

Column and table names coming from callers (filters, ``sort_by``,
searchable fields) are only ever looked up in ``Table.c``; nothing is
interpolated into SQL text.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Mapping

from sqlalchemy import Select, Table, asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from comunidad.config import settings
from comunidad.schemas import QueryOptions
from comunidad.services.deletion import DELETED_FLAG
from comunidad.services.errors import ServiceFailure, map_exception, validation_error

logger = logging.getLogger(__name__)

Entity = dict[str, Any]
Options = QueryOptions | Mapping[str, Any] | None


def coerce_options(options: Options) -> QueryOptions:
    if options is None:
        return QueryOptions()
    if isinstance(options, QueryOptions):
        return options
    try:
        return QueryOptions.model_validate(dict(options))
    except ValueError as exc:
        raise ServiceFailure(
            validation_error("Invalid query options", source="options", details={"errors": str(exc)})
        ) from exc


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def row_to_entity(row) -> Entity:
    """Plain JSON-safe dict for a result row, identical whether read fresh or from cache."""
    return {key: _json_safe(value) for key, value in row._mapping.items()}


def apply_filters(stmt: Select, table: Table, options: QueryOptions) -> Select:
    """Equality filters plus the soft-delete exclusion."""
    unknown = sorted(set(options.filters) - set(table.c.keys()))
    if unknown:
        raise ServiceFailure(
            validation_error(
                f"Unknown filter field(s): {', '.join(unknown)}",
                source=table.name,
                details={"fields": unknown},
            )
        )
    for key, value in options.filters.items():
        column = table.c[key]
        if isinstance(value, (list, tuple, set)):
            stmt = stmt.where(column.in_(list(value)))
        elif value is None:
            stmt = stmt.where(column.is_(None))
        else:
            stmt = stmt.where(column == value)

    if not options.include_deleted and DELETED_FLAG in table.c:
        stmt = stmt.where(table.c[DELETED_FLAG].is_(False))
    return stmt


def apply_window(
    stmt: Select,
    table: Table,
    options: QueryOptions,
    default_sort: str | None = None,
) -> Select:
    """ORDER BY plus OFFSET / LIMIT derived from ``page`` / ``page_size``."""
    sort_by = options.sort_by or default_sort
    if sort_by is not None and sort_by not in table.c:
        logger.debug("Ignoring unknown sort column %r on %s", sort_by, table.name)
        sort_by = default_sort if default_sort and default_sort in table.c else None
    if sort_by is not None:
        column = table.c[sort_by]
        stmt = stmt.order_by(desc(column) if options.sort_order == "desc" else asc(column))

    if options.page is not None or options.page_size is not None:
        page_size = min(options.page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        page = options.page or 1
        stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    return stmt


async def execute(db: AsyncSession, stmt, *, source: str, operation: str):
    """
    Execute *stmt*, mapping any storage failure to ``DB_ERROR``.

    A failed statement leaves most drivers' transactions unusable, so the
    session is rolled back before the failure is reported.
    """
    try:
        return await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.warning("%s.%s failed: %s", source, operation, exc)
        await db.rollback()
        raise ServiceFailure(map_exception(exc, source=source, operation=operation)) from exc
