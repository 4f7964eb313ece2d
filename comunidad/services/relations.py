"""
Many-to-many relations through junction tables.

A relation is named by three plain table names: the source table, the
target table and the junction table linking them.  Which junction column
points where is read from the junction's foreign keys, so one code path
serves every edge (tema <-> organizacion, proyecto <-> persona, ...) and
table names are only ever resolved against ``MetaData``, never spliced
into SQL.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Column, MetaData, Select, Table, and_, delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

import comunidad.models  # noqa: F401  (registers every table on Base.metadata)
from comunidad.database import Base
from comunidad.services.base import service_operation
from comunidad.services.errors import ServiceFailure, not_found_error, validation_error
from comunidad.services.query import execute, row_to_entity
from comunidad.services.result import ServiceResult, failure, success

logger = logging.getLogger(__name__)


class RelationError(ValueError):
    """The named tables do not form a source / junction / target triple."""


@dataclass(frozen=True)
class JunctionPlan:
    source: Table
    target: Table
    junction: Table
    # Junction column referencing the source table, and the source column it references.
    source_column: Column
    source_key: Column
    # Junction column referencing the target table, and the target column it references.
    target_column: Column
    target_key: Column

    @property
    def extra_columns(self) -> list[str]:
        """Junction columns beyond the two foreign keys (e.g. ``rol``)."""
        linked = {self.source_column.key, self.target_column.key}
        return [name for name in self.junction.c.keys() if name not in linked]


def _lookup(metadata: MetaData, name: str) -> Table:
    table = metadata.tables.get(name)
    if table is None:
        raise RelationError(f"Unknown table {name!r}")
    return table


def _referencing_column(junction: Table, referred: Table, skip: Column | None = None) -> tuple[Column, Column]:
    for column in junction.columns:
        if column is skip:
            continue
        for fk in column.foreign_keys:
            if fk.references(referred):
                return column, fk.column
    raise RelationError(f"{junction.name!r} has no foreign key to {referred.name!r}")


def resolve_junction(
    metadata: MetaData,
    source_table: str,
    target_table: str,
    junction_table: str,
) -> JunctionPlan:
    source = _lookup(metadata, source_table)
    target = _lookup(metadata, target_table)
    junction = _lookup(metadata, junction_table)
    source_column, source_key = _referencing_column(junction, source)
    target_column, target_key = _referencing_column(junction, target, skip=source_column)
    return JunctionPlan(source, target, junction, source_column, source_key, target_column, target_key)


def related_entities_query(plan: JunctionPlan, source_id: str) -> Select:
    """Target rows linked to *source_id*; each target appears once even with several roles."""
    return (
        select(plan.target)
        .distinct()
        .join(plan.junction, plan.target_column == plan.target_key)
        .where(plan.source_column == source_id)
    )


class RelationshipService:
    """
    Link management for one junction table, seen from its source side.

    Reading the *entities* on the other side of a relation is the job of
    ``CacheableService.get_related_entities``; this class only manages and
    inspects the junction rows themselves.
    """

    def __init__(self, db: AsyncSession, junction_table: str, source_table: str, target_table: str) -> None:
        self._db = db
        self._plan = resolve_junction(Base.metadata, source_table, target_table, junction_table)

    @property
    def _name(self) -> str:
        return self._plan.junction.name

    def _pair_clause(self, source_id: str, target_id: str, extra: dict[str, Any]):
        clauses = [self._plan.source_column == source_id, self._plan.target_column == target_id]
        clauses.extend(self._plan.junction.c[key] == value for key, value in extra.items())
        return and_(*clauses)

    def _check_pair(self, source_id: str, target_id: str, extra: dict[str, Any]) -> None:
        if not source_id or not target_id:
            raise ServiceFailure(
                validation_error(
                    "Both source and target ids are required",
                    source=self._name,
                    details={"source_id": source_id, "target_id": target_id},
                )
            )
        unknown = sorted(set(extra) - set(self._plan.extra_columns))
        if unknown:
            raise ServiceFailure(
                validation_error(
                    f"Unknown relation field(s): {', '.join(unknown)}",
                    source=self._name,
                    details={"fields": unknown},
                )
            )

    async def _ensure_exists(self, table: Table, key: Column, entity_id: str) -> None:
        stmt = select(key).where(key == entity_id)
        if (await execute(self._db, stmt, source=self._name, operation="check_endpoint")).first() is None:
            raise ServiceFailure(not_found_error(table.name, entity_id, source=self._name))

    @service_operation
    async def add_relationship(self, source_id: str, target_id: str, **extra: Any) -> ServiceResult:
        extra = {key: value for key, value in extra.items() if value is not None}
        self._check_pair(source_id, target_id, extra)
        plan = self._plan
        await self._ensure_exists(plan.source, plan.source_key, source_id)
        await self._ensure_exists(plan.target, plan.target_key, target_id)

        existing = select(plan.source_column).where(self._pair_clause(source_id, target_id, extra))
        if (await execute(self._db, existing, source=self._name, operation="add_relationship")).first():
            return failure(
                validation_error(
                    "Relationship already exists",
                    source=self._name,
                    details={"source_id": source_id, "target_id": target_id, **extra},
                )
            )

        values = {plan.source_column.key: source_id, plan.target_column.key: target_id, **extra}
        stmt = insert(plan.junction).values(**values).returning(*plan.junction.c)
        row = (await execute(self._db, stmt, source=self._name, operation="add_relationship")).one()
        logger.debug("Linked %s -> %s via %s", source_id, target_id, self._name)
        return success(row_to_entity(row))

    @service_operation
    async def remove_relationship(self, source_id: str, target_id: str, **extra: Any) -> ServiceResult:
        """Remove the matching junction row(s); returns how many were removed."""
        extra = {key: value for key, value in extra.items() if value is not None}
        self._check_pair(source_id, target_id, extra)
        stmt = (
            delete(self._plan.junction)
            .where(self._pair_clause(source_id, target_id, extra))
            .returning(self._plan.source_column)
        )
        removed = (await execute(self._db, stmt, source=self._name, operation="remove_relationship")).all()
        if not removed:
            return failure(
                validation_error(
                    "Relationship does not exist",
                    source=self._name,
                    details={"source_id": source_id, "target_id": target_id, **extra},
                )
            )
        return success(len(removed))

    @service_operation
    async def get_relationships(self, source_id: str) -> ServiceResult:
        """Ids of the targets linked to *source_id*."""
        if not source_id:
            return failure(validation_error("Source id is required", source=self._name))
        stmt = select(self._plan.target_column).distinct().where(self._plan.source_column == source_id)
        result = await execute(self._db, stmt, source=self._name, operation="get_relationships")
        return success([value for (value,) in result.all()])

    @service_operation
    async def has_relationship(self, source_id: str, target_id: str) -> ServiceResult:
        self._check_pair(source_id, target_id, {})
        stmt = select(self._plan.source_column).where(self._pair_clause(source_id, target_id, {})).limit(1)
        result = await execute(self._db, stmt, source=self._name, operation="has_relationship")
        return success(result.first() is not None)

    @service_operation
    async def count_relationships(self, source_id: str) -> ServiceResult:
        if not source_id:
            return failure(validation_error("Source id is required", source=self._name))
        stmt = select(func.count()).select_from(self._plan.junction).where(self._plan.source_column == source_id)
        total = (await execute(self._db, stmt, source=self._name, operation="count_relationships")).scalar_one()
        return success(total)
