"""
CacheableService: BaseService plus a read-through entity cache.

Design notes
------------
- Reads (``get_by_id`` / ``get_by_ids``) consult the cache first and
  populate it on a miss with the service's TTL.
- Writes (``create``, ``update``, ``delete``, ``soft_delete``, ``restore``)
  mutate storage first and, only when that succeeded, *remove* the entry
  for the id.  The cache is never written with the post-update row: the
  next read fetches whatever storage now holds.  A failed write leaves
  the cache untouched.
- Written keys stay pending on the session until its transaction ends
  (see :mod:`comunidad.cache_session`).  Reads of a pending key bypass the
  cache, so a row that is later rolled back is never cached.
- The cache is injected.  Correctness never depends on it: with a cold
  or broken cache every read simply goes to storage.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from comunidad.cache import CacheAdapter, entity_cache_key
from comunidad.cache_session import is_pending, mark_written
from comunidad.config import settings
from comunidad.database import Base
from comunidad.services.base import BaseService, service_operation
from comunidad.services.errors import validation_error
from comunidad.services.query import Options, apply_filters, apply_window, coerce_options, row_to_entity
from comunidad.services.relations import (
    RelationError,
    RelationshipService,
    related_entities_query,
    resolve_junction,
)
from comunidad.services.result import ServiceResult, failure, success

logger = logging.getLogger(__name__)


class CacheableService(BaseService):
    # Per-service TTL override in seconds; None falls back to settings.
    cache_ttl: ClassVar[int | None] = None

    def __init__(self, db: AsyncSession, cache: CacheAdapter, ttl: int | None = None) -> None:
        super().__init__(db)
        self._cache = cache
        self._ttl = ttl or self.cache_ttl or settings.CACHE_TTL_DEFAULT

    @property
    def ttl(self) -> int:
        return self._ttl

    def cache_key(self, entity_id: str) -> str:
        return entity_cache_key(self.entity_type, entity_id)

    async def _invalidate_if(self, result: ServiceResult, entity_id: str) -> ServiceResult:
        if result.success:
            key = self.cache_key(entity_id)
            mark_written(self._db, self._cache, key)
            await self._cache.invalidate(key)
            logger.debug("Invalidated %s", key)
        return result

    def _pending(self, entity_id: str) -> bool:
        return is_pending(self._db, self._cache, self.cache_key(entity_id))

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> ServiceResult:
        cacheable = bool(entity_id) and isinstance(entity_id, str) and not self._pending(entity_id)
        if cacheable:
            cached = await self._cache.get(self.cache_key(entity_id))
            if cached is not None:
                return success(cached)

        result = await super().get_by_id(entity_id)
        if cacheable and result.success and result.data is not None:
            await self._cache.set(self.cache_key(entity_id), result.data, self._ttl)
        return result

    async def get_by_ids(self, ids: list[str]) -> ServiceResult:
        """
        Serve cached ids from the cache and fetch the rest in one query.

        The returned list holds cache hits first, then fetched rows; it
        does not follow the order of *ids*.
        """
        unique_ids = list(dict.fromkeys(ids))
        readable = [i for i in unique_ids if not self._pending(i)]
        cached = await asyncio.gather(*(self._cache.get(self.cache_key(i)) for i in readable))
        hit_ids = {i for i, value in zip(readable, cached) if value is not None}
        hits = [value for value in cached if value is not None]
        misses = [i for i in unique_ids if i not in hit_ids]
        if not misses:
            return success(hits)

        result = await super().get_by_ids(misses)
        if not result.success:
            return result
        for entity in result.data:
            if not self._pending(entity["id"]):
                await self._cache.set(self.cache_key(entity["id"]), entity, self._ttl)
        return success(hits + result.data)

    # ------------------------------------------------------------------
    # Writes: mutate, then invalidate on success
    # ------------------------------------------------------------------

    async def create(self, data: BaseModel | Mapping[str, Any]) -> ServiceResult:
        result = await super().create(data)
        return await self._invalidate_if(result, result.data["id"]) if result.success else result

    async def update(self, entity_id: str, data: BaseModel | Mapping[str, Any]) -> ServiceResult:
        return await self._invalidate_if(await super().update(entity_id, data), entity_id)

    async def delete(self, entity_id: str) -> ServiceResult:
        return await self._invalidate_if(await super().delete(entity_id), entity_id)

    async def soft_delete(self, entity_id: str, deleted_by: str) -> ServiceResult:
        return await self._invalidate_if(await super().soft_delete(entity_id, deleted_by), entity_id)

    async def restore(self, entity_id: str) -> ServiceResult:
        return await self._invalidate_if(await super().restore(entity_id), entity_id)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    @service_operation
    async def get_related_entities(
        self,
        entity_id: str,
        source_table: str,
        target_table: str,
        junction_table: str,
        options: Options = None,
    ) -> ServiceResult:
        """
        Rows of *target_table* linked to *entity_id* of *source_table*
        through *junction_table*.

        Filters apply to target columns; soft-deleted targets are skipped
        unless ``include_deleted``.  No junction rows means an empty list.
        """
        self._check_id(entity_id)
        try:
            plan = resolve_junction(Base.metadata, source_table, target_table, junction_table)
        except RelationError as exc:
            return failure(
                validation_error(
                    str(exc),
                    source=junction_table,
                    details={"source": source_table, "target": target_table},
                )
            )
        opts = coerce_options(options)
        stmt = apply_filters(related_entities_query(plan, entity_id), plan.target, opts)
        stmt = apply_window(stmt, plan.target, opts)
        result = await self._execute(stmt, f"related:{junction_table}")
        return success([row_to_entity(row) for row in result.all()])

    def relationship(self, junction_table: str, target_table: str) -> RelationshipService:
        """Link manager for *junction_table* with this service's table as the source side."""
        return RelationshipService(self._db, junction_table, self.table_name, target_table)
