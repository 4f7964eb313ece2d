"""
Ties entity cache invalidation to the session's transaction.

A write inside a request is not visible to other sessions until commit,
and it may still be rolled back.  Services therefore record the keys they
write on ``session.info``:

- while a key is pending, reads in that session neither consult nor fill
  the cache, so an uncommitted row is never cached;
- ``after_rollback`` forgets the pending keys (the cache never saw the
  rolled-back rows);
- ``after_commit`` moves them to the committed list, and
  :func:`invalidate_committed` drops them once more, removing any copy of
  the pre-write row another request cached between the write and the
  commit.
"""
from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from comunidad.cache import CacheAdapter

logger = logging.getLogger(__name__)

PENDING = "cache_pending"
COMMITTED = "cache_committed"


def mark_written(session: AsyncSession, cache: CacheAdapter, key: str) -> None:
    session.info.setdefault(PENDING, []).append((cache, key))


def is_pending(session: AsyncSession, cache: CacheAdapter, key: str) -> bool:
    return any(c is cache and k == key for c, k in session.info.get(PENDING, ()))


@event.listens_for(Session, "after_commit")
def _promote_pending(session: Session) -> None:
    pending = session.info.pop(PENDING, None)
    if pending:
        session.info.setdefault(COMMITTED, []).extend(pending)


@event.listens_for(Session, "after_rollback")
def _forget_pending(session: Session) -> None:
    session.info.pop(PENDING, None)


async def invalidate_committed(session: AsyncSession) -> int:
    """Drop every key written by the committed transaction; returns how many."""
    committed = session.info.pop(COMMITTED, [])
    for cache, key in committed:
        await cache.invalidate(key)
    if committed:
        logger.debug("Invalidated %d committed key(s)", len(committed))
    return len(committed)
