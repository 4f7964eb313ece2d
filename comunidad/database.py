"""Async engine, session factory and the declarative base shared by every table."""
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from comunidad.cache_session import invalidate_committed
from comunidad.config import settings
from comunidad.middleware import install_query_counter

# Deterministic constraint names keep Alembic autogenerate diffs stable.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }


# Module-level so tests can swap in their own engine through get_db.
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, **_engine_options(settings.DATABASE_URL))

install_query_counter(engine)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


async def get_db():
    """
    Yield a session whose transaction spans the whole request.

    Services execute statements but never commit; the commit (or the
    rollback on an unhandled exception) happens here.  Cache keys written
    by the committed transaction are dropped right after the commit.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
            await invalidate_committed(session)
        except Exception:
            await session.rollback()
            raise
