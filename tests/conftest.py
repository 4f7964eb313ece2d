"""
Test infrastructure for the comunidad API and service layer.

Strategy
--------
- SQLite in-memory via aiosqlite, so no running Postgres is needed.
- StaticPool makes every session share the one in-memory connection;
  SQLite in-memory databases are connection-scoped.
- ``get_db`` is overridden with the test session factory and ``get_cache``
  with a fresh InMemoryCache per test, so cache behaviour is exercised
  without Redis.
- Tables are created before each test and dropped after it.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from comunidad.cache import InMemoryCache
from comunidad.cache_session import invalidate_committed
from comunidad.database import Base, get_db
from comunidad.dependencies import get_cache
from comunidad.main import app
from comunidad.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
            await invalidate_committed(session)
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache:
    return InMemoryCache(default_ttl=3600, clock=clock)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for tests that drive the services directly."""
    async with async_session_test() as session:
        yield session


@pytest.fixture
def query_counter():
    """
    Record every SQL statement sent to the test database.
    Reset with ``query_counter.clear()``.
    """
    statements: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine_test.sync_engine, "before_cursor_execute", _record)
    yield statements
    event.remove(engine_test.sync_engine, "before_cursor_execute", _record)


@pytest_asyncio.fixture
async def async_client(cache: InMemoryCache) -> AsyncClient:
    """httpx client wired to the app through ASGITransport, sharing the test cache."""
    app.dependency_overrides[get_cache] = lambda: cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_cache, None)
