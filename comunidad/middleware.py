"""
Request diagnostics: per-request SQL statement counting and timing.

The statement counter is what makes cache behaviour observable from the
outside: a detail read served from the entity cache reports
``X-Query-Count: 0``.
"""
import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

# Requests slower than this are logged at WARNING.
SLOW_REQUEST_MS = 500.0

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)


def install_query_counter(engine) -> None:
    """
    Count every statement executed through *engine* (async or sync) in
    ``query_count_var``.

    Must be called once per engine: the production engine in
    ``database.py`` and the test engine in ``conftest.py``.
    """
    sync_engine = getattr(engine, "sync_engine", engine)

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)


class TimingMiddleware:
    """
    Pure ASGI middleware adding ``X-Response-Time-Ms`` and ``X-Query-Count``
    response headers.

    ``BaseHTTPMiddleware`` would run the inner app in a child task, hiding
    the ContextVar updates made by the engine listener; this class does not.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_count_var.set(0)
        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                queries = query_count_var.get()
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(queries).encode()))
                message["headers"] = headers
                if duration_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        "Slow request %s %s: %.2f ms, %d queries",
                        scope.get("method"), scope.get("path"), duration_ms, queries,
                    )
            await send(message)

        await self.app(scope, receive, send_wrapper)
