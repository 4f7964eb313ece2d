import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from comunidad.cache import build_cache
from comunidad.config import settings
from comunidad.middleware import TimingMiddleware
from comunidad.routers import metrics, noticias, organizaciones, personas, proyectos, temas

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cache = build_cache(settings)
    try:
        await cache.connect()
    except Exception as exc:
        # The services fall back to storage on every read.
        logger.warning("Cache unavailable at startup: %s", exc)
    app.state.cache = cache
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Comunidad API",
    description="Organizaciones, proyectos, temas, personas and noticias over a cached service layer",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(organizaciones.router)
app.include_router(proyectos.router)
app.include_router(temas.router)
app.include_router(personas.router)
app.include_router(noticias.router)
app.include_router(metrics.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
