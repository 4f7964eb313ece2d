from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from comunidad.cache import CacheAdapter
from comunidad.config import settings
from comunidad.database import get_db
from comunidad.schemas import QueryOptions
from comunidad.services.noticias_service import NoticiasService
from comunidad.services.organizaciones_service import OrganizacionesService
from comunidad.services.personas_service import PersonasService
from comunidad.services.proyectos_service import ProyectosService
from comunidad.services.temas_service import TemasService


class ListParams:
    """
    Reusable FastAPI dependency that parses listing query parameters into
    a :class:`QueryOptions`.

    Usage in a router::

        @router.get("")
        async def list_items(params: ListParams = Depends()):
            await service.get_all(params.options)

    ``sort_by`` is checked against the table's columns by the service
    layer; an unknown name falls back to the service's default order.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description="Number of items returned per page.",
        ),
        sort_by: str | None = Query(None, description="Column name to sort results by."),
        sort_order: str = Query("asc", pattern="^(asc|desc)$", description="Sort direction."),
        include_deleted: bool = Query(False, description="Include soft-deleted rows."),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order
        self.include_deleted = include_deleted

    @property
    def options(self) -> QueryOptions:
        return QueryOptions(
            page=self.page,
            page_size=self.page_size,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
            include_deleted=self.include_deleted,
        )


def get_cache(request: Request) -> CacheAdapter:
    """The application-wide cache adapter built in the lifespan hook."""
    return request.app.state.cache


# ---------------------------------------------------------------------------
# Service factories: one service instance per request, sharing its session
# ---------------------------------------------------------------------------

def get_organizaciones_service(
    db: AsyncSession = Depends(get_db), cache: CacheAdapter = Depends(get_cache)
) -> OrganizacionesService:
    return OrganizacionesService(db, cache)


def get_proyectos_service(
    db: AsyncSession = Depends(get_db), cache: CacheAdapter = Depends(get_cache)
) -> ProyectosService:
    return ProyectosService(db, cache)


def get_temas_service(
    db: AsyncSession = Depends(get_db), cache: CacheAdapter = Depends(get_cache)
) -> TemasService:
    return TemasService(db, cache)


def get_personas_service(
    db: AsyncSession = Depends(get_db), cache: CacheAdapter = Depends(get_cache)
) -> PersonasService:
    return PersonasService(db, cache)


def get_noticias_service(
    db: AsyncSession = Depends(get_db), cache: CacheAdapter = Depends(get_cache)
) -> NoticiasService:
    return NoticiasService(db, cache)
