from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from comunidad.cache import CacheAdapter
from comunidad.database import get_db
from comunidad.dependencies import get_cache
from comunidad.models import Noticia, Organizacion, Persona, Proyecto, Tema
from comunidad.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


async def _count_active(db: AsyncSession, model) -> int:
    stmt = select(func.count()).select_from(model).where(model.esta_eliminada.is_(False))
    return (await db.execute(stmt)).scalar_one()


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db), cache: CacheAdapter = Depends(get_cache)):
    return MetricsResponse(
        total_organizaciones=await _count_active(db, Organizacion),
        total_proyectos=await _count_active(db, Proyecto),
        total_temas=await _count_active(db, Tema),
        total_personas=await _count_active(db, Persona),
        total_noticias=await _count_active(db, Noticia),
        cache_info=getattr(cache, "stats", {}),
    )
