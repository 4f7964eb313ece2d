from fastapi import APIRouter, Depends

from comunidad.dependencies import ListParams, get_noticias_service
from comunidad.routers.common import add_crud_routes, result_or_raise
from comunidad.schemas import NoticiaCreate, NoticiaUpdate, RelationCreate
from comunidad.services.noticias_service import NoticiasService

router = APIRouter(prefix="/api/v1/noticias", tags=["noticias"])

add_crud_routes(router, get_noticias_service, NoticiaCreate, NoticiaUpdate, "Noticia")


@router.get("/{noticia_id}/temas")
async def list_temas(
    noticia_id: str,
    params: ListParams = Depends(),
    service: NoticiasService = Depends(get_noticias_service),
):
    return result_or_raise(await service.get_temas(noticia_id, params.options))


@router.post("/{noticia_id}/temas", status_code=201)
async def add_tema(
    noticia_id: str,
    data: RelationCreate,
    service: NoticiasService = Depends(get_noticias_service),
):
    return result_or_raise(await service.add_tema(noticia_id, data.target_id))


@router.get("/{noticia_id}/organizaciones")
async def list_organizaciones(
    noticia_id: str,
    params: ListParams = Depends(),
    service: NoticiasService = Depends(get_noticias_service),
):
    return result_or_raise(await service.get_organizaciones(noticia_id, params.options))
