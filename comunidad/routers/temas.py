from fastapi import APIRouter, Depends

from comunidad.dependencies import ListParams, get_temas_service
from comunidad.routers.common import add_crud_routes, result_or_raise
from comunidad.schemas import TemaCreate, TemaUpdate
from comunidad.services.temas_service import TemasService

router = APIRouter(prefix="/api/v1/temas", tags=["temas"])

add_crud_routes(router, get_temas_service, TemaCreate, TemaUpdate, "Tema")


@router.get("/{tema_id}/organizaciones")
async def list_organizaciones(
    tema_id: str,
    params: ListParams = Depends(),
    service: TemasService = Depends(get_temas_service),
):
    return result_or_raise(await service.get_organizaciones(tema_id, params.options))


@router.get("/{tema_id}/proyectos")
async def list_proyectos(
    tema_id: str,
    params: ListParams = Depends(),
    service: TemasService = Depends(get_temas_service),
):
    return result_or_raise(await service.get_proyectos(tema_id, params.options))


@router.get("/{tema_id}/personas")
async def list_personas(
    tema_id: str,
    params: ListParams = Depends(),
    service: TemasService = Depends(get_temas_service),
):
    return result_or_raise(await service.get_personas(tema_id, params.options))


@router.get("/{tema_id}/noticias")
async def list_noticias(
    tema_id: str,
    params: ListParams = Depends(),
    service: TemasService = Depends(get_temas_service),
):
    return result_or_raise(await service.get_noticias(tema_id, params.options))
