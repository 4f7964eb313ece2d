from fastapi import APIRouter, Depends, Response

from comunidad.dependencies import ListParams, get_organizaciones_service
from comunidad.routers.common import add_crud_routes, result_or_raise
from comunidad.schemas import OrganizacionCreate, OrganizacionUpdate, RelationCreate
from comunidad.services.organizaciones_service import OrganizacionesService

router = APIRouter(prefix="/api/v1/organizaciones", tags=["organizaciones"])


# Declared ahead of the shared CRUD routes so "/abiertas" is not read as an id.
@router.get("/abiertas")
async def list_abiertas(
    params: ListParams = Depends(),
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    return result_or_raise(await service.get_abiertas(params.options))


@router.get("/tipo/{tipo}")
async def list_by_tipo(
    tipo: str,
    params: ListParams = Depends(),
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    return result_or_raise(await service.get_by_tipo(tipo, params.options))


add_crud_routes(router, get_organizaciones_service, OrganizacionCreate, OrganizacionUpdate, "Organizacion")


@router.get("/{organizacion_id}/temas")
async def list_temas(
    organizacion_id: str,
    params: ListParams = Depends(),
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    return result_or_raise(await service.get_temas(organizacion_id, params.options))


@router.post("/{organizacion_id}/temas", status_code=201)
async def add_tema(
    organizacion_id: str,
    data: RelationCreate,
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    return result_or_raise(await service.add_tema(organizacion_id, data.target_id))


@router.delete("/{organizacion_id}/temas/{tema_id}", status_code=204)
async def remove_tema(
    organizacion_id: str,
    tema_id: str,
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    result_or_raise(await service.remove_tema(organizacion_id, tema_id))
    return Response(status_code=204)


@router.get("/{organizacion_id}/proyectos")
async def list_proyectos(
    organizacion_id: str,
    params: ListParams = Depends(),
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    return result_or_raise(await service.get_proyectos(organizacion_id, params.options))


@router.get("/{organizacion_id}/noticias")
async def list_noticias(
    organizacion_id: str,
    params: ListParams = Depends(),
    service: OrganizacionesService = Depends(get_organizaciones_service),
):
    return result_or_raise(await service.get_noticias(organizacion_id, params.options))
