from fastapi import APIRouter, Depends

from comunidad.dependencies import ListParams, get_proyectos_service
from comunidad.routers.common import add_crud_routes, result_or_raise
from comunidad.schemas import ProyectoCreate, ProyectoUpdate, RelationCreate
from comunidad.services.proyectos_service import ProyectosService

router = APIRouter(prefix="/api/v1/proyectos", tags=["proyectos"])

add_crud_routes(router, get_proyectos_service, ProyectoCreate, ProyectoUpdate, "Proyecto")


@router.get("/{proyecto_id}/temas")
async def list_temas(
    proyecto_id: str,
    params: ListParams = Depends(),
    service: ProyectosService = Depends(get_proyectos_service),
):
    return result_or_raise(await service.get_temas(proyecto_id, params.options))


@router.get("/{proyecto_id}/organizaciones")
async def list_organizaciones(
    proyecto_id: str,
    params: ListParams = Depends(),
    service: ProyectosService = Depends(get_proyectos_service),
):
    return result_or_raise(await service.get_organizaciones(proyecto_id, params.options))


@router.get("/{proyecto_id}/personas")
async def list_personas(
    proyecto_id: str,
    params: ListParams = Depends(),
    service: ProyectosService = Depends(get_proyectos_service),
):
    return result_or_raise(await service.get_personas(proyecto_id, params.options))


@router.post("/{proyecto_id}/temas", status_code=201)
async def add_tema(
    proyecto_id: str,
    data: RelationCreate,
    service: ProyectosService = Depends(get_proyectos_service),
):
    return result_or_raise(await service.add_tema(proyecto_id, data.target_id))


@router.post("/{proyecto_id}/organizaciones", status_code=201)
async def add_organizacion(
    proyecto_id: str,
    data: RelationCreate,
    service: ProyectosService = Depends(get_proyectos_service),
):
    return result_or_raise(await service.add_organizacion(proyecto_id, data.target_id, rol=data.rol))


@router.post("/{proyecto_id}/personas", status_code=201)
async def add_persona(
    proyecto_id: str,
    data: RelationCreate,
    service: ProyectosService = Depends(get_proyectos_service),
):
    return result_or_raise(await service.add_persona(proyecto_id, data.target_id, rol=data.rol))
