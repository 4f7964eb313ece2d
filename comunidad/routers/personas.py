from fastapi import APIRouter, Depends

from comunidad.dependencies import ListParams, get_personas_service
from comunidad.routers.common import add_crud_routes, result_or_raise
from comunidad.schemas import PersonaCreate, PersonaUpdate, RelationCreate
from comunidad.services.personas_service import PersonasService

router = APIRouter(prefix="/api/v1/personas", tags=["personas"])

add_crud_routes(router, get_personas_service, PersonaCreate, PersonaUpdate, "Persona")


@router.get("/{persona_id}/temas")
async def list_temas(
    persona_id: str,
    params: ListParams = Depends(),
    service: PersonasService = Depends(get_personas_service),
):
    return result_or_raise(await service.get_temas(persona_id, params.options))


@router.post("/{persona_id}/temas", status_code=201)
async def add_tema(
    persona_id: str,
    data: RelationCreate,
    service: PersonasService = Depends(get_personas_service),
):
    return result_or_raise(await service.add_tema(persona_id, data.target_id))


@router.get("/{persona_id}/proyectos")
async def list_proyectos(
    persona_id: str,
    params: ListParams = Depends(),
    service: PersonasService = Depends(get_personas_service),
):
    return result_or_raise(await service.get_proyectos(persona_id, params.options))
