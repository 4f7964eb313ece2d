"""
Glue between ServiceResult and HTTP.

Routers never inspect driver exceptions: they branch on the service
error code only.

- not found (a ``VALIDATION_ERROR`` tagged ``reason=not_found``) -> 404
- any other ``VALIDATION_ERROR`` -> 422
- ``DB_ERROR`` -> 503; the driver message stays in the logs
"""
import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from comunidad.dependencies import ListParams
from comunidad.schemas import SoftDeleteRequest
from comunidad.services.errors import ErrorCode
from comunidad.services.result import ServiceResult

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Storage is temporarily unavailable, please retry"


def result_or_raise(result: ServiceResult, not_found: str | None = None) -> Any:
    """
    Return ``result.data`` or raise the matching HTTPException.

    With *not_found* set, a successful result carrying no data (an absent
    entity) is also turned into a 404 with that message.
    """
    if result.success:
        if result.data is None and not_found is not None:
            raise HTTPException(status_code=404, detail=not_found)
        return result.data

    error = result.error
    if error.code is ErrorCode.DB_ERROR:
        logger.error("Storage failure in %s: %s", error.source, error.message)
        raise HTTPException(status_code=503, detail={"code": error.code.value, "message": RETRY_MESSAGE})
    status = 404 if error.is_not_found else 422
    raise HTTPException(
        status_code=status,
        detail={
            "code": error.code.value,
            "message": error.message,
            "source": error.source,
            "details": error.details,
        },
    )


def add_crud_routes(
    router: APIRouter,
    get_service: Callable,
    create_schema: type,
    update_schema: type,
    label: str,
) -> None:
    """
    Register the CRUD surface shared by every entity router.

    ``/search`` is registered before ``/{entity_id}`` so it is not
    captured as an id.
    """
    not_found = f"{label} not found"

    @router.get("")
    async def list_entities(params: ListParams = Depends(), service=Depends(get_service)):
        return result_or_raise(await service.get_all(params.options))

    @router.get("/search")
    async def search_entities(
        q: str = Query(..., min_length=1, description="Case-insensitive search term."),
        params: ListParams = Depends(),
        service=Depends(get_service),
    ):
        return result_or_raise(await service.search(q, params.options))

    @router.get("/{entity_id}")
    async def get_entity(entity_id: str, service=Depends(get_service)):
        return result_or_raise(await service.get_by_id(entity_id), not_found=not_found)

    @router.post("", status_code=201)
    async def create_entity(data: create_schema, service=Depends(get_service)):
        return result_or_raise(await service.create(data))

    @router.patch("/{entity_id}")
    async def update_entity(entity_id: str, data: update_schema, service=Depends(get_service)):
        return result_or_raise(await service.update(entity_id, data))

    @router.delete("/{entity_id}", status_code=204)
    async def delete_entity(entity_id: str, service=Depends(get_service)):
        result_or_raise(await service.delete(entity_id))
        return Response(status_code=204)

    @router.post("/{entity_id}/soft-delete")
    async def soft_delete_entity(entity_id: str, data: SoftDeleteRequest, service=Depends(get_service)):
        return result_or_raise(await service.soft_delete(entity_id, data.deleted_by))

    @router.post("/{entity_id}/restore")
    async def restore_entity(entity_id: str, service=Depends(get_service)):
        return result_or_raise(await service.restore(entity_id))
