"""
Noticias service.

A noticia is either an article written on the platform
(``articulo_propio``) or a link to an external publication
(``enlace_externo``), which must carry ``url_externa``.  The link rule
holds after every write: an update that touches ``tipo`` or
``url_externa`` is checked against the stored row merged with the patch.
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel
from sqlalchemy import select

from comunidad.services.base import service_operation, to_payload
from comunidad.services.cacheable import CacheableService
from comunidad.services.errors import ServiceError, validation_error
from comunidad.services.query import Options
from comunidad.services.result import ServiceResult, failure
from comunidad.services.validators import check_urls, first_error, forbid_blank, require_fields

TIPOS = ("articulo_propio", "enlace_externo")
_URL_FIELDS = ("url_externa", "imagen_url")
_LINK_FIELDS = frozenset({"tipo", "url_externa"})


def _check_tipo(data: dict, creating: bool) -> ServiceError | None:
    tipo = data.get("tipo", "articulo_propio" if creating else None)
    if tipo is None:
        return None
    if tipo not in TIPOS:
        return validation_error(f"tipo must be one of {', '.join(TIPOS)}", source="tipo", details={"value": tipo})
    if creating:
        return _check_link(data)
    return None


def _check_link(data: dict) -> ServiceError | None:
    if data.get("tipo") == "enlace_externo" and not data.get("url_externa"):
        return validation_error("url_externa is required for external links", source="url_externa")
    return None


class NoticiasService(CacheableService):
    table_name = "noticias"
    entity_type = "noticia"
    entity_label = "Noticia"
    # News listings change often; keep cached rows short-lived.
    cache_ttl = 300

    def get_searchable_fields(self) -> list[str]:
        return ["titulo", "subtitulo", "contenido", "autor"]

    def validate_create_input(self, data: dict) -> ServiceError | None:
        return first_error(require_fields(data, ["titulo"]), _check_tipo(data, True), check_urls(data, _URL_FIELDS))

    def validate_update_input(self, data: dict) -> ServiceError | None:
        return first_error(forbid_blank(data, ["titulo"]), _check_tipo(data, False), check_urls(data, _URL_FIELDS))

    @service_operation
    async def update(self, noticia_id: str, data: BaseModel | Mapping[str, Any]) -> ServiceResult:
        payload = to_payload(data)
        if noticia_id and isinstance(noticia_id, str) and _LINK_FIELDS & payload.keys():
            stmt = select(self._table.c.tipo, self._table.c.url_externa).where(self._table.c.id == noticia_id)
            stored = (await self._execute(stmt, "update")).one_or_none()
            if stored is not None:
                error = _check_link({**stored._asdict(), **payload})
                if error is not None:
                    return failure(error)
        return await super().update(noticia_id, payload)

    async def get_temas(self, noticia_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(noticia_id, "noticias", "temas", "noticia_tema", options)

    async def get_organizaciones(self, noticia_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(
            noticia_id, "noticias", "organizaciones", "noticia_organizacion_rol", options
        )

    async def add_tema(self, noticia_id: str, tema_id: str) -> ServiceResult:
        return await self.relationship("noticia_tema", "temas").add_relationship(noticia_id, tema_id)
