"""Temas service: the shared thematic taxonomy every other entity links to."""
from __future__ import annotations

from comunidad.services.cacheable import CacheableService
from comunidad.services.errors import ServiceError
from comunidad.services.query import Options
from comunidad.services.result import ServiceResult
from comunidad.services.validators import forbid_blank, require_fields


class TemasService(CacheableService):
    table_name = "temas"
    entity_type = "tema"
    entity_label = "Tema"
    default_sort = "nombre"
    # The taxonomy rarely changes.
    cache_ttl = 6 * 3600

    def get_searchable_fields(self) -> list[str]:
        return ["nombre", "descripcion", "categoria"]

    def validate_create_input(self, data: dict) -> ServiceError | None:
        return require_fields(data, ["nombre"])

    def validate_update_input(self, data: dict) -> ServiceError | None:
        return forbid_blank(data, ["nombre"])

    async def get_organizaciones(self, tema_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(tema_id, "temas", "organizaciones", "organizacion_tema", options)

    async def get_proyectos(self, tema_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(tema_id, "temas", "proyectos", "proyecto_tema", options)

    async def get_noticias(self, tema_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(tema_id, "temas", "noticias", "noticia_tema", options)

    async def get_personas(self, tema_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(tema_id, "temas", "personas", "persona_tema", options)
