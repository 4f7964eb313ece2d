"""Personas service: people in the community directory."""
from __future__ import annotations

from comunidad.services.cacheable import CacheableService
from comunidad.services.errors import ServiceError
from comunidad.services.query import Options
from comunidad.services.result import ServiceResult
from comunidad.services.validators import check_emails, check_urls, first_error, forbid_blank, require_fields


class PersonasService(CacheableService):
    table_name = "personas"
    entity_type = "persona"
    entity_label = "Persona"
    default_sort = "apellido"

    def get_searchable_fields(self) -> list[str]:
        return ["nombre", "apellido", "email", "categoria_principal"]

    def validate_create_input(self, data: dict) -> ServiceError | None:
        return first_error(
            require_fields(data, ["nombre", "apellido"]),
            check_emails(data, ["email"]),
            check_urls(data, ["foto_url"]),
        )

    def validate_update_input(self, data: dict) -> ServiceError | None:
        return first_error(
            forbid_blank(data, ["nombre", "apellido"]),
            check_emails(data, ["email"]),
            check_urls(data, ["foto_url"]),
        )

    async def get_temas(self, persona_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(persona_id, "personas", "temas", "persona_tema", options)

    async def get_proyectos(self, persona_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(persona_id, "personas", "proyectos", "proyecto_persona_rol", options)

    async def add_tema(self, persona_id: str, tema_id: str) -> ServiceResult:
        return await self.relationship("persona_tema", "temas").add_relationship(persona_id, tema_id)
