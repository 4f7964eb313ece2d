"""Proyectos service: community and research projects."""
from __future__ import annotations

from comunidad.services.cacheable import CacheableService
from comunidad.services.errors import ServiceError, validation_error
from comunidad.services.query import Options
from comunidad.services.result import ServiceResult
from comunidad.services.validators import check_urls, first_error, forbid_blank, require_fields

_URL_FIELDS = ("url_proyecto", "imagen_url")
_MIN_ANIO, _MAX_ANIO = 1900, 2100


def _check_anio(data: dict) -> ServiceError | None:
    anio = data.get("anio")
    if anio is None:
        return None
    # bool is an int subclass; True is not a year.
    if isinstance(anio, bool) or not isinstance(anio, int):
        return validation_error("anio must be an integer", source="anio", details={"value": anio})
    if not (_MIN_ANIO <= anio <= _MAX_ANIO):
        return validation_error(
            f"anio must be between {_MIN_ANIO} and {_MAX_ANIO}", source="anio", details={"value": anio}
        )
    return None


class ProyectosService(CacheableService):
    table_name = "proyectos"
    entity_type = "proyecto"
    entity_label = "Proyecto"
    default_sort = "titulo"

    def get_searchable_fields(self) -> list[str]:
        return ["titulo", "descripcion", "estado"]

    def validate_create_input(self, data: dict) -> ServiceError | None:
        return first_error(require_fields(data, ["titulo"]), check_urls(data, _URL_FIELDS), _check_anio(data))

    def validate_update_input(self, data: dict) -> ServiceError | None:
        return first_error(forbid_blank(data, ["titulo"]), check_urls(data, _URL_FIELDS), _check_anio(data))

    async def get_temas(self, proyecto_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(proyecto_id, "proyectos", "temas", "proyecto_tema", options)

    async def get_organizaciones(self, proyecto_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(
            proyecto_id, "proyectos", "organizaciones", "proyecto_organizacion_rol", options
        )

    async def get_personas(self, proyecto_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(proyecto_id, "proyectos", "personas", "proyecto_persona_rol", options)

    async def get_by_tema(self, tema_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(tema_id, "temas", "proyectos", "proyecto_tema", options)

    async def add_tema(self, proyecto_id: str, tema_id: str) -> ServiceResult:
        return await self.relationship("proyecto_tema", "temas").add_relationship(proyecto_id, tema_id)

    async def add_organizacion(self, proyecto_id: str, organizacion_id: str, rol: str | None = None) -> ServiceResult:
        return await self.relationship("proyecto_organizacion_rol", "organizaciones").add_relationship(
            proyecto_id, organizacion_id, rol=rol
        )

    async def add_persona(self, proyecto_id: str, persona_id: str, rol: str | None = None) -> ServiceResult:
        return await self.relationship("proyecto_persona_rol", "personas").add_relationship(
            proyecto_id, persona_id, rol=rol
        )
