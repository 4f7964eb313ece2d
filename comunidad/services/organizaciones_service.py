"""
Organizaciones service: directory of cooperatives, companies, NGOs and
public bodies.

Every many-to-many accessor is a single ``get_related_entities`` call;
"organizaciones of a tema" and "temas of an organizacion" are the same
call with source and target swapped.
"""
from __future__ import annotations

from comunidad.services.base import service_operation
from comunidad.services.cacheable import CacheableService
from comunidad.services.errors import ServiceError, validation_error
from comunidad.services.query import Options, coerce_options
from comunidad.services.result import ServiceResult, failure
from comunidad.services.validators import (
    check_emails,
    check_urls,
    first_error,
    forbid_blank,
    require_fields,
)

_URL_FIELDS = ("sitio_web", "logo_url")


class OrganizacionesService(CacheableService):
    table_name = "organizaciones"
    entity_type = "organizacion"
    entity_label = "Organizacion"
    default_sort = "nombre"
    cache_ttl = 3600

    def get_searchable_fields(self) -> list[str]:
        return ["nombre", "descripcion", "tipo", "ciudad", "provincia", "pais"]

    def validate_create_input(self, data: dict) -> ServiceError | None:
        return first_error(
            require_fields(data, ["nombre"]),
            check_urls(data, _URL_FIELDS),
            check_emails(data, ["email_contacto"]),
        )

    def validate_update_input(self, data: dict) -> ServiceError | None:
        return first_error(
            forbid_blank(data, ["nombre"]),
            check_urls(data, _URL_FIELDS),
            check_emails(data, ["email_contacto"]),
        )

    # ------------------------------------------------------------------
    # Filtered listings
    # ------------------------------------------------------------------

    @service_operation
    async def get_by_tipo(self, tipo: str, options: Options = None) -> ServiceResult:
        if not tipo:
            return failure(validation_error("Tipo is required", source="tipo", details={"tipo": tipo}))
        opts = coerce_options(options)
        return await self.get_all(opts.model_copy(update={"filters": {**opts.filters, "tipo": tipo}}))

    @service_operation
    async def get_abiertas(self, options: Options = None) -> ServiceResult:
        """Organizaciones open to collaborations."""
        opts = coerce_options(options)
        return await self.get_all(
            opts.model_copy(update={"filters": {**opts.filters, "abierta_a_colaboraciones": True}})
        )

    # ------------------------------------------------------------------
    # Organizaciones seen from another entity
    # ------------------------------------------------------------------

    async def get_by_tema(self, tema_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(tema_id, "temas", "organizaciones", "organizacion_tema", options)

    async def get_by_proyecto(self, proyecto_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(
            proyecto_id, "proyectos", "organizaciones", "proyecto_organizacion_rol", options
        )

    async def get_by_noticia(self, noticia_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(
            noticia_id, "noticias", "organizaciones", "noticia_organizacion_rol", options
        )

    # ------------------------------------------------------------------
    # Entities related to an organizacion
    # ------------------------------------------------------------------

    async def get_temas(self, organizacion_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(organizacion_id, "organizaciones", "temas", "organizacion_tema", options)

    async def get_proyectos(self, organizacion_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(
            organizacion_id, "organizaciones", "proyectos", "proyecto_organizacion_rol", options
        )

    async def get_noticias(self, organizacion_id: str, options: Options = None) -> ServiceResult:
        return await self.get_related_entities(
            organizacion_id, "organizaciones", "noticias", "noticia_organizacion_rol", options
        )

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def add_tema(self, organizacion_id: str, tema_id: str) -> ServiceResult:
        return await self.relationship("organizacion_tema", "temas").add_relationship(organizacion_id, tema_id)

    async def remove_tema(self, organizacion_id: str, tema_id: str) -> ServiceResult:
        return await self.relationship("organizacion_tema", "temas").remove_relationship(organizacion_id, tema_id)
