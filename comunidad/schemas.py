from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Query options ---

class QueryOptions(BaseModel):
    """
    Listing options understood by every entity service.

    ``page`` / ``page_size`` become OFFSET / LIMIT; ``sort_by`` must name a
    real column of the queried table; ``filters`` are equality matches on
    real columns (a list value means "any of").
    """

    model_config = ConfigDict(extra="forbid")

    filters: dict[str, Any] = Field(default_factory=dict)
    page: int | None = Field(None, ge=1)
    page_size: int | None = Field(None, ge=1)
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] = "asc"
    include_deleted: bool = False
    searchable_fields: list[str] | None = None


# --- Organizacion ---

class OrganizacionCreate(BaseModel):
    nombre: str = Field(max_length=200)
    descripcion: str | None = None
    tipo: str | None = Field(None, max_length=50)
    ciudad: str | None = Field(None, max_length=100)
    provincia: str | None = Field(None, max_length=100)
    pais: str | None = Field(None, max_length=100)
    sitio_web: str | None = Field(None, max_length=500)
    logo_url: str | None = Field(None, max_length=500)
    email_contacto: str | None = Field(None, max_length=255)
    abierta_a_colaboraciones: bool = False


class OrganizacionUpdate(BaseModel):
    nombre: str | None = Field(None, max_length=200)
    descripcion: str | None = None
    tipo: str | None = Field(None, max_length=50)
    ciudad: str | None = Field(None, max_length=100)
    provincia: str | None = Field(None, max_length=100)
    pais: str | None = Field(None, max_length=100)
    sitio_web: str | None = Field(None, max_length=500)
    logo_url: str | None = Field(None, max_length=500)
    email_contacto: str | None = Field(None, max_length=255)
    abierta_a_colaboraciones: bool | None = None


# --- Proyecto ---

class ProyectoCreate(BaseModel):
    titulo: str = Field(max_length=300)
    descripcion: str | None = None
    estado: str | None = Field(None, max_length=50)
    anio: int | None = None
    url_proyecto: str | None = Field(None, max_length=500)
    imagen_url: str | None = Field(None, max_length=500)


class ProyectoUpdate(BaseModel):
    titulo: str | None = Field(None, max_length=300)
    descripcion: str | None = None
    estado: str | None = Field(None, max_length=50)
    anio: int | None = None
    url_proyecto: str | None = Field(None, max_length=500)
    imagen_url: str | None = Field(None, max_length=500)


# --- Tema ---

class TemaCreate(BaseModel):
    nombre: str = Field(max_length=150)
    descripcion: str | None = None
    categoria: str | None = Field(None, max_length=100)


class TemaUpdate(BaseModel):
    nombre: str | None = Field(None, max_length=150)
    descripcion: str | None = None
    categoria: str | None = Field(None, max_length=100)


# --- Persona ---

class PersonaCreate(BaseModel):
    nombre: str = Field(max_length=150)
    apellido: str = Field(max_length=150)
    email: str | None = Field(None, max_length=255)
    categoria_principal: str | None = Field(None, max_length=50)
    foto_url: str | None = Field(None, max_length=500)
    visibilidad_perfil: Literal["publico", "privado"] = "publico"


class PersonaUpdate(BaseModel):
    nombre: str | None = Field(None, max_length=150)
    apellido: str | None = Field(None, max_length=150)
    email: str | None = Field(None, max_length=255)
    categoria_principal: str | None = Field(None, max_length=50)
    foto_url: str | None = Field(None, max_length=500)
    visibilidad_perfil: Literal["publico", "privado"] | None = None


# --- Noticia ---

class NoticiaCreate(BaseModel):
    titulo: str = Field(max_length=300)
    subtitulo: str | None = Field(None, max_length=500)
    contenido: str | None = None
    tipo: str = "articulo_propio"
    url_externa: str | None = Field(None, max_length=500)
    imagen_url: str | None = Field(None, max_length=500)
    autor: str | None = Field(None, max_length=200)


class NoticiaUpdate(BaseModel):
    titulo: str | None = Field(None, max_length=300)
    subtitulo: str | None = Field(None, max_length=500)
    contenido: str | None = None
    tipo: str | None = None
    url_externa: str | None = Field(None, max_length=500)
    imagen_url: str | None = Field(None, max_length=500)
    autor: str | None = Field(None, max_length=200)


# --- Lifecycle / relations ---

class SoftDeleteRequest(BaseModel):
    deleted_by: str = Field(min_length=1, max_length=64)


class RelationCreate(BaseModel):
    target_id: str
    rol: str | None = Field(None, max_length=50)


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_organizaciones: int
    total_proyectos: int
    total_temas: int
    total_personas: int
    total_noticias: int
    cache_info: dict = {}
