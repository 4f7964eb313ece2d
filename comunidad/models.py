from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from comunidad.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Shared columns
# ---------------------------------------------------------------------------
class EntityMixin:
    """String primary key plus creation / modification timestamps."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=True
    )


class SoftDeleteMixin:
    """
    Flat persistence of the soft-delete state.

    The three columns always move together; see
    ``comunidad.services.deletion`` for the Active / Deleted mapping.
    """

    esta_eliminada: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    eliminado_por_uid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    eliminado_en: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
class Organizacion(EntityMixin, SoftDeleteMixin, Base):
    __tablename__ = "organizaciones"

    __table_args__ = (
        Index("ix_organizaciones_tipo_nombre", "tipo", "nombre"),
    )

    nombre: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    descripcion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tipo: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ciudad: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    provincia: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    pais: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sitio_web: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    email_contacto: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    abierta_a_colaboraciones: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Proyecto(EntityMixin, SoftDeleteMixin, Base):
    __tablename__ = "proyectos"

    titulo: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    descripcion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estado: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    anio: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    url_proyecto: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    imagen_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class Tema(EntityMixin, SoftDeleteMixin, Base):
    __tablename__ = "temas"

    nombre: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    categoria: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class Persona(EntityMixin, SoftDeleteMixin, Base):
    __tablename__ = "personas"

    nombre: Mapped[str] = mapped_column(String(150), nullable=False)
    apellido: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    categoria_principal: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    foto_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    visibilidad_perfil: Mapped[str] = mapped_column(String(20), default="publico", nullable=False)


class Noticia(EntityMixin, SoftDeleteMixin, Base):
    __tablename__ = "noticias"

    titulo: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    subtitulo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    contenido: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tipo: Mapped[str] = mapped_column(String(30), default="articulo_propio", nullable=False)
    url_externa: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    imagen_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    autor: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


# ---------------------------------------------------------------------------
# Junction tables (many-to-many)
#
# Pair uniqueness is enforced by the composite primary keys.  The generic
# relation resolver discovers which column points where through the
# foreign keys, so every junction column must declare one.
# ---------------------------------------------------------------------------
def _fk(target: str) -> ForeignKey:
    return ForeignKey(f"{target}.id", ondelete="CASCADE")


organizacion_tema = Table(
    "organizacion_tema",
    Base.metadata,
    Column("organizacion_id", String(36), _fk("organizaciones"), primary_key=True),
    Column("tema_id", String(36), _fk("temas"), primary_key=True),
)

proyecto_tema = Table(
    "proyecto_tema",
    Base.metadata,
    Column("proyecto_id", String(36), _fk("proyectos"), primary_key=True),
    Column("tema_id", String(36), _fk("temas"), primary_key=True),
)

persona_tema = Table(
    "persona_tema",
    Base.metadata,
    Column("persona_id", String(36), _fk("personas"), primary_key=True),
    Column("tema_id", String(36), _fk("temas"), primary_key=True),
)

noticia_tema = Table(
    "noticia_tema",
    Base.metadata,
    Column("noticia_id", String(36), _fk("noticias"), primary_key=True),
    Column("tema_id", String(36), _fk("temas"), primary_key=True),
)

proyecto_organizacion_rol = Table(
    "proyecto_organizacion_rol",
    Base.metadata,
    Column("proyecto_id", String(36), _fk("proyectos"), primary_key=True),
    Column("organizacion_id", String(36), _fk("organizaciones"), primary_key=True),
    Column("rol", String(50), primary_key=True, default="participante"),
)

proyecto_persona_rol = Table(
    "proyecto_persona_rol",
    Base.metadata,
    Column("proyecto_id", String(36), _fk("proyectos"), primary_key=True),
    Column("persona_id", String(36), _fk("personas"), primary_key=True),
    Column("rol", String(50), primary_key=True, default="autor"),
)

noticia_organizacion_rol = Table(
    "noticia_organizacion_rol",
    Base.metadata,
    Column("noticia_id", String(36), _fk("noticias"), primary_key=True),
    Column("organizacion_id", String(36), _fk("organizaciones"), primary_key=True),
    Column("rol", String(50), primary_key=True, default="mencionada"),
)
