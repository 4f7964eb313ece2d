"""Validation rules and relation accessors specific to each entity service."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from comunidad.schemas import NoticiaCreate, PersonaCreate, ProyectoCreate
from comunidad.services.errors import ErrorCode
from comunidad.services.noticias_service import NoticiasService
from comunidad.services.organizaciones_service import OrganizacionesService
from comunidad.services.personas_service import PersonasService
from comunidad.services.proyectos_service import ProyectosService
from comunidad.services.temas_service import TemasService
from comunidad.services.validators import is_valid_email, is_valid_url


@pytest.fixture
def services(db_session: AsyncSession, cache) -> dict:
    return {
        "organizaciones": OrganizacionesService(db_session, cache),
        "proyectos": ProyectosService(db_session, cache),
        "temas": TemasService(db_session, cache),
        "personas": PersonasService(db_session, cache),
        "noticias": NoticiasService(db_session, cache),
    }


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://example.org", True),
        ("http://localhost:8000/path?q=1", True),
        ("example.org", False),
        ("not a url", False),
    ],
)
def test_is_valid_url(value, expected):
    assert is_valid_url(value) is expected


def test_is_valid_email():
    assert is_valid_email("ana@example.org")
    assert not is_valid_email("ana@example")
    assert not is_valid_email("ana example.org")
    assert not is_valid_email(42)
    assert not is_valid_email(None)
    assert not is_valid_url(["https://example.org"])


# ---------------------------------------------------------------------------
# proyectos
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_proyecto_validation(services):
    proyectos = services["proyectos"]
    assert (await proyectos.create({"descripcion": "sin titulo"})).error.source == "titulo"
    assert (await proyectos.create({"titulo": "P", "anio": 1850})).error.source == "anio"
    assert (await proyectos.create({"titulo": "P", "url_proyecto": "nope"})).error.source == "url_proyecto"

    created = (await proyectos.create(ProyectoCreate(titulo="Huerta", anio=2024))).unwrap()
    assert (await proyectos.update(created["id"], {"anio": 3000})).error.code is ErrorCode.VALIDATION_ERROR
    assert (await proyectos.update(created["id"], {"anio": 2025})).unwrap()["anio"] == 2025


@pytest.mark.asyncio
@pytest.mark.parametrize("anio", ["2020", 2020.0, True])
async def test_proyecto_anio_must_be_an_integer(services, anio):
    result = await services["proyectos"].create({"titulo": "P", "anio": anio})
    assert result.error.code is ErrorCode.VALIDATION_ERROR
    assert result.error.source == "anio"
    assert result.error.details == {"value": anio}


@pytest.mark.asyncio
async def test_non_string_email_is_a_validation_error(services):
    result = await services["personas"].create({"nombre": "Ana", "apellido": "P", "email": 12345})
    assert result.error.code is ErrorCode.VALIDATION_ERROR
    assert result.error.source == "email"

    coop = await services["organizaciones"].create({"nombre": "Coop", "email_contacto": ["a@b.org"]})
    assert coop.error.source == "email_contacto"


@pytest.mark.asyncio
async def test_proyecto_relations(services):
    proyectos, temas, personas = services["proyectos"], services["temas"], services["personas"]
    proyecto = (await proyectos.create({"titulo": "Huerta"})).unwrap()
    tema = (await temas.create({"nombre": "Agroecologia"})).unwrap()
    persona = (await personas.create(PersonaCreate(nombre="Ana", apellido="Perez"))).unwrap()

    (await proyectos.add_tema(proyecto["id"], tema["id"])).unwrap()
    link = (await proyectos.add_persona(proyecto["id"], persona["id"])).unwrap()
    assert link["rol"] == "autor"

    assert [t["id"] for t in (await proyectos.get_temas(proyecto["id"])).unwrap()] == [tema["id"]]
    assert [p["id"] for p in (await proyectos.get_by_tema(tema["id"])).unwrap()] == [proyecto["id"]]
    assert [p["id"] for p in (await proyectos.get_personas(proyecto["id"])).unwrap()] == [persona["id"]]
    assert [p["id"] for p in (await personas.get_proyectos(persona["id"])).unwrap()] == [proyecto["id"]]
    assert [p["id"] for p in (await temas.get_proyectos(tema["id"])).unwrap()] == [proyecto["id"]]


# ---------------------------------------------------------------------------
# personas
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_persona_validation(services):
    personas = services["personas"]
    assert (await personas.create({"nombre": "Ana"})).error.source == "apellido"
    assert (await personas.create({"nombre": "Ana", "apellido": "P", "email": "x"})).error.source == "email"
    assert (await personas.create({"nombre": "Ana", "apellido": "P", "foto_url": "x"})).error.source == "foto_url"

    persona = (await personas.create({"nombre": "Ana", "apellido": "Perez"})).unwrap()
    assert persona["visibilidad_perfil"] == "publico"


@pytest.mark.asyncio
async def test_persona_temas(services):
    personas, temas = services["personas"], services["temas"]
    persona = (await personas.create({"nombre": "Ana", "apellido": "Perez"})).unwrap()
    tema = (await temas.create({"nombre": "Genero"})).unwrap()
    await personas.add_tema(persona["id"], tema["id"])

    assert [t["nombre"] for t in (await personas.get_temas(persona["id"])).unwrap()] == ["Genero"]
    assert [p["apellido"] for p in (await temas.get_personas(tema["id"])).unwrap()] == ["Perez"]


# ---------------------------------------------------------------------------
# noticias
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_noticia_tipo_rules(services):
    noticias = services["noticias"]
    assert (await noticias.create({"titulo": "N", "tipo": "podcast"})).error.source == "tipo"
    external = await noticias.create({"titulo": "N", "tipo": "enlace_externo"})
    assert external.error.source == "url_externa"

    ok = await noticias.create(
        NoticiaCreate(titulo="N", tipo="enlace_externo", url_externa="https://diario.example.com/nota")
    )
    assert ok.unwrap()["tipo"] == "enlace_externo"
    own = (await noticias.create({"titulo": "Propia"})).unwrap()
    assert own["tipo"] == "articulo_propio"


@pytest.mark.asyncio
async def test_noticia_relations(services):
    noticias, temas, organizaciones = services["noticias"], services["temas"], services["organizaciones"]
    noticia = (await noticias.create({"titulo": "Nueva cooperativa"})).unwrap()
    tema = (await temas.create({"nombre": "Cooperativismo"})).unwrap()
    coop = (await organizaciones.create({"nombre": "Coop A"})).unwrap()

    await noticias.add_tema(noticia["id"], tema["id"])
    links = noticias.relationship("noticia_organizacion_rol", "organizaciones")
    assert (await links.add_relationship(noticia["id"], coop["id"])).unwrap()["rol"] == "mencionada"

    assert [t["id"] for t in (await noticias.get_temas(noticia["id"])).unwrap()] == [tema["id"]]
    assert [o["id"] for o in (await noticias.get_organizaciones(noticia["id"])).unwrap()] == [coop["id"]]
    assert [n["id"] for n in (await organizaciones.get_noticias(coop["id"])).unwrap()] == [noticia["id"]]
    assert [o["id"] for o in (await organizaciones.get_by_noticia(noticia["id"])).unwrap()] == [coop["id"]]
    assert [n["id"] for n in (await temas.get_noticias(tema["id"])).unwrap()] == [noticia["id"]]


@pytest.mark.asyncio
async def test_organizaciones_by_proyecto(services):
    organizaciones, proyectos = services["organizaciones"], services["proyectos"]
    proyecto = (await proyectos.create({"titulo": "Huerta"})).unwrap()
    coop = (await organizaciones.create({"nombre": "Coop A"})).unwrap()
    await proyectos.add_organizacion(proyecto["id"], coop["id"], rol="coordinadora")

    assert [o["id"] for o in (await organizaciones.get_by_proyecto(proyecto["id"])).unwrap()] == [coop["id"]]


@pytest.mark.asyncio
async def test_noticia_link_rule_holds_on_update(services):
    noticias = services["noticias"]
    own = (await noticias.create({"titulo": "Propia"})).unwrap()
    to_link = await noticias.update(own["id"], {"tipo": "enlace_externo"})
    assert to_link.error.code is ErrorCode.VALIDATION_ERROR
    assert to_link.error.source == "url_externa"

    link = (
        await noticias.create(
            {"titulo": "Nota", "tipo": "enlace_externo", "url_externa": "https://diario.example.com/nota"}
        )
    ).unwrap()
    cleared = await noticias.update(link["id"], {"url_externa": None})
    assert cleared.error.source == "url_externa"
    assert (await noticias.get_by_id(link["id"])).data["url_externa"] == "https://diario.example.com/nota"

    # Turning the link back into an own article may drop the URL.
    back = (await noticias.update(link["id"], {"tipo": "articulo_propio", "url_externa": None})).unwrap()
    assert back["tipo"] == "articulo_propio" and back["url_externa"] is None

    moved = await noticias.update(
        own["id"], {"tipo": "enlace_externo", "url_externa": "https://otro.example.com/a"}
    )
    assert moved.unwrap()["url_externa"] == "https://otro.example.com/a"
    assert (await noticias.update("missing", {"tipo": "enlace_externo"})).error.details["reason"] == "not_found"
