"""
Endpoint tests for proyectos, temas, personas, noticias and metrics.
"""
import pytest
from httpx import AsyncClient


async def _post(client: AsyncClient, path: str, payload: dict) -> dict:
    resp = await client.post(path, json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_proyecto_crud_and_relations(async_client: AsyncClient):
    proyecto = await _post(async_client, "/api/v1/proyectos", {"titulo": "Huerta comunitaria", "anio": 2024})
    org = await _post(async_client, "/api/v1/organizaciones", {"nombre": "Coop A"})
    persona = await _post(async_client, "/api/v1/personas", {"nombre": "Ana", "apellido": "Perez"})
    tema = await _post(async_client, "/api/v1/temas", {"nombre": "Agroecologia"})
    pid = proyecto["id"]

    link = await _post(async_client, f"/api/v1/proyectos/{pid}/organizaciones", {"target_id": org["id"], "rol": "coordinadora"})
    assert link["rol"] == "coordinadora"
    await _post(async_client, f"/api/v1/proyectos/{pid}/personas", {"target_id": persona["id"]})
    await _post(async_client, f"/api/v1/proyectos/{pid}/temas", {"target_id": tema["id"]})

    orgs = (await async_client.get(f"/api/v1/proyectos/{pid}/organizaciones")).json()
    assert [o["nombre"] for o in orgs] == ["Coop A"]
    personas = (await async_client.get(f"/api/v1/proyectos/{pid}/personas")).json()
    assert [p["apellido"] for p in personas] == ["Perez"]
    temas = (await async_client.get(f"/api/v1/proyectos/{pid}/temas")).json()
    assert [t["nombre"] for t in temas] == ["Agroecologia"]

    back = (await async_client.get(f"/api/v1/organizaciones/{org['id']}/proyectos")).json()
    assert [p["id"] for p in back] == [pid]

    resp = await async_client.patch(f"/api/v1/proyectos/{pid}", json={"anio": 1700})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_tema_views(async_client: AsyncClient):
    tema = await _post(async_client, "/api/v1/temas", {"nombre": "Cultura", "categoria": "cultura"})
    org = await _post(async_client, "/api/v1/organizaciones", {"nombre": "Centro Cultural"})
    persona = await _post(async_client, "/api/v1/personas", {"nombre": "Luis", "apellido": "Gomez"})
    noticia = await _post(async_client, "/api/v1/noticias", {"titulo": "Festival"})
    tid = tema["id"]

    await _post(async_client, f"/api/v1/organizaciones/{org['id']}/temas", {"target_id": tid})
    await _post(async_client, f"/api/v1/personas/{persona['id']}/temas", {"target_id": tid})
    await _post(async_client, f"/api/v1/noticias/{noticia['id']}/temas", {"target_id": tid})

    assert [o["id"] for o in (await async_client.get(f"/api/v1/temas/{tid}/organizaciones")).json()] == [org["id"]]
    assert [p["id"] for p in (await async_client.get(f"/api/v1/temas/{tid}/personas")).json()] == [persona["id"]]
    assert [n["id"] for n in (await async_client.get(f"/api/v1/temas/{tid}/noticias")).json()] == [noticia["id"]]
    assert (await async_client.get(f"/api/v1/temas/{tid}/proyectos")).json() == []

    assert [t["id"] for t in (await async_client.get(f"/api/v1/personas/{persona['id']}/temas")).json()] == [tid]
    assert [t["id"] for t in (await async_client.get(f"/api/v1/noticias/{noticia['id']}/temas")).json()] == [tid]


@pytest.mark.asyncio
async def test_duplicate_tema_is_a_storage_error(async_client: AsyncClient):
    await _post(async_client, "/api/v1/temas", {"nombre": "Vivienda"})
    resp = await async_client.post("/api/v1/temas", json={"nombre": "Vivienda"})
    assert resp.status_code == 503
    detail = resp.json()["detail"]
    assert detail["code"] == "DB_ERROR"
    # Driver messages are not exposed.
    assert "UNIQUE" not in detail["message"]

    # The failed request did not poison later ones.
    assert len((await async_client.get("/api/v1/temas")).json()) == 1


@pytest.mark.asyncio
async def test_noticia_validation_over_http(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/noticias", json={"titulo": "Link", "tipo": "enlace_externo"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["source"] == "url_externa"


@pytest.mark.asyncio
async def test_metrics(async_client: AsyncClient):
    await _post(async_client, "/api/v1/organizaciones", {"nombre": "Coop A"})
    doomed = await _post(async_client, "/api/v1/organizaciones", {"nombre": "Coop B"})
    await _post(async_client, "/api/v1/temas", {"nombre": "Cultura"})
    await async_client.post(f"/api/v1/organizaciones/{doomed['id']}/soft-delete", json={"deleted_by": "admin"})

    resp = await async_client.get("/api/v1/metrics")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_organizaciones"] == 1
    assert data["total_temas"] == 1
    assert data["total_proyectos"] == 0
    assert data["cache_info"]["backend"] == "memory"
