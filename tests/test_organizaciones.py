"""
Organizacion endpoint tests: CRUD lifecycle, search, soft delete and
tema links, plus the HTTP mapping of service errors.

Each test creates the rows it needs through the API.
"""
import pytest
from httpx import AsyncClient

BASE = "/api/v1/organizaciones"


async def _create(client: AsyncClient, **fields) -> dict:
    resp = await client.post(BASE, json={"nombre": "Coop A", **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _create_tema(client: AsyncClient, nombre: str) -> dict:
    resp = await client.post("/api/v1/temas", json={"nombre": nombre})
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Infrastructure / health
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_get(async_client: AsyncClient):
    created = await _create(async_client, tipo="cooperativa", sitio_web="https://coop.example.org")
    assert created["nombre"] == "Coop A"
    assert created["esta_eliminada"] is False

    resp = await async_client.get(f"{BASE}/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == created


@pytest.mark.asyncio
async def test_get_missing_returns_404(async_client: AsyncClient):
    resp = await async_client.get(f"{BASE}/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Organizacion not found"


@pytest.mark.asyncio
async def test_schema_and_service_validation_return_422(async_client: AsyncClient):
    # Rejected by the request schema.
    resp = await async_client.post(BASE, json={"descripcion": "sin nombre"})
    assert resp.status_code == 422

    # Rejected by the service's validation hook.
    resp = await async_client.post(BASE, json={"nombre": "Coop", "email_contacto": "nobody"})
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert detail["source"] == "email_contacto"


@pytest.mark.asyncio
async def test_list_sorted_and_paginated(async_client: AsyncClient):
    for nombre in ["Charlie", "Alpha", "Bravo"]:
        await _create(async_client, nombre=nombre)

    resp = await async_client.get(BASE)
    assert [o["nombre"] for o in resp.json()] == ["Alpha", "Bravo", "Charlie"]

    resp = await async_client.get(BASE, params={"page": 1, "page_size": 2, "sort_by": "nombre", "sort_order": "desc"})
    assert [o["nombre"] for o in resp.json()] == ["Charlie", "Bravo"]


@pytest.mark.asyncio
async def test_page_size_above_limit_is_rejected(async_client: AsyncClient):
    resp = await async_client.get(BASE, params={"page_size": 10_000})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_patch_updates_and_invalidates(async_client: AsyncClient):
    created = await _create(async_client)
    await async_client.get(f"{BASE}/{created['id']}")

    resp = await async_client.patch(f"{BASE}/{created['id']}", json={"ciudad": "Rosario"})
    assert resp.status_code == 200
    assert resp.json()["ciudad"] == "Rosario"

    resp = await async_client.get(f"{BASE}/{created['id']}")
    assert resp.json()["ciudad"] == "Rosario"


@pytest.mark.asyncio
async def test_patch_missing_returns_404(async_client: AsyncClient):
    resp = await async_client.patch(f"{BASE}/missing", json={"ciudad": "Rosario"})
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_delete(async_client: AsyncClient):
    created = await _create(async_client)
    resp = await async_client.delete(f"{BASE}/{created['id']}")
    assert resp.status_code == 204
    assert (await async_client.get(f"{BASE}/{created['id']}")).status_code == 404
    assert (await async_client.delete(f"{BASE}/{created['id']}")).status_code == 404


# ---------------------------------------------------------------------------
# Search and filtered listings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search(async_client: AsyncClient):
    await _create(async_client, nombre="Cooperativa Norte")
    await _create(async_client, nombre="Fundacion Sur")

    resp = await async_client.get(f"{BASE}/search", params={"q": "COOP"})
    assert resp.status_code == 200
    assert [o["nombre"] for o in resp.json()] == ["Cooperativa Norte"]

    assert (await async_client.get(f"{BASE}/search", params={"q": "   "})).status_code == 422
    assert (await async_client.get(f"{BASE}/search")).status_code == 422


@pytest.mark.asyncio
async def test_abiertas_and_tipo(async_client: AsyncClient):
    await _create(async_client, nombre="Abierta", tipo="cooperativa", abierta_a_colaboraciones=True)
    await _create(async_client, nombre="Cerrada", tipo="fundacion")

    resp = await async_client.get(f"{BASE}/abiertas")
    assert [o["nombre"] for o in resp.json()] == ["Abierta"]
    resp = await async_client.get(f"{BASE}/tipo/fundacion")
    assert [o["nombre"] for o in resp.json()] == ["Cerrada"]


# ---------------------------------------------------------------------------
# Soft delete / restore
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_soft_delete_and_restore(async_client: AsyncClient):
    created = await _create(async_client)
    oid = created["id"]

    resp = await async_client.post(f"{BASE}/{oid}/soft-delete", json={"deleted_by": "admin-1"})
    assert resp.status_code == 200
    assert resp.json()["eliminado_por_uid"] == "admin-1"

    assert (await async_client.get(BASE)).json() == []
    listed = (await async_client.get(BASE, params={"include_deleted": True})).json()
    assert [o["id"] for o in listed] == [oid]
    # Detail reads still return the row, flagged as deleted.
    assert (await async_client.get(f"{BASE}/{oid}")).json()["esta_eliminada"] is True

    resp = await async_client.post(f"{BASE}/{oid}/restore")
    assert resp.status_code == 200
    assert resp.json()["esta_eliminada"] is False
    assert resp.json()["eliminado_en"] is None
    assert len((await async_client.get(BASE)).json()) == 1


@pytest.mark.asyncio
async def test_soft_delete_requires_deleted_by(async_client: AsyncClient):
    created = await _create(async_client)
    resp = await async_client.post(f"{BASE}/{created['id']}/soft-delete", json={"deleted_by": ""})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Tema links
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_link_list_and_unlink_temas(async_client: AsyncClient):
    org = await _create(async_client)
    tema = await _create_tema(async_client, "Cultura")

    resp = await async_client.post(f"{BASE}/{org['id']}/temas", json={"target_id": tema["id"]})
    assert resp.status_code == 201

    resp = await async_client.get(f"{BASE}/{org['id']}/temas")
    assert [t["nombre"] for t in resp.json()] == ["Cultura"]

    dup = await async_client.post(f"{BASE}/{org['id']}/temas", json={"target_id": tema["id"]})
    assert dup.status_code == 422
    assert dup.json()["detail"]["message"] == "Relationship already exists"

    resp = await async_client.delete(f"{BASE}/{org['id']}/temas/{tema['id']}")
    assert resp.status_code == 204
    assert (await async_client.get(f"{BASE}/{org['id']}/temas")).json() == []


@pytest.mark.asyncio
async def test_link_to_missing_tema_returns_404(async_client: AsyncClient):
    org = await _create(async_client)
    resp = await async_client.post(f"{BASE}/{org['id']}/temas", json={"target_id": "missing"})
    assert resp.status_code == 404
