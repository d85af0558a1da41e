"""
Tests de odontólogos, proveedores e inventario con su kardex.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth_headers, create_clinic
from dental_marketplace.models import StockMovement, StockMovementType
from dental_marketplace.services.inventory_service import (
    INITIAL_STOCK_REASON,
    MANUAL_UPDATE_REASON,
)

URL = "/api/v1/clinic"

GLOVES = {
    "name": "Guantes de nitrilo",
    "category": "CONSUMABLES",
    "sku": "GNT-001",
    "current_stock": 10,
    "minimum_stock": 3,
    "maximum_stock": 50,
    "unit": "caja",
    "unit_cost": "12.50",
}


async def adjust(client: AsyncClient, owner, item_id: str, type: str, quantity: int, **extra):
    return await client.post(
        f"{URL}/inventory/{item_id}/adjust",
        json={"type": type, "quantity": quantity, **extra},
        headers=auth_headers(owner),
    )


# ── Odontólogos ──────────────────────────────────────


@pytest.mark.asyncio
async def test_doctor_crud(client: AsyncClient, owner_user, clinic):
    headers = auth_headers(owner_user)

    created = await client.post(
        f"{URL}/doctors",
        json={
            "name": "Dra. Ana Lim",
            "specialization": "Ortodoncia",
            "experience_years": 8,
            "image_url": "https://cdn.example.com/doctores/ana.jpg",
        },
        headers=headers,
    )
    assert created.status_code == 201
    doctor = created.json()
    assert doctor["clinic_id"] == str(clinic.id)
    assert doctor["image_url"] == "https://cdn.example.com/doctores/ana.jpg"

    await client.post(
        f"{URL}/doctors",
        json={"name": "Dr. Ben Tan", "specialization": "Endodoncia"},
        headers=headers,
    )
    listed = await client.get(f"{URL}/doctors", headers=headers)
    assert [d["name"] for d in listed.json()] == ["Dr. Ben Tan", "Dra. Ana Lim"]

    updated = await client.put(
        f"{URL}/doctors/{doctor['id']}",
        json={"bio": "Especialista en alineadores.", "experience_years": 9},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["experience_years"] == 9
    assert updated.json()["specialization"] == "Ortodoncia"

    public = await client.get(f"/api/v1/clinics/{clinic.id}")
    assert {d["name"] for d in public.json()["doctors"]} == {"Dra. Ana Lim", "Dr. Ben Tan"}

    deleted = await client.delete(f"{URL}/doctors/{doctor['id']}", headers=headers)
    assert deleted.status_code == 204
    remaining = await client.get(f"{URL}/doctors", headers=headers)
    assert [d["name"] for d in remaining.json()] == ["Dr. Ben Tan"]


@pytest.mark.asyncio
async def test_doctor_validation(client: AsyncClient, owner_user):
    response = await client.post(
        f"{URL}/doctors",
        json={"name": "Dr. Negativo", "specialization": "General", "experience_years": -1},
        headers=auth_headers(owner_user),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_owner_cannot_touch_other_clinic_doctors(client: AsyncClient, db_session: AsyncSession, owner_user):
    other = await create_clinic(db_session, "otra@test.com", name="Otra Clínica")
    await db_session.refresh(other, ["owner"])
    created = await client.post(
        f"{URL}/doctors",
        json={"name": "Dr. Ajeno", "specialization": "Cirugía"},
        headers=auth_headers(other.owner),
    )
    doctor_id = created.json()["id"]

    headers = auth_headers(owner_user)
    update = await client.put(f"{URL}/doctors/{doctor_id}", json={"bio": "x"}, headers=headers)
    delete = await client.delete(f"{URL}/doctors/{doctor_id}", headers=headers)

    assert update.status_code == 404
    assert delete.status_code == 404


@pytest.mark.asyncio
async def test_patient_cannot_manage_doctors_or_inventory(client: AsyncClient, patient_user):
    headers = auth_headers(patient_user)
    assert (await client.get(f"{URL}/doctors", headers=headers)).status_code == 403
    assert (await client.get(f"{URL}/inventory", headers=headers)).status_code == 403


# ── Proveedores ──────────────────────────────────────


@pytest.mark.asyncio
async def test_suppliers(client: AsyncClient, owner_user):
    headers = auth_headers(owner_user)
    body = {
        "name": "Dental Supply KL",
        "contact_person": "Mei Wong",
        "contact_email": "ventas@dentalsupply.com",
        "contact_phone": "+60312340000",
    }

    created = await client.post(f"{URL}/suppliers", json=body, headers=headers)
    duplicated = await client.post(f"{URL}/suppliers", json=body, headers=headers)
    listed = await client.get(f"{URL}/suppliers", headers=headers)

    assert created.status_code == 201
    assert duplicated.status_code == 409
    assert [s["name"] for s in listed.json()] == ["Dental Supply KL"]


# ── Inventario ───────────────────────────────────────


@pytest.mark.asyncio
async def test_create_item_records_initial_stock(client: AsyncClient, db_session: AsyncSession, owner_user):
    headers = auth_headers(owner_user)
    supplier = await client.post(f"{URL}/suppliers", json={"name": "Dental Supply KL"}, headers=headers)

    response = await client.post(
        f"{URL}/inventory",
        json={**GLOVES, "supplier_id": supplier.json()["id"]},
        headers=headers,
    )

    assert response.status_code == 201
    item = response.json()
    assert item["status"] == "IN_STOCK"
    assert item["supplier"]["name"] == "Dental Supply KL"

    result = await db_session.execute(
        select(StockMovement).where(StockMovement.item_id == item["id"])
    )
    movement = result.scalar_one()
    assert movement.movement_type == StockMovementType.IN
    assert (movement.stock_before, movement.stock_after, movement.quantity) == (0, 10, 10)
    assert movement.reason == INITIAL_STOCK_REASON
    assert movement.created_by == owner_user.id


@pytest.mark.asyncio
async def test_item_without_stock_has_no_movements(client: AsyncClient, owner_user):
    headers = auth_headers(owner_user)
    created = await client.post(
        f"{URL}/inventory",
        json={**GLOVES, "current_stock": 0},
        headers=headers,
    )

    detail = await client.get(f"{URL}/inventory/{created.json()['id']}", headers=headers)

    assert detail.status_code == 200
    assert detail.json()["item"]["status"] == "OUT_OF_STOCK"
    assert detail.json()["movements"] == []


@pytest.mark.asyncio
async def test_supplier_from_other_clinic_is_rejected(client: AsyncClient, db_session: AsyncSession, owner_user):
    other = await create_clinic(db_session, "otra@test.com", name="Otra Clínica")
    await db_session.refresh(other, ["owner"])
    foreign = await client.post(
        f"{URL}/suppliers", json={"name": "Proveedor Ajeno"}, headers=auth_headers(other.owner)
    )

    response = await client.post(
        f"{URL}/inventory",
        json={**GLOVES, "supplier_id": foreign.json()["id"]},
        headers=auth_headers(owner_user),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_adjust_stock(client: AsyncClient, owner_user):
    created = await client.post(f"{URL}/inventory", json=GLOVES, headers=auth_headers(owner_user))
    item_id = created.json()["id"]

    out = await adjust(client, owner_user, item_id, "OUT", 8, reason="Uso en consultas")
    assert out.status_code == 200
    assert out.json()["item"]["current_stock"] == 2
    assert out.json()["item"]["status"] == "LOW_STOCK"
    assert out.json()["movement"]["stock_before"] == 10
    assert out.json()["movement"]["reason"] == "Uso en consultas"

    # La salida nunca deja el stock en negativo
    clamped = await adjust(client, owner_user, item_id, "OUT", 5)
    assert clamped.json()["item"]["current_stock"] == 0
    assert clamped.json()["item"]["status"] == "OUT_OF_STOCK"
    assert clamped.json()["movement"]["quantity"] == 2

    restock = await adjust(client, owner_user, item_id, "IN", 20)
    assert restock.json()["item"]["current_stock"] == 20

    counted = await adjust(client, owner_user, item_id, "ADJUSTMENT", 7, reason="Conteo físico")
    assert counted.json()["item"]["current_stock"] == 7
    assert counted.json()["movement"]["movement_type"] == "ADJUSTMENT"
    assert counted.json()["movement"]["quantity"] == 13
    assert counted.json()["movement"]["item_name"] == GLOVES["name"]


@pytest.mark.asyncio
async def test_adjust_quantity_rules(client: AsyncClient, owner_user):
    created = await client.post(f"{URL}/inventory", json=GLOVES, headers=auth_headers(owner_user))
    item_id = created.json()["id"]

    assert (await adjust(client, owner_user, item_id, "IN", 0)).status_code == 400
    assert (await adjust(client, owner_user, item_id, "OUT", -3)).status_code == 400

    emptied = await adjust(client, owner_user, item_id, "ADJUSTMENT", 0)
    assert emptied.status_code == 200
    assert emptied.json()["item"]["current_stock"] == 0


@pytest.mark.asyncio
async def test_list_inventory_filters_and_summary(client: AsyncClient, owner_user):
    headers = auth_headers(owner_user)
    await client.post(f"{URL}/inventory", json=GLOVES, headers=headers)
    await client.post(
        f"{URL}/inventory",
        json={
            "name": "Lidocaína 2%",
            "category": "MEDICATION",
            "sku": "LID-020",
            "current_stock": 2,
            "minimum_stock": 5,
            "unit_cost": "4.00",
        },
        headers=headers,
    )
    await client.post(
        f"{URL}/inventory",
        json={"name": "Fresas de diamante", "category": "INSTRUMENTS", "current_stock": 0},
        headers=headers,
    )

    everything = await client.get(f"{URL}/inventory", headers=headers)
    low = await client.get(f"{URL}/inventory", params={"status": "LOW_STOCK"}, headers=headers)
    medication = await client.get(f"{URL}/inventory", params={"category": "MEDICATION"}, headers=headers)
    by_sku = await client.get(f"{URL}/inventory", params={"search": "gnt"}, headers=headers)

    data = everything.json()
    assert [i["name"] for i in data["items"]] == [
        "Fresas de diamante",
        "Guantes de nitrilo",
        "Lidocaína 2%",
    ]
    assert data["summary"] == {
        "total_items": 3,
        "low_stock": 1,
        "out_of_stock": 1,
        "stock_value": 133.0,
    }
    assert [i["name"] for i in low.json()["items"]] == ["Lidocaína 2%"]
    assert [i["name"] for i in medication.json()["items"]] == ["Lidocaína 2%"]
    assert [i["name"] for i in by_sku.json()["items"]] == ["Guantes de nitrilo"]


@pytest.mark.asyncio
async def test_update_item_records_stock_change(client: AsyncClient, owner_user):
    headers = auth_headers(owner_user)
    created = await client.post(f"{URL}/inventory", json=GLOVES, headers=headers)
    item_id = created.json()["id"]

    updated = await client.put(
        f"{URL}/inventory/{item_id}",
        json={"current_stock": 25, "unit_price": "20.00"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["current_stock"] == 25
    assert updated.json()["unit_price"] == 20.0

    movements = await client.get(
        f"{URL}/inventory/movements", params={"item_id": item_id}, headers=headers
    )
    body = movements.json()
    assert body["total"] == 2
    manual = [m for m in body["items"] if m["reason"] == MANUAL_UPDATE_REASON]
    assert len(manual) == 1
    assert manual[0]["movement_type"] == "IN"
    assert (manual[0]["stock_before"], manual[0]["stock_after"], manual[0]["quantity"]) == (10, 25, 15)

    invalid = await client.put(
        f"{URL}/inventory/{item_id}", json={"maximum_stock": 1}, headers=headers
    )
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_movements_pagination(client: AsyncClient, owner_user):
    headers = auth_headers(owner_user)
    created = await client.post(f"{URL}/inventory", json=GLOVES, headers=headers)
    item_id = created.json()["id"]
    for _ in range(3):
        await adjust(client, owner_user, item_id, "OUT", 1)

    first = await client.get(
        f"{URL}/inventory/movements", params={"limit": 3, "offset": 0}, headers=headers
    )
    second = await client.get(
        f"{URL}/inventory/movements", params={"limit": 3, "offset": 3}, headers=headers
    )
    outs = await client.get(
        f"{URL}/inventory/movements", params={"movement_type": "OUT"}, headers=headers
    )

    assert first.json()["total"] == 4
    assert len(first.json()["items"]) == 3
    assert len(second.json()["items"]) == 1
    ids = {m["id"] for m in first.json()["items"]} | {m["id"] for m in second.json()["items"]}
    assert len(ids) == 4
    assert outs.json()["total"] == 3


@pytest.mark.asyncio
async def test_delete_item(client: AsyncClient, db_session: AsyncSession, owner_user):
    headers = auth_headers(owner_user)
    created = await client.post(f"{URL}/inventory", json=GLOVES, headers=headers)
    item_id = created.json()["id"]

    deleted = await client.delete(f"{URL}/inventory/{item_id}", headers=headers)
    missing = await client.get(f"{URL}/inventory/{item_id}", headers=headers)

    assert deleted.status_code == 204
    assert missing.status_code == 404
    result = await db_session.execute(
        select(StockMovement).where(StockMovement.item_id == item_id)
    )
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_owner_cannot_touch_other_clinic_inventory(client: AsyncClient, db_session: AsyncSession, owner_user):
    other = await create_clinic(db_session, "otra@test.com", name="Otra Clínica")
    await db_session.refresh(other, ["owner"])
    created = await client.post(f"{URL}/inventory", json=GLOVES, headers=auth_headers(other.owner))
    item_id = created.json()["id"]

    detail = await client.get(f"{URL}/inventory/{item_id}", headers=auth_headers(owner_user))
    adjusted = await adjust(client, owner_user, item_id, "IN", 5)
    listed = await client.get(f"{URL}/inventory", headers=auth_headers(owner_user))

    assert detail.status_code == 404
    assert adjusted.status_code == 404
    assert listed.json()["items"] == []
