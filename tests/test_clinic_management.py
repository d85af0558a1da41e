"""
Tests del lado clínica: perfil, horario semanal, servicios y catálogo público.
"""

from datetime import date, time

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth_headers, create_clinic, create_service, future_day
from dental_marketplace.models import AuditLog, ClinicStatus, ClinicWorkingHours, DayOfWeek
from dental_marketplace.services.availability_service import CLOSED_MESSAGE

WEEKDAY_HOURS = {
    "open_time": "08:00",
    "close_time": "14:00",
    "slot_duration_minutes": 20,
    "break_start_time": "11:00",
    "break_end_time": "11:40",
}


# ── Perfil ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_owner_updates_profile(client: AsyncClient, owner_user):
    response = await client.put(
        "/api/v1/clinic/profile",
        json={"name": "Sonrisa Plus", "timezone": "Asia/Kuala_Lumpur"},
        headers=auth_headers(owner_user),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Sonrisa Plus"
    assert data["timezone"] == "Asia/Kuala_Lumpur"
    assert data["status"] == ClinicStatus.APPROVED.value


@pytest.mark.asyncio
async def test_patient_cannot_use_clinic_endpoints(client: AsyncClient, patient_user):
    response = await client.get("/api/v1/clinic/profile", headers=auth_headers(patient_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_verification_status(client: AsyncClient, owner_user):
    response = await client.get(
        "/api/v1/clinic/verification-status", headers=auth_headers(owner_user)
    )

    assert response.status_code == 200
    assert response.json()["clinic"]["status"] == "APPROVED"
    assert response.json()["notifications"] == []


# ── Horario semanal ──────────────────────────────────


@pytest.mark.asyncio
async def test_get_working_hours_in_week_order(client: AsyncClient, owner_user):
    response = await client.get("/api/v1/clinic/working-hours", headers=auth_headers(owner_user))

    assert response.status_code == 200
    days = [row["day"] for row in response.json()]
    assert days == [d.value for d in DayOfWeek]
    assert response.json()[0]["open_time"] == "09:00"


@pytest.mark.asyncio
async def test_replace_working_hours(client: AsyncClient, db_session: AsyncSession, owner_user, clinic):
    target = future_day()
    today_name = DayOfWeek.from_date(target).value
    other_name = DayOfWeek.from_date(future_day(8)).value

    response = await client.put(
        "/api/v1/clinic/working-hours",
        json={"working_hours": [{"day": today_name, **WEEKDAY_HOURS}]},
        headers=auth_headers(owner_user),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Horario guardado"
    assert data["count"] == 1
    assert data["working_hours"][0]["break_start_time"] == "11:00"

    result = await db_session.execute(
        select(AuditLog).where(AuditLog.entity == "working_hours", AuditLog.action == "replace")
    )
    log = result.scalar_one()
    assert len(log.old_data["days"]) == 7
    assert log.new_data["days"][0]["break_end_time"] == "11:40:00"

    # El día configurado usa el nuevo horario
    slots = await client.get(
        f"/api/v1/clinics/{clinic.id}/slots", params={"date": target.isoformat()}
    )
    body = slots.json()
    assert body["working_hours"]["open_time"] == "08:00"
    assert body["service_duration"] == 20
    # 08:00–11:00 (9 slots) + 11:40–14:00 (7 slots)
    assert len(body["slots"]) == 16

    # Los días omitidos quedan cerrados
    assert other_name != today_name
    closed = await client.get(
        f"/api/v1/clinics/{clinic.id}/slots", params={"date": future_day(8).isoformat()}
    )
    assert closed.json()["message"] == CLOSED_MESSAGE


@pytest.mark.parametrize(
    "item",
    [
        {"day": "MONDAY", "open_time": "17:00", "close_time": "09:00"},
        {"day": "MONDAY", "open_time": "09:00", "close_time": "17:00", "break_start_time": "12:00"},
        {
            "day": "MONDAY",
            "open_time": "09:00",
            "close_time": "17:00",
            "break_start_time": "08:00",
            "break_end_time": "09:30",
        },
        {"day": "MONDAY", "open_time": "09:00", "close_time": "17:00", "slot_duration_minutes": 0},
    ],
)
@pytest.mark.asyncio
async def test_invalid_working_hours_are_rejected(client: AsyncClient, owner_user, item):
    response = await client.put(
        "/api/v1/clinic/working-hours",
        json={"working_hours": [item]},
        headers=auth_headers(owner_user),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_or_empty_days_are_rejected(client: AsyncClient, owner_user):
    headers = auth_headers(owner_user)
    item = {"day": "TUESDAY", "open_time": "09:00", "close_time": "12:00"}

    duplicated = await client.put(
        "/api/v1/clinic/working-hours", json={"working_hours": [item, item]}, headers=headers
    )
    empty = await client.put(
        "/api/v1/clinic/working-hours", json={"working_hours": []}, headers=headers
    )

    assert duplicated.status_code == 400
    assert empty.status_code == 400


@pytest.mark.parametrize(
    "values",
    [
        {"open_time": time(17, 0), "close_time": time(9, 0)},
        {"open_time": time(9, 0), "close_time": time(17, 0), "slot_duration_minutes": 0},
        {"open_time": time(9, 0), "close_time": time(17, 0), "break_start_time": time(12, 0)},
        {
            "open_time": time(9, 0),
            "close_time": time(17, 0),
            "break_start_time": time(16, 30),
            "break_end_time": time(17, 30),
        },
    ],
)
@pytest.mark.asyncio
async def test_database_rejects_inconsistent_working_hours(db_session: AsyncSession, values):
    closed = await create_clinic(db_session, "cerrada@test.com", open_days=[])

    db_session.add(ClinicWorkingHours(clinic_id=closed.id, day=DayOfWeek.MONDAY, **values))
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()


def test_day_order_follows_weekday():
    assert [day.order for day in DayOfWeek] == list(range(7))
    assert DayOfWeek.from_date(date(2030, 1, 7)) is DayOfWeek.MONDAY
    assert DayOfWeek.FRIDAY.index("I") == 2


@pytest.mark.asyncio
async def test_pending_clinic_can_prepare_schedule(client: AsyncClient, db_session: AsyncSession):
    pending = await create_clinic(db_session, "pendiente@test.com", status=ClinicStatus.PENDING)
    await db_session.refresh(pending, ["owner"])

    response = await client.put(
        "/api/v1/clinic/working-hours",
        json={"working_hours": [{"day": "FRIDAY", "open_time": "10:00", "close_time": "18:00"}]},
        headers=auth_headers(pending.owner),
    )
    assert response.status_code == 200


# ── Servicios ────────────────────────────────────────


@pytest.mark.asyncio
async def test_service_crud(client: AsyncClient, owner_user, clinic):
    headers = auth_headers(owner_user)

    created = await client.post(
        "/api/v1/clinic/services",
        json={
            "name": "Ortodoncia inicial",
            "category": "ORTHODONTICS",
            "duration_minutes": 60,
            "price": "120.00",
        },
        headers=headers,
    )
    assert created.status_code == 201
    service_id = created.json()["id"]
    assert created.json()["price"] == 120.0
    assert created.json()["is_active"] is True

    duplicate = await client.post(
        "/api/v1/clinic/services", json={"name": "Ortodoncia inicial"}, headers=headers
    )
    assert duplicate.status_code == 409

    updated = await client.put(
        f"/api/v1/clinic/services/{service_id}",
        json={"price": "99.90", "duration_minutes": 90},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["price"] == 99.9
    assert updated.json()["duration_minutes"] == 90

    deleted = await client.delete(f"/api/v1/clinic/services/{service_id}", headers=headers)
    assert deleted.status_code == 204

    active = await client.get(
        "/api/v1/clinic/services", params={"is_active": True}, headers=headers
    )
    assert service_id not in [s["id"] for s in active.json()]

    everything = await client.get("/api/v1/clinic/services", headers=headers)
    assert service_id in [s["id"] for s in everything.json()]


@pytest.mark.asyncio
async def test_owner_cannot_touch_other_clinic_services(client: AsyncClient, db_session: AsyncSession, owner_user, service):
    other = await create_clinic(db_session, "otra@test.com", name="Otra Clínica")
    await db_session.refresh(other, ["owner"])

    response = await client.put(
        f"/api/v1/clinic/services/{service.id}",
        json={"price": "1.00"},
        headers=auth_headers(other.owner),
    )
    assert response.status_code == 404


# ── Catálogo público ─────────────────────────────────


@pytest.mark.asyncio
async def test_public_catalog_lists_only_approved(client: AsyncClient, db_session: AsyncSession, clinic):
    await create_clinic(db_session, "pendiente@test.com", name="Pendiente", status=ClinicStatus.PENDING)

    response = await client.get("/api/v1/clinics")
    assert response.status_code == 200
    names = [c["name"] for c in response.json()["items"]]
    assert names == [clinic.name]

    search = await client.get("/api/v1/clinics", params={"search": "sonrisa"})
    assert search.json()["total"] == 1

    nothing = await client.get("/api/v1/clinics", params={"search": "inexistente"})
    assert nothing.json()["total"] == 0


@pytest.mark.asyncio
async def test_public_detail(client: AsyncClient, db_session: AsyncSession, clinic, service):
    await create_service(db_session, clinic, name="Retirado", is_active=False)

    response = await client.get(f"/api/v1/clinics/{clinic.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["clinic"]["id"] == str(clinic.id)
    assert [s["name"] for s in data["services"]] == [service.name]
    assert len(data["working_hours"]) == 7
    assert data["reviews"] == {"average_rating": None, "total_reviews": 0}


@pytest.mark.asyncio
async def test_public_detail_hides_pending_clinic(client: AsyncClient, db_session: AsyncSession):
    pending = await create_clinic(db_session, "pendiente@test.com", status=ClinicStatus.PENDING)
    response = await client.get(f"/api/v1/clinics/{pending.id}")
    assert response.status_code == 404
