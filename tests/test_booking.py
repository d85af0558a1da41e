"""
Tests de reserva de citas: validaciones en orden, conflictos y doble reserva.
"""

import asyncio
from datetime import date, datetime, time, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import (
    auth_headers,
    create_clinic,
    create_patient_user,
    create_service,
    test_session_factory as session_factory,
)
from dental_marketplace.core.exceptions import ConflictException
from dental_marketplace.models import (
    Appointment,
    AppointmentStatus,
    ClinicStatus,
    Notification,
    NotificationType,
    PaymentStatus,
    User,
)
from dental_marketplace.schemas.appointment import BookingRequest
from dental_marketplace.services import booking_service
from dental_marketplace.services.booking_service import PATIENT_BUSY, SLOT_TAKEN

URL = "/api/v1/appointments"


def slot(day: date, hour: int, minute: int = 0, minutes: int = 30) -> tuple[str, str]:
    start = datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)
    return start.isoformat(), (start + timedelta(minutes=minutes)).isoformat()


def payload(clinic, service, day, hour=10, minute=0, minutes=30, **extra) -> dict:
    start, end = slot(day, hour, minute, minutes)
    return {
        "clinic_id": str(clinic.id),
        "service_id": str(service.id),
        "start_time": start,
        "end_time": end,
        **extra,
    }


# ── Reserva exitosa ──────────────────────────────────


@pytest.mark.asyncio
async def test_book_appointment(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, service, booking_day):
    response = await client.post(
        URL,
        json=payload(clinic, service, booking_day, patient_description="Dolor de muela"),
        headers=auth_headers(patient_user),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == AppointmentStatus.BOOKED.value
    assert data["user_id"] == str(patient_user.id)
    assert data["patient_id"] == str(patient_user.patient.id)
    assert data["patient_description"] == "Dolor de muela"
    assert data["total_amount"] == 50.0
    assert data["payment_status"] == PaymentStatus.PENDING.value
    assert data["clinic"]["name"] == clinic.name
    assert data["service"]["name"] == service.name
    assert datetime.fromisoformat(data["start_time"]) == datetime.combine(
        booking_day, time(10), tzinfo=timezone.utc
    )

    result = await db_session.execute(
        select(Notification).where(Notification.user_id == patient_user.id)
    )
    notifications = result.scalars().all()
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.APPOINTMENT_CONFIRMED
    assert notifications[0].title == "Cita reservada"
    assert str(notifications[0].appointment_id) == data["id"]


@pytest.mark.asyncio
async def test_free_service_is_marked_paid(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, booking_day):
    free = await create_service(db_session, clinic, name="Evaluación", price=None)

    response = await client.post(
        URL, json=payload(clinic, free, booking_day), headers=auth_headers(patient_user)
    )

    assert response.status_code == 201
    assert response.json()["payment_status"] == PaymentStatus.PAID.value


# ── Precondiciones ───────────────────────────────────


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient, clinic, service, booking_day):
    response = await client.post(URL, json=payload(clinic, service, booking_day))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_without_patient_profile_is_rejected(client: AsyncClient, unassigned_user, clinic, service, booking_day):
    response = await client.post(
        URL, json=payload(clinic, service, booking_day), headers=auth_headers(unassigned_user)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_pending_clinic_is_not_bookable(client: AsyncClient, db_session: AsyncSession, patient_user, booking_day):
    pending = await create_clinic(db_session, "pendiente@test.com", status=ClinicStatus.PENDING)
    pending_service = await create_service(db_session, pending)

    response = await client.post(
        URL,
        json=payload(pending, pending_service, booking_day),
        headers=auth_headers(patient_user),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_inactive_service_is_rejected(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, booking_day):
    inactive = await create_service(db_session, clinic, name="Blanqueamiento", is_active=False)

    response = await client.post(
        URL, json=payload(clinic, inactive, booking_day), headers=auth_headers(patient_user)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_service_from_another_clinic_is_rejected(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, booking_day):
    other = await create_clinic(db_session, "otra@test.com", name="Otra Clínica")
    foreign_service = await create_service(db_session, other)

    response = await client.post(
        URL, json=payload(clinic, foreign_service, booking_day), headers=auth_headers(patient_user)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_past_start_is_rejected(client: AsyncClient, patient_user, clinic, service):
    yesterday = date.today() - timedelta(days=1)

    response = await client.post(
        URL, json=payload(clinic, service, yesterday), headers=auth_headers(patient_user)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_end_before_start_is_rejected(client: AsyncClient, patient_user, clinic, service, booking_day):
    body = payload(clinic, service, booking_day)
    body["start_time"], body["end_time"] = body["end_time"], body["start_time"]

    response = await client.post(URL, json=body, headers=auth_headers(patient_user))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_naive_datetimes_are_rejected(client: AsyncClient, patient_user, clinic, service, booking_day):
    body = payload(clinic, service, booking_day)
    body["start_time"] = body["start_time"].replace("+00:00", "")
    body["end_time"] = body["end_time"].replace("+00:00", "")

    response = await client.post(URL, json=body, headers=auth_headers(patient_user))
    assert response.status_code == 400


# ── Conflictos ───────────────────────────────────────


@pytest.mark.asyncio
async def test_double_booking_same_slot(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, service, booking_day):
    other_patient = await create_patient_user(db_session, "otro@test.com", "B7654321")
    body = payload(clinic, service, booking_day)

    first = await client.post(URL, json=body, headers=auth_headers(patient_user))
    second = await client.post(URL, json=body, headers=auth_headers(other_patient))

    assert sorted([first.status_code, second.status_code]) == [201, 409]
    assert second.json()["detail"] == SLOT_TAKEN

    count = await db_session.execute(
        select(func.count(Appointment.id)).where(
            Appointment.clinic_id == clinic.id,
            Appointment.status == AppointmentStatus.BOOKED,
        )
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_concurrent_bookings_for_same_slot(db_session: AsyncSession, patient_user, clinic, service, booking_day):
    other_patient = await create_patient_user(db_session, "otro@test.com", "B7654321")
    start, end = slot(booking_day, 11)
    request = BookingRequest(
        clinic_id=clinic.id,
        service_id=service.id,
        start_time=datetime.fromisoformat(start),
        end_time=datetime.fromisoformat(end),
    )

    async def attempt(user_id) -> int:
        # Cada intento usa su propia sesión y conexión, como dos requests simultáneos
        async with session_factory() as session:
            user = await session.get(User, user_id)
            try:
                await booking_service.book_appointment(session, user, request)
                await session.commit()
            except ConflictException as exc:
                await session.rollback()
                assert exc.detail == SLOT_TAKEN
                return exc.status_code
            return 201

    results = await asyncio.gather(attempt(patient_user.id), attempt(other_patient.id))

    assert sorted(results) == [201, 409]
    count = await db_session.execute(
        select(func.count(Appointment.id)).where(
            Appointment.clinic_id == clinic.id,
            Appointment.status == AppointmentStatus.BOOKED,
        )
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_partial_overlap_is_a_conflict(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, service, booking_day):
    other_patient = await create_patient_user(db_session, "otro@test.com", "B7654321")
    await client.post(
        URL, json=payload(clinic, service, booking_day, 10, 0, 60), headers=auth_headers(patient_user)
    )

    response = await client.post(
        URL, json=payload(clinic, service, booking_day, 10, 30), headers=auth_headers(other_patient)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_touching_slots_are_both_bookable(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, service, booking_day):
    other_patient = await create_patient_user(db_session, "otro@test.com", "B7654321")

    first = await client.post(
        URL, json=payload(clinic, service, booking_day, 10, 0), headers=auth_headers(patient_user)
    )
    second = await client.post(
        URL, json=payload(clinic, service, booking_day, 10, 30), headers=auth_headers(other_patient)
    )

    assert first.status_code == 201
    assert second.status_code == 201


@pytest.mark.asyncio
async def test_cancelled_appointment_frees_the_slot(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, service, booking_day):
    other_patient = await create_patient_user(db_session, "otro@test.com", "B7654321")
    body = payload(clinic, service, booking_day)

    first = await client.post(URL, json=body, headers=auth_headers(patient_user))
    cancel = await client.post(
        f"{URL}/{first.json()['id']}/cancel", json={}, headers=auth_headers(patient_user)
    )
    assert cancel.status_code == 200

    again = await client.post(URL, json=body, headers=auth_headers(other_patient))
    assert again.status_code == 201


@pytest.mark.asyncio
async def test_patient_cannot_be_in_two_clinics_at_once(client: AsyncClient, db_session: AsyncSession, patient_user, clinic, service, booking_day):
    other = await create_clinic(db_session, "otra@test.com", name="Otra Clínica")
    other_service = await create_service(db_session, other)

    first = await client.post(
        URL, json=payload(clinic, service, booking_day), headers=auth_headers(patient_user)
    )
    second = await client.post(
        URL, json=payload(other, other_service, booking_day, 10, 15), headers=auth_headers(patient_user)
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == PATIENT_BUSY


@pytest.mark.asyncio
async def test_unique_index_blocks_duplicate_active_slot(db_session: AsyncSession, patient_user, clinic, service, booking_day):
    """Última defensa: dos citas activas idénticas no pueden coexistir."""
    start = datetime.combine(booking_day, time(11), tzinfo=timezone.utc)
    end = start + timedelta(minutes=30)
    patient_id = patient_user.patient.id

    def make(status: AppointmentStatus) -> Appointment:
        return Appointment(
            clinic_id=clinic.id,
            service_id=service.id,
            patient_id=patient_id,
            user_id=patient_user.id,
            start_time=start,
            end_time=end,
            status=status,
            payment_status=PaymentStatus.PENDING,
        )

    # Una cancelada no ocupa el slot
    db_session.add_all([make(AppointmentStatus.CANCELLED), make(AppointmentStatus.BOOKED)])
    await db_session.flush()

    db_session.add(make(AppointmentStatus.CONFIRMED))
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()
