"""
Reserva de citas.

Validaciones en orden (la primera que falla corta):
    1. Perfil de paciente ACTIVE                → 400
    2. Clínica existe y está APPROVED           → 404
    3. Servicio existe, es de la clínica, activo → 404
    4. El inicio es estrictamente futuro        → 400
    5. Ninguna cita activa de la clínica se cruza → 409
    6. El paciente no tiene otra cita activa que se cruce → 409

Todo ocurre en la transacción del request. La fila de la clínica se
bloquea (SELECT ... FOR UPDATE) antes de re-chequear, así dos reservas
concurrentes de la misma clínica se serializan; el índice único parcial
sobre (clinic_id, start_time, end_time) convierte cualquier carrera
restante en IntegrityError, que se responde como 409.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.config import get_settings
from dental_marketplace.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from dental_marketplace.models.appointment import (
    OCCUPYING_STATUSES,
    Appointment,
    AppointmentStatus,
    PaymentStatus,
)
from dental_marketplace.models.clinic import Clinic, ClinicStatus
from dental_marketplace.models.notification import NotificationType
from dental_marketplace.models.user import User
from dental_marketplace.scheduling.overlap import as_utc, overlap_clause
from dental_marketplace.schemas.appointment import AppointmentResponse, BookingRequest
from dental_marketplace.services.appointment_service import get_appointment_response
from dental_marketplace.services.availability_service import (
    clinic_timezone,
    get_active_service,
)
from dental_marketplace.services.notification_service import notify

logger = logging.getLogger(__name__)
settings = get_settings()

SLOT_TAKEN = "Este horario ya no está disponible"
PATIENT_BUSY = "Ya tiene una cita programada en ese horario"


async def _lock_approved_clinic(db: AsyncSession, clinic_id) -> Clinic:
    result = await db.execute(
        select(Clinic)
        .where(Clinic.id == clinic_id, Clinic.status == ClinicStatus.APPROVED)
        .with_for_update()
    )
    clinic = result.scalar_one_or_none()
    if not clinic:
        raise NotFoundException("Clínica", "Clínica no encontrada o no disponible")
    return clinic


async def _has_conflict(db: AsyncSession, *criteria, start: datetime, end: datetime) -> bool:
    result = await db.execute(
        select(Appointment.id)
        .where(
            *criteria,
            Appointment.status.in_(OCCUPYING_STATUSES),
            overlap_clause(Appointment.start_time, Appointment.end_time, start, end),
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def book_appointment(
    db: AsyncSession,
    user: User,
    data: BookingRequest,
    now: datetime | None = None,
) -> AppointmentResponse:
    """Valida y crea una cita BOOKED para el usuario autenticado."""
    patient = user.patient
    if patient is None or not patient.is_active:
        raise BadRequestException(
            "Se requiere un perfil de paciente activo. Complete su perfil primero."
        )

    clinic = await _lock_approved_clinic(db, data.clinic_id)
    service = await get_active_service(db, clinic.id, data.service_id)

    start = as_utc(data.start_time)
    end = as_utc(data.end_time)
    now = as_utc(now or datetime.now(timezone.utc))
    earliest = now + timedelta(minutes=settings.BOOKING_LEAD_TIME_MINUTES)

    if start <= earliest:
        raise BadRequestException("No se pueden reservar citas en el pasado")

    if await _has_conflict(db, Appointment.clinic_id == clinic.id, start=start, end=end):
        logger.info(
            "Reserva rechazada por conflicto: clinic_id=%s start=%s", clinic.id, start
        )
        raise ConflictException(SLOT_TAKEN)

    if await _has_conflict(db, Appointment.user_id == user.id, start=start, end=end):
        raise ConflictException(PATIENT_BUSY)

    appointment = Appointment(
        clinic_id=clinic.id,
        service_id=service.id,
        patient_id=patient.id,
        user_id=user.id,
        start_time=start,
        end_time=end,
        status=AppointmentStatus.BOOKED,
        patient_description=data.patient_description,
        total_amount=service.price,
        payment_status=PaymentStatus.PENDING if service.is_paid else PaymentStatus.PAID,
    )
    db.add(appointment)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning(
            "Doble reserva detectada por índice único: clinic_id=%s start=%s",
            data.clinic_id, start,
        )
        raise ConflictException(SLOT_TAKEN)

    local_start = start.astimezone(clinic_timezone(clinic))
    await notify(
        db,
        user_id=user.id,
        type=NotificationType.APPOINTMENT_CONFIRMED,
        title="Cita reservada",
        message=(
            f"Su cita en {clinic.name} para {service.name} quedó reservada "
            f"el {local_start:%d/%m/%Y} a las {local_start:%H:%M}."
        ),
        appointment_id=appointment.id,
    )

    logger.info(
        "Cita reservada: appointment_id=%s clinic_id=%s user_id=%s start=%s",
        appointment.id, clinic.id, user.id, start.isoformat(),
    )
    return await get_appointment_response(db, appointment.id)
