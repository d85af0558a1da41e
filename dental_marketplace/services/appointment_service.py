"""
Servicio de citas: listados del paciente y de la clínica, state machine
de estados, notas internas y cancelación por el paciente.
La creación de citas vive en booking_service.
"""

import logging
import math
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from dental_marketplace.core.exceptions import NotFoundException, ValidationException
from dental_marketplace.core.security import decrypt_pii
from dental_marketplace.models.appointment import (
    PATIENT_CANCELLABLE_STATUSES,
    VALID_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    is_valid_transition,
)
from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.notification import NotificationType
from dental_marketplace.models.patient import Patient
from dental_marketplace.models.user import User
from dental_marketplace.scheduling.overlap import as_utc, day_bounds
from dental_marketplace.schemas.appointment import (
    AppointmentClinicEmbed,
    AppointmentListResponse,
    AppointmentPatientEmbed,
    AppointmentResponse,
    AppointmentServiceEmbed,
    AppointmentStatusChange,
    ClinicPatientDetail,
    ClinicPatientListResponse,
    ClinicPatientSummary,
)
from dental_marketplace.services.audit_service import log_status_change
from dental_marketplace.services.availability_service import clinic_timezone
from dental_marketplace.services.notification_service import notify
from dental_marketplace.services.patient_service import patient_to_response

logger = logging.getLogger(__name__)

# Aviso al paciente según el nuevo estado: (tipo, título, plantilla)
STATUS_NOTIFICATIONS: dict[AppointmentStatus, tuple[NotificationType, str, str]] = {
    AppointmentStatus.CONFIRMED: (
        NotificationType.APPOINTMENT_CONFIRMED,
        "Cita confirmada",
        "Su cita en {clinic} para {service} fue confirmada.",
    ),
    AppointmentStatus.CANCELLED: (
        NotificationType.APPOINTMENT_CANCELLED,
        "Cita cancelada",
        "Su cita en {clinic} para {service} fue cancelada.",
    ),
    AppointmentStatus.IN_PROGRESS: (
        NotificationType.SYSTEM_NOTIFICATION,
        "Cita en curso",
        "Su cita en {clinic} para {service} está en curso.",
    ),
    AppointmentStatus.COMPLETED: (
        NotificationType.SYSTEM_NOTIFICATION,
        "Cita completada",
        "Su cita en {clinic} para {service} fue marcada como completada.",
    ),
    AppointmentStatus.NO_SHOW: (
        NotificationType.SYSTEM_NOTIFICATION,
        "Cita perdida",
        "No asistió a su cita en {clinic} para {service}.",
    ),
}


# ── Helpers ──────────────────────────────────────────


def appointment_to_response(appt: Appointment) -> AppointmentResponse:
    """Convierte un modelo Appointment a su schema de respuesta."""
    patient_embed = None
    service_embed = None
    clinic_embed = None

    if appt.patient:
        patient_embed = AppointmentPatientEmbed(
            id=appt.patient.id,
            name=appt.patient.name,
            phone=decrypt_pii(appt.patient.phone) if appt.patient.phone else None,
            email=appt.patient.email,
        )
    if appt.service:
        service_embed = AppointmentServiceEmbed(
            id=appt.service.id,
            name=appt.service.name,
            duration_minutes=appt.service.duration_minutes,
            price=appt.service.price,
        )
    if appt.clinic:
        clinic_embed = AppointmentClinicEmbed(
            id=appt.clinic.id,
            name=appt.clinic.name,
            address=appt.clinic.address,
            phone=appt.clinic.phone,
        )

    return AppointmentResponse(
        id=appt.id,
        clinic_id=appt.clinic_id,
        service_id=appt.service_id,
        patient_id=appt.patient_id,
        user_id=appt.user_id,
        start_time=as_utc(appt.start_time),
        end_time=as_utc(appt.end_time),
        status=appt.status,
        patient_description=appt.patient_description,
        notes=appt.notes,
        total_amount=appt.total_amount,
        payment_status=appt.payment_status,
        cancellation_reason=appt.cancellation_reason,
        cancelled_by=appt.cancelled_by,
        patient=patient_embed,
        service=service_embed,
        clinic=clinic_embed,
        created_at=appt.created_at,
        updated_at=appt.updated_at,
    )


def appointment_load_options():
    """Opciones de carga eager para relaciones de Appointment."""
    return [
        joinedload(Appointment.patient),
        joinedload(Appointment.service),
        joinedload(Appointment.clinic),
    ]


async def _get_appointment(
    db: AsyncSession,
    appointment_id: UUID,
    *criteria,
) -> Appointment:
    result = await db.execute(
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.id == appointment_id, *criteria)
    )
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise NotFoundException("Cita", "Cita no encontrada")
    return appointment


async def get_appointment_response(
    db: AsyncSession,
    appointment_id: UUID,
) -> AppointmentResponse:
    """Recarga la cita con sus relaciones (y los timestamps del servidor)."""
    result = await db.execute(
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.id == appointment_id)
    )
    return appointment_to_response(result.scalar_one())


async def _paginate(
    db: AsyncSession,
    query,
    *,
    page: int,
    size: int,
    newest_first: bool = True,
) -> AppointmentListResponse:
    count_query = select(func.count()).select_from(
        query.with_only_columns(Appointment.id).subquery()
    )
    total = (await db.execute(count_query)).scalar() or 0

    order = Appointment.start_time.desc() if newest_first else Appointment.start_time.asc()
    offset = (page - 1) * size
    result = await db.execute(query.order_by(order).offset(offset).limit(size))
    appointments = result.scalars().unique().all()

    return AppointmentListResponse(
        items=[appointment_to_response(a) for a in appointments],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


# ── Paciente ─────────────────────────────────────────


async def list_user_appointments(
    db: AsyncSession,
    user: User,
    *,
    page: int = 1,
    size: int = 20,
    status: AppointmentStatus | None = None,
    upcoming: bool | None = None,
    now: datetime | None = None,
) -> AppointmentListResponse:
    """Citas del usuario, más recientes primero; `upcoming` separa futuras de pasadas."""
    query = (
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.user_id == user.id)
    )
    if status:
        query = query.where(Appointment.status == status)
    if upcoming is not None:
        now = now or datetime.now(timezone.utc)
        if upcoming:
            query = query.where(Appointment.start_time > now)
        else:
            query = query.where(Appointment.start_time <= now)

    return await _paginate(db, query, page=page, size=size)


async def cancel_by_patient(
    db: AsyncSession,
    user: User,
    appointment_id: UUID,
    reason: str | None = None,
) -> AppointmentResponse:
    """El paciente cancela su propia cita (solo BOOKED o CONFIRMED)."""
    appointment = await _get_appointment(db, appointment_id, Appointment.user_id == user.id)

    if appointment.status not in PATIENT_CANCELLABLE_STATUSES:
        raise ValidationException(
            f"No se puede cancelar una cita en estado '{appointment.status.value}'"
        )

    old_status = appointment.status
    appointment.status = AppointmentStatus.CANCELLED
    appointment.cancellation_reason = reason
    appointment.cancelled_by = user.id
    await db.flush()

    await notify(
        db,
        user_id=user.id,
        type=NotificationType.APPOINTMENT_CANCELLED,
        title="Cita cancelada",
        message=(
            f"Canceló su cita en {appointment.clinic.name} "
            f"para {appointment.service.name}."
        ),
        appointment_id=appointment.id,
    )

    await log_status_change(
        db,
        entity="appointment",
        entity_id=appointment.id,
        clinic_id=appointment.clinic_id,
        actor_id=user.id,
        old_status=old_status,
        new_status=AppointmentStatus.CANCELLED,
        cancellation_reason=reason,
    )

    logger.info("Cita %s cancelada por el paciente user_id=%s", appointment.id, user.id)
    return await get_appointment_response(db, appointment.id)


# ── Clínica ──────────────────────────────────────────


async def list_clinic_appointments(
    db: AsyncSession,
    clinic: Clinic,
    *,
    page: int = 1,
    size: int = 20,
    status: AppointmentStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> AppointmentListResponse:
    """Agenda de la clínica con filtros por estado y rango de fechas locales."""
    tz = clinic_timezone(clinic)
    query = (
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.clinic_id == clinic.id)
    )
    if status:
        query = query.where(Appointment.status == status)
    if date_from:
        query = query.where(Appointment.start_time >= day_bounds(date_from, tz)[0])
    if date_to:
        query = query.where(Appointment.start_time < day_bounds(date_to, tz)[1])

    return await _paginate(db, query, page=page, size=size, newest_first=False)


async def change_status(
    db: AsyncSession,
    clinic: Clinic,
    appointment_id: UUID,
    user: User,
    data: AppointmentStatusChange,
    ip_address: str | None = None,
) -> AppointmentResponse:
    """
    Cambia el estado de una cita usando la state machine.
    Notifica al paciente y deja registro en el audit log.
    """
    appointment = await _get_appointment(
        db, appointment_id, Appointment.clinic_id == clinic.id
    )

    # Validar transición con la state machine
    if not is_valid_transition(appointment.status, data.status):
        valid = VALID_TRANSITIONS.get(appointment.status, [])
        raise ValidationException(
            f"No se puede cambiar de '{appointment.status.value}' a '{data.status.value}'. "
            f"Transiciones válidas: {', '.join(s.value for s in valid) or 'ninguna'}"
        )

    old_status = appointment.status
    appointment.status = data.status

    # Si se cancela, registrar motivo y quién canceló
    if data.status == AppointmentStatus.CANCELLED:
        appointment.cancellation_reason = data.cancellation_reason
        appointment.cancelled_by = user.id

    await db.flush()

    notification_type, title, template = STATUS_NOTIFICATIONS[data.status]
    await notify(
        db,
        user_id=appointment.user_id,
        type=notification_type,
        title=title,
        message=template.format(
            clinic=appointment.clinic.name,
            service=appointment.service.name,
        ),
        appointment_id=appointment.id,
    )

    await log_status_change(
        db,
        entity="appointment",
        entity_id=appointment.id,
        clinic_id=clinic.id,
        actor_id=user.id,
        old_status=old_status,
        new_status=data.status,
        ip_address=ip_address,
        cancellation_reason=data.cancellation_reason,
    )

    logger.info(
        "Cita %s: %s → %s (clinic_id=%s)",
        appointment.id, old_status.value, data.status.value, clinic.id,
    )
    return await get_appointment_response(db, appointment.id)


async def update_notes(
    db: AsyncSession,
    clinic: Clinic,
    appointment_id: UUID,
    notes: str | None,
) -> AppointmentResponse:
    """Las notas internas se pueden editar en cualquier estado."""
    appointment = await _get_appointment(
        db, appointment_id, Appointment.clinic_id == clinic.id
    )
    appointment.notes = notes
    await db.flush()
    return await get_appointment_response(db, appointment.id)


async def list_clinic_patients(
    db: AsyncSession,
    clinic: Clinic,
    *,
    page: int = 1,
    size: int = 20,
    search: str | None = None,
) -> ClinicPatientListResponse:
    """Pacientes que reservaron al menos una vez en la clínica."""
    stats = (
        select(
            Appointment.patient_id.label("patient_id"),
            func.count(Appointment.id).label("total_appointments"),
            func.max(Appointment.start_time).label("last_appointment"),
        )
        .where(Appointment.clinic_id == clinic.id)
        .group_by(Appointment.patient_id)
        .subquery()
    )

    query = select(
        Patient,
        stats.c.total_appointments,
        stats.c.last_appointment,
    ).join(stats, stats.c.patient_id == Patient.id)
    if search:
        term = f"%{search.strip()}%"
        query = query.where(Patient.name.ilike(term) | Patient.email.ilike(term))

    count_query = select(func.count()).select_from(
        query.with_only_columns(Patient.id).subquery()
    )
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * size
    result = await db.execute(
        query.order_by(stats.c.last_appointment.desc()).offset(offset).limit(size)
    )

    items = [
        ClinicPatientSummary(
            patient_id=patient.id,
            name=patient.name,
            email=patient.email,
            phone=decrypt_pii(patient.phone) if patient.phone else None,
            age=patient.age,
            gender=patient.gender,
            total_appointments=total_appointments,
            last_appointment=last_appointment,
        )
        for patient, total_appointments, last_appointment in result.all()
    ]

    return ClinicPatientListResponse(
        items=items,
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


async def get_clinic_patient(
    db: AsyncSession,
    clinic: Clinic,
    patient_id: UUID,
) -> ClinicPatientDetail:
    """
    Ficha de un paciente con su historial en la clínica. Un paciente sin
    citas en esta clínica se responde como inexistente.
    """
    result = await db.execute(
        select(Appointment)
        .options(*appointment_load_options())
        .where(Appointment.clinic_id == clinic.id, Appointment.patient_id == patient_id)
        .order_by(Appointment.start_time.desc())
    )
    appointments = result.scalars().unique().all()
    if not appointments:
        raise NotFoundException("Paciente")

    return ClinicPatientDetail(
        patient=patient_to_response(appointments[0].patient),
        total_appointments=len(appointments),
        completed_appointments=sum(
            1 for a in appointments if a.status == AppointmentStatus.COMPLETED
        ),
        appointments=[appointment_to_response(a) for a in appointments],
    )
