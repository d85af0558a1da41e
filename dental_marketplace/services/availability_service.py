"""
Consulta de disponibilidad: slots libres y reservados de una clínica para una fecha.
Los slots se calculan al vuelo a partir del horario y de las citas activas.
"""

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.config import get_settings
from dental_marketplace.core.exceptions import NotFoundException
from dental_marketplace.models.appointment import Appointment, OCCUPYING_STATUSES
from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.service import Service
from dental_marketplace.models.working_hours import DayOfWeek
from dental_marketplace.scheduling.overlap import day_bounds, overlap_clause
from dental_marketplace.scheduling.slots import generate_slots, resolve_slot_duration
from dental_marketplace.schemas.availability import AvailabilityResponse, WorkingHoursInfo
from dental_marketplace.services.clinic_service import get_public_clinic
from dental_marketplace.services.working_hours_service import get_for_day

logger = logging.getLogger(__name__)
settings = get_settings()

CLOSED_MESSAGE = "La clínica no atiende este día"


def clinic_timezone(clinic: Clinic) -> tzinfo:
    """Zona horaria de la clínica; UTC si el nombre guardado no es válido."""
    try:
        return ZoneInfo(clinic.timezone or settings.DEFAULT_CLINIC_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Zona horaria inválida '%s' en clinic_id=%s", clinic.timezone, clinic.id)
        return timezone.utc


async def get_active_service(
    db: AsyncSession,
    clinic_id: UUID,
    service_id: UUID,
) -> Service:
    """Servicio activo de la clínica; 404 si no existe o está desactivado."""
    result = await db.execute(
        select(Service).where(
            Service.id == service_id,
            Service.clinic_id == clinic_id,
            Service.is_active.is_(True),
        )
    )
    service = result.scalar_one_or_none()
    if not service:
        raise NotFoundException("Servicio", "Servicio no encontrado o no disponible")
    return service


async def get_occupying_appointments(
    db: AsyncSession,
    clinic_id: UUID,
    start: datetime,
    end: datetime,
) -> list[Appointment]:
    """Citas de la clínica que ocupan agenda y se cruzan con [start, end)."""
    result = await db.execute(
        select(Appointment)
        .where(
            Appointment.clinic_id == clinic_id,
            Appointment.status.in_(OCCUPYING_STATUSES),
            overlap_clause(Appointment.start_time, Appointment.end_time, start, end),
        )
        .order_by(Appointment.start_time)
    )
    return list(result.scalars().all())


async def get_available_slots(
    db: AsyncSession,
    clinic_id: UUID,
    target_date: date,
    service_id: UUID | None = None,
    now: datetime | None = None,
) -> AvailabilityResponse:
    """
    Calcula los slots de la clínica para `target_date`.
    Sin horario para ese día de la semana → listas vacías con mensaje.
    """
    clinic = await get_public_clinic(db, clinic_id)
    tz = clinic_timezone(clinic)

    hours = await get_for_day(db, clinic.id, DayOfWeek.from_date(target_date))
    if hours is None:
        return AvailabilityResponse(
            clinic_id=clinic.id,
            date=target_date,
            slots=[],
            booked_slots=[],
            message=CLOSED_MESSAGE,
        )

    service_duration = None
    if service_id is not None:
        service = await get_active_service(db, clinic.id, service_id)
        service_duration = service.duration_minutes

    duration = resolve_slot_duration(hours.slot_duration_minutes, service_duration)

    day_start, day_end = day_bounds(target_date, tz)
    occupied = await get_occupying_appointments(db, clinic.id, day_start, day_end)

    partition = generate_slots(
        target_date,
        hours,
        duration,
        occupied,
        now=now or datetime.now(timezone.utc),
        tz=tz,
        lead_time=timedelta(minutes=settings.BOOKING_LEAD_TIME_MINUTES),
    )

    return AvailabilityResponse(
        clinic_id=clinic.id,
        date=target_date,
        slots=partition.available,
        booked_slots=partition.booked,
        working_hours=WorkingHoursInfo(
            open_time=hours.open_time,
            close_time=hours.close_time,
            slot_duration_minutes=hours.slot_duration_minutes,
            break_start_time=hours.break_start_time,
            break_end_time=hours.break_end_time,
        ),
        service_duration=duration,
    )
