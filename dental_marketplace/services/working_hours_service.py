"""
Horario semanal de la clínica.
Cada edición reemplaza el horario completo: se borran todas las filas
y se crean las nuevas dentro de la misma transacción.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.working_hours import ClinicWorkingHours, DayOfWeek
from dental_marketplace.schemas.working_hours import (
    WorkingHoursReplace,
    WorkingHoursReplaceResponse,
    WorkingHoursResponse,
)
from dental_marketplace.services.audit_service import log_action

logger = logging.getLogger(__name__)


def _snapshot(row: ClinicWorkingHours) -> dict:
    return {
        "day": row.day,
        "open_time": row.open_time,
        "close_time": row.close_time,
        "slot_duration_minutes": row.slot_duration_minutes,
        "break_start_time": row.break_start_time,
        "break_end_time": row.break_end_time,
    }


async def list_working_hours(
    db: AsyncSession,
    clinic_id: UUID,
) -> list[ClinicWorkingHours]:
    """Filas del horario ordenadas de lunes a domingo."""
    result = await db.execute(
        select(ClinicWorkingHours).where(ClinicWorkingHours.clinic_id == clinic_id)
    )
    rows = list(result.scalars().all())
    rows.sort(key=lambda row: row.day.order)
    return rows


async def get_working_hours(
    db: AsyncSession,
    clinic_id: UUID,
) -> list[WorkingHoursResponse]:
    rows = await list_working_hours(db, clinic_id)
    return [WorkingHoursResponse.model_validate(row) for row in rows]


async def get_for_day(
    db: AsyncSession,
    clinic_id: UUID,
    day: DayOfWeek,
) -> ClinicWorkingHours | None:
    """Horario de un día; None si la clínica no atiende ese día."""
    result = await db.execute(
        select(ClinicWorkingHours).where(
            ClinicWorkingHours.clinic_id == clinic_id,
            ClinicWorkingHours.day == day,
        )
    )
    return result.scalar_one_or_none()


async def replace_working_hours(
    db: AsyncSession,
    clinic: Clinic,
    data: WorkingHoursReplace,
    user_id: UUID | None = None,
    ip_address: str | None = None,
) -> WorkingHoursReplaceResponse:
    """Reemplaza el horario semanal completo de la clínica."""
    previous = [
        _snapshot(row) for row in sorted(clinic.working_hours, key=lambda row: row.day.order)
    ]

    # Borrar primero: (clinic_id, day) es único
    clinic.working_hours.clear()
    await db.flush()

    clinic.working_hours.extend(
        ClinicWorkingHours(
            day=item.day,
            open_time=item.open_time,
            close_time=item.close_time,
            slot_duration_minutes=item.slot_duration_minutes,
            break_start_time=item.break_start_time,
            break_end_time=item.break_end_time,
        )
        for item in data.working_hours
    )
    await db.flush()

    rows = sorted(clinic.working_hours, key=lambda row: row.day.order)

    await log_action(
        db,
        clinic_id=clinic.id,
        user_id=user_id,
        entity="working_hours",
        entity_id=str(clinic.id),
        action="replace",
        old_data={"days": previous},
        new_data={"days": [_snapshot(row) for row in rows]},
        ip_address=ip_address,
    )
    logger.info("Horario reemplazado: clinic_id=%s dias=%d", clinic.id, len(rows))

    return WorkingHoursReplaceResponse(
        count=len(rows),
        working_hours=[WorkingHoursResponse.model_validate(row) for row in rows],
    )
