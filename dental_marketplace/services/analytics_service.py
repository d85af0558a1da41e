"""
Métricas agregadas para el dashboard de administración y de cada clínica.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.models.appointment import (
    OCCUPYING_STATUSES,
    Appointment,
    AppointmentStatus,
)
from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.service import Service
from dental_marketplace.models.user import User
from dental_marketplace.schemas.analytics import (
    ClinicAnalytics,
    ClinicAnalyticsExport,
    DayCount,
    ExportSummary,
    PlatformAnalytics,
    ServiceRevenue,
    StatusCount,
    TopService,
)
from dental_marketplace.scheduling.overlap import as_utc
from dental_marketplace.services.availability_service import clinic_timezone


async def _count_by(db: AsyncSession, column, *criteria) -> list[StatusCount]:
    result = await db.execute(
        select(column, func.count()).where(*criteria).group_by(column)
    )
    return [
        StatusCount(status=value.value if hasattr(value, "value") else str(value), count=count)
        for value, count in result.all()
    ]


async def _revenue(db: AsyncSession, *criteria) -> Decimal:
    """Suma de total_amount de las citas completadas."""
    result = await db.execute(
        select(func.coalesce(func.sum(Appointment.total_amount), 0)).where(
            Appointment.status == AppointmentStatus.COMPLETED,
            *criteria,
        )
    )
    return Decimal(str(result.scalar() or 0))


async def get_platform_analytics(
    db: AsyncSession,
    now: datetime | None = None,
) -> PlatformAnalytics:
    now = now or datetime.now(timezone.utc)

    users_by_role = await _count_by(db, User.role)
    clinics_by_status = await _count_by(db, Clinic.status)
    appointments_by_status = await _count_by(db, Appointment.status)

    recent = await db.execute(
        select(func.count(Appointment.id)).where(
            Appointment.created_at >= now - timedelta(days=30)
        )
    )

    return PlatformAnalytics(
        users_by_role=users_by_role,
        clinics_by_status=clinics_by_status,
        appointments_by_status=appointments_by_status,
        total_users=sum(c.count for c in users_by_role),
        total_clinics=sum(c.count for c in clinics_by_status),
        total_appointments=sum(c.count for c in appointments_by_status),
        appointments_last_30_days=recent.scalar() or 0,
        revenue=await _revenue(db),
        generated_at=now,
    )


async def get_clinic_analytics(
    db: AsyncSession,
    clinic: Clinic,
    now: datetime | None = None,
    top: int = 5,
) -> ClinicAnalytics:
    now = now or datetime.now(timezone.utc)

    by_status = await _count_by(db, Appointment.status, Appointment.clinic_id == clinic.id)

    upcoming = await db.execute(
        select(func.count(Appointment.id)).where(
            Appointment.clinic_id == clinic.id,
            Appointment.status.in_(OCCUPYING_STATUSES),
            Appointment.start_time > now,
        )
    )
    patients = await db.execute(
        select(func.count(func.distinct(Appointment.patient_id))).where(
            Appointment.clinic_id == clinic.id
        )
    )

    top_result = await db.execute(
        select(Service.id, Service.name, func.count(Appointment.id).label("total"))
        .join(Appointment, Appointment.service_id == Service.id)
        .where(Appointment.clinic_id == clinic.id)
        .group_by(Service.id, Service.name)
        .order_by(func.count(Appointment.id).desc(), Service.name)
        .limit(top)
    )

    return ClinicAnalytics(
        clinic_id=clinic.id,
        appointments_by_status=by_status,
        total_appointments=sum(c.count for c in by_status),
        upcoming_appointments=upcoming.scalar() or 0,
        total_patients=patients.scalar() or 0,
        revenue=await _revenue(db, Appointment.clinic_id == clinic.id),
        top_services=[
            TopService(service_id=service_id, name=name, count=total)
            for service_id, name, total in top_result.all()
        ],
        generated_at=now,
    )


async def export_clinic_analytics(
    db: AsyncSession,
    clinic: Clinic,
    *,
    days: int = 30,
    now: datetime | None = None,
    top: int = 5,
) -> ClinicAnalyticsExport:
    """
    Reporte de las citas con inicio desde hace `days` días (incluye las
    futuras). Los ingresos cuentan solo citas COMPLETED y las citas por
    día se agrupan en la fecha local de la clínica.
    """
    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=days)
    tz = clinic_timezone(clinic)

    result = await db.execute(
        select(Appointment)
        .where(Appointment.clinic_id == clinic.id, Appointment.start_time >= start)
        .order_by(Appointment.start_time)
    )
    appointments = result.scalars().all()

    counts = Counter(a.status for a in appointments)
    completed = [a for a in appointments if a.status == AppointmentStatus.COMPLETED]
    revenue = sum((a.total_amount or Decimal("0") for a in completed), Decimal("0"))
    average = (revenue / len(completed)).quantize(Decimal("0.01")) if completed else Decimal("0.00")

    per_service: dict[UUID, tuple[int, Decimal]] = {}
    for appt in completed:
        count, amount = per_service.get(appt.service_id, (0, Decimal("0")))
        per_service[appt.service_id] = (count + 1, amount + (appt.total_amount or Decimal("0")))

    services = await db.execute(
        select(Service.id, Service.name).where(Service.clinic_id == clinic.id)
    )
    top_services = sorted(
        (
            ServiceRevenue(
                service_id=service_id,
                name=name,
                count=per_service.get(service_id, (0, Decimal("0")))[0],
                revenue=per_service.get(service_id, (0, Decimal("0")))[1],
            )
            for service_id, name in services.all()
        ),
        key=lambda s: (-s.count, -s.revenue, s.name),
    )[:top]

    by_day = Counter(as_utc(a.start_time).astimezone(tz).date() for a in appointments)

    return ClinicAnalyticsExport(
        clinic_id=clinic.id,
        clinic_name=clinic.name,
        days=days,
        period_start=start,
        period_end=now,
        summary=ExportSummary(
            total_appointments=len(appointments),
            completed_appointments=counts[AppointmentStatus.COMPLETED],
            cancelled_appointments=counts[AppointmentStatus.CANCELLED],
            no_show_appointments=counts[AppointmentStatus.NO_SHOW],
            total_revenue=revenue,
            average_revenue_per_appointment=average,
        ),
        top_services=top_services,
        appointments_by_day=[DayCount(day=day, count=by_day[day]) for day in sorted(by_day)],
        generated_at=now,
    )
