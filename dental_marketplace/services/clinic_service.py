"""
Servicio de clínicas: perfil del dueño, catálogo público y moderación.

Flujo de verificación:
    PENDING → APPROVED | REJECTED | SUSPENDED (decisión del administrador)
Solo las clínicas APPROVED aparecen en el catálogo y aceptan reservas.
"""

import logging
import math
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from dental_marketplace.core.exceptions import NotFoundException
from dental_marketplace.models.clinic import Clinic, ClinicStatus
from dental_marketplace.models.notification import NotificationType
from dental_marketplace.models.user import User
from dental_marketplace.schemas.clinic import (
    AdminClinicResponse,
    ClinicDetailResponse,
    ClinicListResponse,
    ClinicOwnerEmbed,
    ClinicResponse,
    ClinicStatusChange,
    ClinicUpdate,
    VerificationStatusResponse,
)
from dental_marketplace.schemas.working_hours import WorkingHoursResponse
from dental_marketplace.services import doctor_service, notification_service, review_service
from dental_marketplace.services.audit_service import log_status_change
from dental_marketplace.services.service_service import get_active_services

logger = logging.getLogger(__name__)

STATUS_MESSAGES: dict[ClinicStatus, tuple[str, str]] = {
    ClinicStatus.APPROVED: (
        "Clínica aprobada",
        "Su clínica {name} fue aprobada y ya aparece en el catálogo.",
    ),
    ClinicStatus.REJECTED: (
        "Clínica rechazada",
        "La solicitud de verificación de {name} fue rechazada.",
    ),
    ClinicStatus.SUSPENDED: (
        "Clínica suspendida",
        "Su clínica {name} fue suspendida y no acepta nuevas reservas.",
    ),
}


def _to_response(clinic: Clinic) -> ClinicResponse:
    return ClinicResponse.model_validate(clinic)


# ── Perfil del dueño ─────────────────────────────────


async def update_profile(
    db: AsyncSession,
    clinic: Clinic,
    data: ClinicUpdate,
) -> ClinicResponse:
    """Actualiza los datos editables de la clínica (no cambia su estado)."""
    update_fields = data.model_dump(exclude_unset=True)
    for field, value in update_fields.items():
        if value is None and field in ("name", "address", "phone", "description", "timezone"):
            continue
        setattr(clinic, field, value)

    await db.flush()
    await db.refresh(clinic)
    return _to_response(clinic)


async def get_verification_status(
    db: AsyncSession,
    clinic: Clinic,
) -> VerificationStatusResponse:
    """Estado de verificación con los avisos CLINIC_UPDATE del dueño."""
    notifications = await notification_service.list_by_type(
        db, clinic.owner_id, NotificationType.CLINIC_UPDATE
    )
    return VerificationStatusResponse(
        clinic=_to_response(clinic),
        notifications=notifications,
    )


# ── Catálogo público ─────────────────────────────────


async def get_public_clinic(db: AsyncSession, clinic_id: UUID) -> Clinic:
    """Clínica aprobada; 404 si no existe o no está aprobada."""
    result = await db.execute(
        select(Clinic).where(
            Clinic.id == clinic_id,
            Clinic.status == ClinicStatus.APPROVED,
        )
    )
    clinic = result.scalar_one_or_none()
    if not clinic:
        raise NotFoundException("Clínica", "Clínica no encontrada")
    return clinic


async def list_public_clinics(
    db: AsyncSession,
    *,
    page: int = 1,
    size: int = 20,
    search: str | None = None,
) -> ClinicListResponse:
    """Clínicas aprobadas, con búsqueda opcional por nombre o dirección."""
    query = select(Clinic).where(Clinic.status == ClinicStatus.APPROVED)

    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(Clinic.name.ilike(term), Clinic.address.ilike(term)))

    count_query = select(func.count()).select_from(
        query.with_only_columns(Clinic.id).subquery()
    )
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * size
    query = query.order_by(Clinic.name).offset(offset).limit(size)
    result = await db.execute(query)

    return ClinicListResponse(
        items=[_to_response(c) for c in result.scalars().all()],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 0,
    )


async def get_public_detail(db: AsyncSession, clinic_id: UUID) -> ClinicDetailResponse:
    """Ficha pública: servicios activos, odontólogos, horario y resumen de reseñas."""
    clinic = await get_public_clinic(db, clinic_id)
    working_hours = sorted(clinic.working_hours, key=lambda row: row.day.order)

    return ClinicDetailResponse(
        clinic=_to_response(clinic),
        services=await get_active_services(db, clinic.id),
        doctors=await doctor_service.list_doctors(db, clinic.id),
        working_hours=[WorkingHoursResponse.model_validate(row) for row in working_hours],
        reviews=await review_service.get_summary(db, clinic.id),
    )


# ── Administración ───────────────────────────────────


def clinic_to_admin_response(clinic: Clinic) -> AdminClinicResponse:
    owner = None
    if clinic.owner:
        owner = ClinicOwnerEmbed(
            id=clinic.owner.id,
            name=clinic.owner.name,
            email=clinic.owner.email,
        )
    return AdminClinicResponse(
        **ClinicResponse.model_validate(clinic).model_dump(),
        owner=owner,
    )


async def list_all_clinics(
    db: AsyncSession,
    *,
    status: ClinicStatus | None = None,
) -> list[AdminClinicResponse]:
    """Todas las clínicas con su dueño, más recientes primero."""
    query = select(Clinic).options(joinedload(Clinic.owner))
    if status:
        query = query.where(Clinic.status == status)

    result = await db.execute(query.order_by(Clinic.created_at.desc()))
    return [clinic_to_admin_response(c) for c in result.scalars().unique().all()]


async def change_status(
    db: AsyncSession,
    clinic_id: UUID,
    data: ClinicStatusChange,
    admin: User,
    ip_address: str | None = None,
) -> AdminClinicResponse:
    """
    Aprueba, rechaza o suspende una clínica.
    Notifica al dueño y deja registro en el audit log.
    """
    result = await db.execute(
        select(Clinic).options(joinedload(Clinic.owner)).where(Clinic.id == clinic_id)
    )
    clinic = result.scalar_one_or_none()
    if not clinic:
        raise NotFoundException("Clínica", "Clínica no encontrada")

    old_status = clinic.status
    clinic.status = data.status
    await db.flush()

    title, template = STATUS_MESSAGES[data.status]
    message = template.format(name=clinic.name)
    if data.reason:
        message = f"{message} Motivo: {data.reason}"

    await notification_service.notify(
        db,
        user_id=clinic.owner_id,
        type=NotificationType.CLINIC_UPDATE,
        title=title,
        message=message,
    )

    await log_status_change(
        db,
        entity="clinic",
        entity_id=clinic.id,
        clinic_id=clinic.id,
        actor_id=admin.id,
        old_status=old_status,
        new_status=data.status,
        ip_address=ip_address,
        reason=data.reason,
    )

    logger.info(
        "Clínica %s: %s → %s (admin=%s)",
        clinic.id, old_status.value, data.status.value, admin.id,
    )

    # Recargar updated_at
    result = await db.execute(
        select(Clinic).options(joinedload(Clinic.owner)).where(Clinic.id == clinic_id)
    )
    return clinic_to_admin_response(result.scalar_one())
