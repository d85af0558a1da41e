"""
Lógica de negocio para el catálogo de servicios por clínica.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.core.exceptions import ConflictException, NotFoundException
from dental_marketplace.models.service import Service, ServiceCategory
from dental_marketplace.schemas.service import (
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)


def _to_response(service: Service) -> ServiceResponse:
    return ServiceResponse.model_validate(service)


async def _get_service_or_404(
    db: AsyncSession,
    clinic_id: UUID,
    service_id: UUID,
) -> Service:
    result = await db.execute(
        select(Service).where(
            Service.id == service_id,
            Service.clinic_id == clinic_id,
        )
    )
    service = result.scalar_one_or_none()
    if not service:
        raise NotFoundException("Servicio")
    return service


async def _ensure_unique_name(
    db: AsyncSession,
    clinic_id: UUID,
    name: str,
    exclude_id: UUID | None = None,
) -> None:
    query = select(Service.id).where(
        Service.clinic_id == clinic_id,
        Service.name == name,
    )
    if exclude_id:
        query = query.where(Service.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none():
        raise ConflictException(f"Ya existe un servicio con el nombre '{name}'")


# ── CRUD ─────────────────────────────────────────────


async def create_service(
    db: AsyncSession,
    clinic_id: UUID,
    data: ServiceCreate,
) -> ServiceResponse:
    name = data.name.strip()
    await _ensure_unique_name(db, clinic_id, name)

    service = Service(
        clinic_id=clinic_id,
        name=name,
        description=data.description,
        category=data.category,
        duration_minutes=data.duration_minutes,
        price=data.price,
        preparation=data.preparation,
        is_active=True,
    )
    db.add(service)
    await db.flush()
    await db.refresh(service)
    return _to_response(service)


async def update_service(
    db: AsyncSession,
    clinic_id: UUID,
    service_id: UUID,
    data: ServiceUpdate,
) -> ServiceResponse:
    service = await _get_service_or_404(db, clinic_id, service_id)
    update_data = data.model_dump(exclude_unset=True)

    # Verificar nombre único si se está cambiando
    if update_data.get("name") and update_data["name"].strip() != service.name:
        update_data["name"] = update_data["name"].strip()
        await _ensure_unique_name(db, clinic_id, update_data["name"], exclude_id=service_id)

    for key, value in update_data.items():
        if value is None and key in ("name", "category", "is_active"):
            continue
        setattr(service, key, value)

    await db.flush()
    await db.refresh(service)
    return _to_response(service)


async def delete_service(
    db: AsyncSession,
    clinic_id: UUID,
    service_id: UUID,
) -> None:
    """Soft delete: desactiva el servicio. Las citas existentes lo conservan."""
    service = await _get_service_or_404(db, clinic_id, service_id)
    service.is_active = False
    await db.flush()


async def list_services(
    db: AsyncSession,
    clinic_id: UUID,
    *,
    is_active: bool | None = None,
    category: ServiceCategory | None = None,
) -> list[ServiceResponse]:
    query = select(Service).where(Service.clinic_id == clinic_id)

    if is_active is not None:
        query = query.where(Service.is_active == is_active)
    if category is not None:
        query = query.where(Service.category == category)

    result = await db.execute(query.order_by(Service.name))
    return [_to_response(s) for s in result.scalars().all()]


async def get_active_services(
    db: AsyncSession,
    clinic_id: UUID,
) -> list[ServiceResponse]:
    """Servicios activos de la clínica, para el catálogo público."""
    return await list_services(db, clinic_id, is_active=True)
