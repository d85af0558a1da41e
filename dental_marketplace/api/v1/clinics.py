"""
Catálogo público de clínicas: listado, ficha, slots disponibles y reseñas.
No requiere autenticación.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.database import get_db
from dental_marketplace.schemas.availability import AvailabilityResponse
from dental_marketplace.schemas.clinic import ClinicDetailResponse, ClinicListResponse
from dental_marketplace.schemas.review import ReviewListResponse
from dental_marketplace.services import availability_service, clinic_service, review_service

router = APIRouter()


@router.get("", response_model=ClinicListResponse)
async def list_clinics(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, description="Buscar por nombre o dirección"),
    db: AsyncSession = Depends(get_db),
):
    """Clínicas aprobadas."""
    return await clinic_service.list_public_clinics(db, page=page, size=size, search=search)


@router.get("/{clinic_id}", response_model=ClinicDetailResponse)
async def get_clinic(
    clinic_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Ficha pública con servicios activos, horario y resumen de reseñas."""
    return await clinic_service.get_public_detail(db, clinic_id)


@router.get("/{clinic_id}/slots", response_model=AvailabilityResponse)
async def get_slots(
    clinic_id: UUID,
    target_date: date = Query(..., alias="date", description="Fecha (YYYY-MM-DD)"),
    service_id: UUID | None = Query(None, description="Servicio a reservar"),
    db: AsyncSession = Depends(get_db),
):
    """
    Slots de la clínica para una fecha: `slots` libres y `booked_slots`
    ocupados. Si se indica servicio, su duración define el largo del slot
    cuando es múltiplo del intervalo de la clínica.
    """
    return await availability_service.get_available_slots(
        db, clinic_id, target_date, service_id=service_id
    )


@router.get("/{clinic_id}/reviews", response_model=ReviewListResponse)
async def list_reviews(
    clinic_id: UUID,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.list_clinic_reviews(db, clinic_id, page=page, size=size)
