"""
Endpoints de administración de la plataforma: verificación de clínicas,
fichas de clínicas y pacientes, métricas globales y moderación de
reseñas.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import require_role
from dental_marketplace.database import get_db
from dental_marketplace.models.clinic import ClinicStatus
from dental_marketplace.models.patient import PatientStatus
from dental_marketplace.models.user import User, UserRole
from dental_marketplace.schemas.admin import AdminClinicDetail, AdminPatientDetail
from dental_marketplace.schemas.analytics import PlatformAnalytics
from dental_marketplace.schemas.clinic import AdminClinicResponse, ClinicStatusChange
from dental_marketplace.schemas.patient import PatientListResponse
from dental_marketplace.schemas.review import ReviewModeration, ReviewResponse
from dental_marketplace.services import (
    admin_service,
    analytics_service,
    clinic_service,
    patient_service,
    review_service,
)

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)


def _get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


@router.get("/clinics", response_model=list[AdminClinicResponse])
async def list_clinics(
    status: ClinicStatus | None = Query(None, description="Filtrar por estado"),
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await clinic_service.list_all_clinics(db, status=status)


@router.get("/clinics/{clinic_id}", response_model=AdminClinicDetail)
async def get_clinic(
    clinic_id: UUID,
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Ficha completa de la clínica en cualquier estado."""
    return await admin_service.get_clinic_detail(db, clinic_id)


@router.patch("/clinics/{clinic_id}/status", response_model=AdminClinicResponse)
async def change_clinic_status(
    clinic_id: UUID,
    data: ClinicStatusChange,
    request: Request,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Aprueba, rechaza o suspende una clínica. El dueño recibe una notificación."""
    return await clinic_service.change_status(
        db, clinic_id, data, admin, ip_address=_get_client_ip(request)
    )


@router.get("/patients", response_model=PatientListResponse)
async def list_patients(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, description="Buscar por nombre o email"),
    status: PatientStatus | None = Query(None),
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await patient_service.list_patients(
        db, page=page, size=size, search=search, status=status
    )


@router.get("/patients/{patient_id}", response_model=AdminPatientDetail)
async def get_patient(
    patient_id: UUID,
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_patient_detail(db, patient_id)


@router.get("/analytics", response_model=PlatformAnalytics)
async def analytics(
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await analytics_service.get_platform_analytics(db)


@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
async def moderate_review(
    review_id: UUID,
    data: ReviewModeration,
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.moderate_review(db, review_id, data.is_approved)
