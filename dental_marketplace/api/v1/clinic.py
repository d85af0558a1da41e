"""
Endpoints del dueño de clínica: perfil, verificación, horario, servicios,
agenda de citas, odontólogos, inventario, pacientes y métricas.

El perfil, el horario, los servicios, los odontólogos y el inventario se
pueden preparar mientras la clínica está PENDING; la agenda, los
pacientes y las métricas requieren APPROVED.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import (
    get_approved_clinic,
    get_current_user,
    get_owner_clinic,
)
from dental_marketplace.database import get_db
from dental_marketplace.models.appointment import AppointmentStatus
from dental_marketplace.models.clinic import Clinic
from dental_marketplace.models.inventory import (
    InventoryCategory,
    StockMovementType,
    StockStatus,
)
from dental_marketplace.models.service import ServiceCategory
from dental_marketplace.models.user import User
from dental_marketplace.schemas.analytics import ClinicAnalytics, ClinicAnalyticsExport
from dental_marketplace.schemas.appointment import (
    AppointmentListResponse,
    AppointmentNotesUpdate,
    AppointmentResponse,
    AppointmentStatusChange,
    ClinicPatientDetail,
    ClinicPatientListResponse,
)
from dental_marketplace.schemas.clinic import (
    ClinicResponse,
    ClinicUpdate,
    VerificationStatusResponse,
)
from dental_marketplace.schemas.doctor import DoctorCreate, DoctorResponse, DoctorUpdate
from dental_marketplace.schemas.inventory import (
    InventoryAdjustResponse,
    InventoryItemCreate,
    InventoryItemDetail,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryListResponse,
    StockAdjustment,
    StockMovementListResponse,
    SupplierCreate,
    SupplierResponse,
)
from dental_marketplace.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from dental_marketplace.schemas.working_hours import (
    WorkingHoursReplace,
    WorkingHoursReplaceResponse,
    WorkingHoursResponse,
)
from dental_marketplace.services import (
    analytics_service,
    appointment_service,
    clinic_service,
    doctor_service,
    inventory_service,
    service_service,
    working_hours_service,
)

router = APIRouter()


def _get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


# ── Perfil ───────────────────────────────────────────

@router.get("/profile", response_model=ClinicResponse)
async def get_profile(clinic: Clinic = Depends(get_owner_clinic)):
    return ClinicResponse.model_validate(clinic)


@router.put("/profile", response_model=ClinicResponse)
async def update_profile(
    data: ClinicUpdate,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    """Edita nombre, dirección, contacto, descripción y zona horaria."""
    return await clinic_service.update_profile(db, clinic, data)


@router.get("/verification-status", response_model=VerificationStatusResponse)
async def verification_status(
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    """Estado de verificación y avisos de la administración."""
    return await clinic_service.get_verification_status(db, clinic)


# ── Horario semanal ──────────────────────────────────

@router.get("/working-hours", response_model=list[WorkingHoursResponse])
async def get_working_hours(
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await working_hours_service.get_working_hours(db, clinic.id)


@router.put("/working-hours", response_model=WorkingHoursReplaceResponse)
async def replace_working_hours(
    data: WorkingHoursReplace,
    request: Request,
    clinic: Clinic = Depends(get_owner_clinic),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Reemplaza el horario completo. Los días no enviados quedan cerrados.
    Horas en formato HH:mm, hora local de la clínica.
    """
    return await working_hours_service.replace_working_hours(
        db, clinic, data, user_id=user.id, ip_address=_get_client_ip(request)
    )


# ── Servicios ────────────────────────────────────────

@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    is_active: bool | None = Query(None),
    category: ServiceCategory | None = Query(None),
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await service_service.list_services(
        db, clinic.id, is_active=is_active, category=category
    )


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await service_service.create_service(db, clinic.id, data)


@router.put("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: UUID,
    data: ServiceUpdate,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await service_service.update_service(db, clinic.id, service_id, data)


@router.delete("/services/{service_id}", status_code=204)
async def delete_service(
    service_id: UUID,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    """Desactiva el servicio (soft delete)."""
    await service_service.delete_service(db, clinic.id, service_id)
    return Response(status_code=204)


# ── Odontólogos ──────────────────────────────────────

@router.get("/doctors", response_model=list[DoctorResponse])
async def list_doctors(
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await doctor_service.list_doctors(db, clinic.id)


@router.post("/doctors", response_model=DoctorResponse, status_code=201)
async def create_doctor(
    data: DoctorCreate,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await doctor_service.create_doctor(db, clinic.id, data)


@router.put("/doctors/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: UUID,
    data: DoctorUpdate,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await doctor_service.update_doctor(db, clinic.id, doctor_id, data)


@router.delete("/doctors/{doctor_id}", status_code=204)
async def delete_doctor(
    doctor_id: UUID,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    await doctor_service.delete_doctor(db, clinic.id, doctor_id)
    return Response(status_code=204)


# ── Inventario ───────────────────────────────────────

@router.get("/suppliers", response_model=list[SupplierResponse])
async def list_suppliers(
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.list_suppliers(db, clinic.id)


@router.post("/suppliers", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    data: SupplierCreate,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.create_supplier(db, clinic.id, data)


@router.get("/inventory", response_model=InventoryListResponse)
async def list_inventory(
    category: InventoryCategory | None = Query(None),
    status: StockStatus | None = Query(None, description="IN_STOCK, LOW_STOCK u OUT_OF_STOCK"),
    search: str | None = Query(None, description="Buscar por nombre o SKU"),
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.list_items(
        db, clinic.id, category=category, status=status, search=search
    )


@router.post("/inventory", response_model=InventoryItemResponse, status_code=201)
async def create_inventory_item(
    data: InventoryItemCreate,
    clinic: Clinic = Depends(get_owner_clinic),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Si se indica stock inicial queda registrado como entrada en el kardex."""
    return await inventory_service.create_item(db, clinic.id, user.id, data)


@router.get("/inventory/movements", response_model=StockMovementListResponse)
async def list_stock_movements(
    item_id: UUID | None = Query(None),
    movement_type: StockMovementType | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.list_movements(
        db, clinic.id, item_id=item_id, movement_type=movement_type, limit=limit, offset=offset
    )


@router.get("/inventory/{item_id}", response_model=InventoryItemDetail)
async def get_inventory_item(
    item_id: UUID,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.get_item(db, clinic.id, item_id)


@router.put("/inventory/{item_id}", response_model=InventoryItemResponse)
async def update_inventory_item(
    item_id: UUID,
    data: InventoryItemUpdate,
    clinic: Clinic = Depends(get_owner_clinic),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.update_item(db, clinic.id, item_id, user.id, data)


@router.delete("/inventory/{item_id}", status_code=204)
async def delete_inventory_item(
    item_id: UUID,
    clinic: Clinic = Depends(get_owner_clinic),
    db: AsyncSession = Depends(get_db),
):
    await inventory_service.delete_item(db, clinic.id, item_id)
    return Response(status_code=204)


@router.post("/inventory/{item_id}/adjust", response_model=InventoryAdjustResponse)
async def adjust_inventory_stock(
    item_id: UUID,
    data: StockAdjustment,
    clinic: Clinic = Depends(get_owner_clinic),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Entrada (IN), salida (OUT, nunca por debajo de cero) o ajuste a un
    valor absoluto (ADJUSTMENT).
    """
    return await inventory_service.adjust_stock(db, clinic.id, item_id, user.id, data)


# ── Agenda de citas ──────────────────────────────────

@router.get("/appointments", response_model=AppointmentListResponse)
async def list_appointments(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: AppointmentStatus | None = Query(None, description="Filtrar por estado"),
    date_from: date | None = Query(None, description="Desde fecha (YYYY-MM-DD)"),
    date_to: date | None = Query(None, description="Hasta fecha (YYYY-MM-DD)"),
    clinic: Clinic = Depends(get_approved_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_clinic_appointments(
        db,
        clinic,
        page=page,
        size=size,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def change_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusChange,
    request: Request,
    clinic: Clinic = Depends(get_approved_clinic),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cambia el estado de una cita:
    BOOKED → CONFIRMED | CANCELLED | NO_SHOW,
    CONFIRMED → IN_PROGRESS | CANCELLED | NO_SHOW,
    IN_PROGRESS → COMPLETED.
    """
    return await appointment_service.change_status(
        db, clinic, appointment_id, user, data, ip_address=_get_client_ip(request)
    )


@router.patch("/appointments/{appointment_id}/notes", response_model=AppointmentResponse)
async def update_appointment_notes(
    appointment_id: UUID,
    data: AppointmentNotesUpdate,
    clinic: Clinic = Depends(get_approved_clinic),
    db: AsyncSession = Depends(get_db),
):
    """Notas internas; se pueden editar en cualquier estado."""
    return await appointment_service.update_notes(db, clinic, appointment_id, data.notes)


# ── Pacientes y métricas ─────────────────────────────

@router.get("/patients", response_model=ClinicPatientListResponse)
async def list_patients(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = Query(None),
    clinic: Clinic = Depends(get_approved_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_clinic_patients(
        db, clinic, page=page, size=size, search=search
    )


@router.get("/patients/{patient_id}", response_model=ClinicPatientDetail)
async def get_patient(
    patient_id: UUID,
    clinic: Clinic = Depends(get_approved_clinic),
    db: AsyncSession = Depends(get_db),
):
    """Ficha del paciente e historial de citas en esta clínica."""
    return await appointment_service.get_clinic_patient(db, clinic, patient_id)


@router.get("/analytics", response_model=ClinicAnalytics)
async def analytics(
    clinic: Clinic = Depends(get_approved_clinic),
    db: AsyncSession = Depends(get_db),
):
    return await analytics_service.get_clinic_analytics(db, clinic)


@router.get("/analytics/export", response_model=ClinicAnalyticsExport)
async def export_analytics(
    days: int = Query(30, ge=1, le=365, description="Días hacia atrás"),
    clinic: Clinic = Depends(get_approved_clinic),
    db: AsyncSession = Depends(get_db),
):
    """Reporte del período: resumen, servicios más rentables y citas por día."""
    return await analytics_service.export_clinic_analytics(db, clinic, days=days)
