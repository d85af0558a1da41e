"""
Endpoints de citas del paciente: reserva, listado y cancelación.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dental_marketplace.auth.dependencies import get_current_patient, get_current_user
from dental_marketplace.database import get_db
from dental_marketplace.models.appointment import AppointmentStatus
from dental_marketplace.models.patient import Patient
from dental_marketplace.models.user import User
from dental_marketplace.schemas.appointment import (
    AppointmentCancelRequest,
    AppointmentListResponse,
    AppointmentResponse,
    BookingRequest,
)
from dental_marketplace.services import appointment_service, booking_service

router = APIRouter()


@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    data: BookingRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserva un slot. Respuestas de error:
    400 sin perfil de paciente activo o inicio en el pasado,
    404 clínica o servicio no disponibles,
    409 el horario ya no está libre o el paciente tiene otra cita a esa hora.
    """
    return await booking_service.book_appointment(db, user, data)


@router.get("/me", response_model=AppointmentListResponse)
async def my_appointments(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: AppointmentStatus | None = Query(None, description="Filtrar por estado"),
    upcoming: bool | None = Query(None, description="true = futuras, false = pasadas"),
    patient: Patient = Depends(get_current_patient),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_user_appointments(
        db, user, page=page, size=size, status=status, upcoming=upcoming
    )


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancelRequest | None = None,
    patient: Patient = Depends(get_current_patient),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancela una cita propia en estado BOOKED o CONFIRMED."""
    return await appointment_service.cancel_by_patient(
        db, user, appointment_id, reason=data.reason if data else None
    )
