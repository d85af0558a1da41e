"""
Schemas para Appointment: reserva del paciente, agenda de la clínica
y cambios de estado.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from dental_marketplace.models.appointment import AppointmentStatus, PaymentStatus
from dental_marketplace.models.patient import Gender
from dental_marketplace.schemas.patient import PatientResponse


# ── Reserva ──────────────────────────────────────────

class BookingRequest(BaseModel):
    """Reserva de un slot. Los instantes deben venir con zona horaria."""
    clinic_id: UUID
    service_id: UUID
    start_time: datetime
    end_time: datetime
    patient_description: str | None = Field(None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("La fecha debe incluir zona horaria (ej: 2026-01-05T09:00:00Z)")
        return v

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, v: datetime, info) -> datetime:
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("end_time debe ser posterior a start_time")
        return v


class AppointmentStatusChange(BaseModel):
    """Schema para cambiar el estado de una cita."""
    status: AppointmentStatus
    cancellation_reason: str | None = Field(None, max_length=500)


class AppointmentNotesUpdate(BaseModel):
    notes: str | None = Field(None, max_length=5000)


class AppointmentCancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


# ── Respuestas ───────────────────────────────────────

class AppointmentPatientEmbed(BaseModel):
    """Datos del paciente embebidos en la respuesta de cita."""
    id: UUID
    name: str
    phone: str | None = None
    email: str | None = None


class AppointmentServiceEmbed(BaseModel):
    id: UUID
    name: str
    duration_minutes: int | None = None
    price: float | None = None


class AppointmentClinicEmbed(BaseModel):
    id: UUID
    name: str
    address: str
    phone: str


class AppointmentResponse(BaseModel):
    id: UUID
    clinic_id: UUID
    service_id: UUID
    patient_id: UUID
    user_id: UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    patient_description: str | None = None
    notes: str | None = None
    total_amount: float | None = None
    payment_status: PaymentStatus
    cancellation_reason: str | None = None
    cancelled_by: UUID | None = None

    # Datos de relaciones
    patient: AppointmentPatientEmbed | None = None
    service: AppointmentServiceEmbed | None = None
    clinic: AppointmentClinicEmbed | None = None

    created_at: datetime
    updated_at: datetime


class AppointmentListResponse(BaseModel):
    """Respuesta paginada de listado de citas."""
    items: list[AppointmentResponse]
    total: int
    page: int
    size: int
    pages: int


# ── Pacientes de la clínica ──────────────────────────

class ClinicPatientSummary(BaseModel):
    """Paciente que reservó al menos una vez en la clínica."""
    patient_id: UUID
    name: str
    email: str | None = None
    phone: str | None = None
    age: int | None = None
    gender: Gender | None = None
    total_appointments: int
    last_appointment: datetime | None = None


class ClinicPatientListResponse(BaseModel):
    items: list[ClinicPatientSummary]
    total: int
    page: int
    size: int
    pages: int


class ClinicPatientDetail(BaseModel):
    """Ficha del paciente con su historial en la clínica (más reciente primero)."""
    patient: PatientResponse
    total_appointments: int
    completed_appointments: int
    appointments: list[AppointmentResponse]
