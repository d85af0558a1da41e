"""
Schemas de las fichas de detalle para administración.
"""

from pydantic import BaseModel

from dental_marketplace.models.user import UserRole
from dental_marketplace.schemas.appointment import AppointmentResponse
from dental_marketplace.schemas.clinic import AdminClinicResponse
from dental_marketplace.schemas.doctor import DoctorResponse
from dental_marketplace.schemas.patient import PatientResponse
from dental_marketplace.schemas.review import ReviewResponse, ReviewSummary
from dental_marketplace.schemas.service import ServiceResponse


class AdminClinicCounts(BaseModel):
    appointments: int = 0
    patients: int = 0
    services: int = 0
    reviews: int = 0


class AdminClinicDetail(BaseModel):
    """Clínica con dueño, catálogo completo y su actividad reciente."""
    clinic: AdminClinicResponse
    services: list[ServiceResponse]
    doctors: list[DoctorResponse]
    recent_appointments: list[AppointmentResponse]
    recent_reviews: list[ReviewResponse]
    rating: ReviewSummary
    counts: AdminClinicCounts


class AdminPatientCounts(BaseModel):
    appointments: int = 0
    completed: int = 0
    cancelled: int = 0
    reviews: int = 0


class AdminPatientDetail(BaseModel):
    """Paciente con su cuenta, todas sus citas y sus reseñas."""
    patient: PatientResponse
    role: UserRole
    is_active: bool
    appointments: list[AppointmentResponse]
    reviews: list[ReviewResponse]
    counts: AdminPatientCounts
