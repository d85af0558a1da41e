"""
Schemas para Clinic: onboarding, perfil, catálogo público y moderación.
"""

from datetime import datetime
from uuid import UUID
from zoneinfo import available_timezones

from pydantic import BaseModel, EmailStr, Field, field_validator

from dental_marketplace.models.clinic import ClinicStatus
from dental_marketplace.schemas.doctor import DoctorResponse
from dental_marketplace.schemas.notification import NotificationResponse
from dental_marketplace.schemas.review import ReviewSummary
from dental_marketplace.schemas.service import ServiceResponse
from dental_marketplace.schemas.working_hours import WorkingHoursResponse


def _check_timezone(v: str | None) -> str | None:
    if v is not None and v not in available_timezones():
        raise ValueError(f"Zona horaria desconocida: {v}")
    return v


class ClinicOnboardingRequest(BaseModel):
    clinic_name: str = Field(..., min_length=1, max_length=200)
    clinic_address: str = Field(..., min_length=1, max_length=500)
    clinic_phone: str = Field(..., min_length=1, max_length=30)
    clinic_email: EmailStr | None = None
    description: str = Field(..., min_length=10, max_length=5000)
    documents: list[str] = Field(
        ..., min_length=1, description="URLs de documentos de verificación"
    )
    timezone: str | None = Field(None, description="Zona horaria IANA (ej: Asia/Kuala_Lumpur)")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        return _check_timezone(v)


class ClinicUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    address: str | None = Field(None, min_length=1, max_length=500)
    phone: str | None = Field(None, min_length=1, max_length=30)
    email: EmailStr | None = None
    description: str | None = Field(None, min_length=10, max_length=5000)
    image_url: str | None = Field(None, max_length=500)
    timezone: str | None = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        return _check_timezone(v)


class ClinicResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    address: str
    phone: str
    email: str | None = None
    description: str
    image_url: str | None = None
    documents: list[str] | None = None
    timezone: str
    status: ClinicStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClinicOwnerEmbed(BaseModel):
    id: UUID
    name: str
    email: str


class AdminClinicResponse(ClinicResponse):
    owner: ClinicOwnerEmbed | None = None


class ClinicListResponse(BaseModel):
    """Respuesta paginada del catálogo público."""
    items: list[ClinicResponse]
    total: int
    page: int
    size: int
    pages: int


class ClinicDetailResponse(BaseModel):
    clinic: ClinicResponse
    services: list[ServiceResponse]
    doctors: list[DoctorResponse] = []
    working_hours: list[WorkingHoursResponse]
    reviews: ReviewSummary


class ClinicStatusChange(BaseModel):
    status: ClinicStatus
    reason: str | None = Field(None, max_length=1000)

    @field_validator("status")
    @classmethod
    def not_pending(cls, v: ClinicStatus) -> ClinicStatus:
        if v == ClinicStatus.PENDING:
            raise ValueError("Solo se puede aprobar, rechazar o suspender")
        return v


class VerificationStatusResponse(BaseModel):
    clinic: ClinicResponse
    notifications: list[NotificationResponse]


class ClinicOnboardingResponse(BaseModel):
    clinic: ClinicResponse
    destination: str
