"""
Schemas para Patient.
Onboarding del paciente y perfil editable.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from dental_marketplace.models.patient import Gender, PatientStatus


class PatientOnboardingRequest(BaseModel):
    ic_or_passport: str = Field(
        ..., min_length=5, max_length=30,
        description="Número de IC o pasaporte"
    )
    phone: str = Field(..., min_length=6, max_length=30)
    age: int = Field(..., ge=0, le=150)
    address: str = Field(..., min_length=1, max_length=500)
    gender: Gender
    blood_group: str | None = Field(
        None, pattern=r"^(A|B|AB|O)[+-]$",
        description="Grupo sanguíneo: A+, A-, B+, B-, O+, O-, AB+, AB-"
    )
    allergies: str | None = Field(None, max_length=2000)
    medical_note: str | None = Field(None, max_length=2000)

    @field_validator("ic_or_passport")
    @classmethod
    def strip_document(cls, v: str) -> str:
        v = v.strip()
        if not v.replace("-", "").isalnum():
            raise ValueError("El documento solo puede contener letras, números y guiones")
        return v


class PatientUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=200)
    phone: str | None = Field(None, min_length=6, max_length=30)
    email: EmailStr | None = None
    age: int | None = Field(None, ge=0, le=150)
    address: str | None = Field(None, min_length=1, max_length=500)
    gender: Gender | None = None
    blood_group: str | None = Field(None, pattern=r"^(A|B|AB|O)[+-]$")
    allergies: str | None = Field(None, max_length=2000)
    medical_note: str | None = Field(None, max_length=2000)


class PatientResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    ic_or_passport: str
    phone: str
    email: str | None = None
    age: int
    address: str
    gender: Gender
    blood_group: str | None = None
    allergies: str | None = None
    medical_note: str | None = None
    status: PatientStatus
    created_at: datetime


class PatientListResponse(BaseModel):
    items: list[PatientResponse]
    total: int
    page: int
    size: int
    pages: int


class PatientOnboardingResponse(BaseModel):
    patient: PatientResponse
    destination: str
