"""
Schemas Pydantic para los odontólogos de la clínica.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl


class DoctorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    specialization: str = Field(..., min_length=1, max_length=150)
    bio: str | None = Field(None, max_length=2000)
    experience_years: int = Field(0, ge=0, le=70, description="Años de experiencia")
    image_url: HttpUrl | None = None


class DoctorUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    specialization: str | None = Field(None, min_length=1, max_length=150)
    bio: str | None = Field(None, max_length=2000)
    experience_years: int | None = Field(None, ge=0, le=70)
    image_url: HttpUrl | None = None


class DoctorResponse(BaseModel):
    id: UUID
    clinic_id: UUID
    name: str
    specialization: str
    bio: str | None = None
    experience_years: int
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
