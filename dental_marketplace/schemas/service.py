"""
Schemas Pydantic para el módulo de Servicios.
Catálogo de servicios dentales por clínica.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from dental_marketplace.models.service import ServiceCategory


# ── Create / Update ──────────────────────────────────


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150, description="Nombre del servicio")
    description: str | None = None
    category: ServiceCategory = Field(ServiceCategory.GENERAL, description="Categoría del servicio")
    duration_minutes: int | None = Field(
        None, ge=5, le=480,
        description="Duración en minutos (vacío = intervalo de la clínica)"
    )
    price: Decimal | None = Field(None, ge=0, description="Precio al paciente")
    preparation: str | None = Field(None, max_length=2000)


class ServiceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=150)
    description: str | None = None
    category: ServiceCategory | None = None
    duration_minutes: int | None = Field(None, ge=5, le=480)
    price: Decimal | None = Field(None, ge=0)
    preparation: str | None = Field(None, max_length=2000)
    is_active: bool | None = None


# ── Response ─────────────────────────────────────────


class ServiceResponse(BaseModel):
    id: UUID
    clinic_id: UUID
    name: str
    description: str | None = None
    category: ServiceCategory
    duration_minutes: int | None = None
    price: float | None = None
    preparation: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
