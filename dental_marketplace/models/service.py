"""
Modelo Service: Catálogo de servicios dentales por clínica.

Cada clínica gestiona su propio catálogo (limpiezas, ortodoncia,
extracciones...). La duración es opcional: si es múltiplo del intervalo
de la clínica, define el largo de los slots al reservar ese servicio.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.database import Base


class ServiceCategory(str, enum.Enum):
    """Categorías de servicios dentales."""
    GENERAL = "GENERAL"
    CLEANING = "CLEANING"
    ORTHODONTICS = "ORTHODONTICS"
    ENDODONTICS = "ENDODONTICS"
    SURGERY = "SURGERY"
    COSMETIC = "COSMETIC"
    PEDIATRIC = "PEDIATRIC"
    OTHER = "OTHER"


class Service(Base):
    __tablename__ = "services"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(
        String(150), nullable=False,
        comment="Nombre del servicio"
    )
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[ServiceCategory] = mapped_column(
        Enum(ServiceCategory), nullable=False, default=ServiceCategory.GENERAL,
        comment="Categoría del servicio"
    )
    duration_minutes: Mapped[int | None] = mapped_column(
        Integer, comment="Duración en minutos (null = intervalo de la clínica)"
    )
    price: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), comment="Precio al paciente (null = sin costo)"
    )
    preparation: Mapped[str | None] = mapped_column(
        Text, comment="Indicaciones previas para el paciente"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    clinic: Mapped["Clinic"] = relationship("Clinic")  # noqa: F821

    __table_args__ = (
        Index("idx_service_clinic", "clinic_id"),
        Index("idx_service_clinic_category", "clinic_id", "category"),
        UniqueConstraint("clinic_id", "name", name="uq_service_clinic_name"),
    )

    @property
    def is_paid(self) -> bool:
        return self.price is not None and self.price > 0

    def __repr__(self) -> str:
        return f"<Service {self.name} [{self.category.value}] {self.price}>"
