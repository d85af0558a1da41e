"""
Modelo Clinic: Tenant del marketplace, propiedad de un CLINIC_OWNER.

Flujo de aprobación:
    PENDING → APPROVED | REJECTED
    APPROVED → SUSPENDED
Solo las clínicas APPROVED aparecen en el catálogo público y aceptan reservas.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.config import get_settings
from dental_marketplace.database import Base

settings = get_settings()


class ClinicStatus(str, enum.Enum):
    """Estado de verificación de una clínica."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class Clinic(Base):
    __tablename__ = "clinics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500))
    documents: Mapped[list | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=list,
        comment="URLs de documentos de verificación"
    )
    timezone: Mapped[str] = mapped_column(
        String(50), default=settings.DEFAULT_CLINIC_TIMEZONE,
        comment="Zona horaria IANA de los horarios de atención"
    )
    status: Mapped[ClinicStatus] = mapped_column(
        Enum(ClinicStatus), nullable=False, default=ClinicStatus.PENDING, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    owner: Mapped["User"] = relationship(  # noqa: F821
        "User", back_populates="clinic"
    )
    working_hours: Mapped[list["ClinicWorkingHours"]] = relationship(  # noqa: F821
        "ClinicWorkingHours", back_populates="clinic", lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def is_approved(self) -> bool:
        return self.status == ClinicStatus.APPROVED

    def __repr__(self) -> str:
        return f"<Clinic {self.name} [{self.status.value}]>"
