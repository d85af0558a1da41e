"""
Modelo Doctor: Odontólogos que atienden en una clínica.

Ficha pública del profesional (especialidad, experiencia, foto). La
clínica los gestiona desde su panel y aparecen en su detalle público.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.database import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    specialization: Mapped[str] = mapped_column(
        String(150), nullable=False,
        comment="Especialidad (ortodoncia, endodoncia...)"
    )
    bio: Mapped[str | None] = mapped_column(Text)
    experience_years: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Años de experiencia"
    )
    image_url: Mapped[str | None] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    clinic: Mapped["Clinic"] = relationship("Clinic")  # noqa: F821

    __table_args__ = (
        Index("idx_doctor_clinic", "clinic_id"),
        CheckConstraint("experience_years >= 0", name="ck_doctor_experience"),
    )

    def __repr__(self) -> str:
        return f"<Doctor {self.name} ({self.specialization})>"
