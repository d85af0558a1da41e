"""
Modelo Patient: Perfil de paciente creado durante el onboarding.
IC/pasaporte como identificador único (cifrado, con hash para búsquedas).
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.database import Base


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class PatientStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True
    )

    # ── Datos de identidad (PII cifrado en campos sensibles) ──
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    ic_or_passport: Mapped[str] = mapped_column(
        String(255), nullable=False,
        comment="IC/pasaporte cifrado con Fernet"
    )
    ic_or_passport_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
        comment="SHA-256 del documento normalizado"
    )
    phone: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Cifrado con Fernet"
    )
    email: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str] = mapped_column(String(500), nullable=False)

    # ── Datos personales ─────────────────────────────
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[Gender] = mapped_column(Enum(Gender), nullable=False)

    # ── Datos médicos ────────────────────────────────
    blood_group: Mapped[str | None] = mapped_column(
        String(5), comment="A+, A-, B+, B-, O+, O-, AB+, AB-"
    )
    allergies: Mapped[str | None] = mapped_column(Text)
    medical_note: Mapped[str | None] = mapped_column(Text)

    # ── Estado ───────────────────────────────────────
    status: Mapped[PatientStatus] = mapped_column(
        Enum(PatientStatus), nullable=False, default=PatientStatus.ACTIVE
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    user: Mapped["User"] = relationship("User", back_populates="patient")  # noqa: F821

    @property
    def is_active(self) -> bool:
        return self.status == PatientStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Patient {self.name} [{self.status.value}]>"
