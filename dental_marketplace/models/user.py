"""
Modelo User: Cuentas de acceso con rol de marketplace.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Enum, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.database import Base


class UserRole(str, enum.Enum):
    """Roles del sistema. Todo usuario nuevo empieza sin asignar."""
    UNASSIGNED = "UNASSIGNED"
    PATIENT = "PATIENT"
    CLINIC_OWNER = "CLINIC_OWNER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    # ── Datos de acceso ──────────────────────────────
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.UNASSIGNED
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500))

    # ── Estado ───────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(default=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    patient: Mapped["Patient | None"] = relationship(  # noqa: F821
        "Patient", back_populates="user", uselist=False, lazy="selectin"
    )
    clinic: Mapped["Clinic | None"] = relationship(  # noqa: F821
        "Clinic", back_populates="owner", uselist=False, lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
