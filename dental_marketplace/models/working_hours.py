"""
Modelo ClinicWorkingHours: Horario semanal de atención por clínica.

Un registro por (clínica, día). La ausencia de registro significa que la
clínica no atiende ese día. El horario semanal se reemplaza completo en
cada edición, nunca se parchea por día.
"""

import enum
import uuid
from datetime import date, time

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Integer,
    Time,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.database import Base


class DayOfWeek(str, enum.Enum):
    """Días de la semana en el orden de date.weekday() (0=Lunes)."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return list(cls)[value.weekday()]

    @property
    def order(self) -> int:
        return list(DayOfWeek).index(self)


class ClinicWorkingHours(Base):
    __tablename__ = "clinic_working_hours"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[DayOfWeek] = mapped_column(Enum(DayOfWeek), nullable=False)

    # ── Bloque de atención (hora local de la clínica) ─
    open_time: Mapped[time] = mapped_column(Time, nullable=False)
    close_time: Mapped[time] = mapped_column(Time, nullable=False)

    # ── Intervalo de la grilla de slots en minutos ───
    slot_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=30,
        comment="Separación entre inicios de slot y duración por defecto de la cita"
    )

    # ── Descanso opcional ────────────────────────────
    break_start_time: Mapped[time | None] = mapped_column(Time)
    break_end_time: Mapped[time | None] = mapped_column(Time)

    # ── Relaciones ───────────────────────────────────
    clinic: Mapped["Clinic"] = relationship(  # noqa: F821
        "Clinic", back_populates="working_hours"
    )

    __table_args__ = (
        UniqueConstraint("clinic_id", "day", name="uq_working_hours_clinic_day"),
        CheckConstraint("open_time < close_time", name="ck_working_hours_open_before_close"),
        CheckConstraint("slot_duration_minutes > 0", name="ck_working_hours_slot_positive"),
        CheckConstraint(
            "(break_start_time IS NULL) = (break_end_time IS NULL)",
            name="ck_working_hours_break_pair",
        ),
        CheckConstraint(
            "break_start_time IS NULL OR ("
            "break_start_time < break_end_time "
            "AND break_start_time >= open_time "
            "AND break_end_time <= close_time)",
            name="ck_working_hours_break_range",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<WorkingHours {self.day.value} {self.open_time}-{self.close_time} "
            f"({self.slot_duration_minutes}min)>"
        )
