"""
Schemas para el horario semanal de la clínica.
"""

from datetime import time
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from dental_marketplace.models.working_hours import DayOfWeek


class WorkingHoursItem(BaseModel):
    day: DayOfWeek
    open_time: time = Field(..., description="HH:mm, hora local de la clínica")
    close_time: time = Field(..., description="HH:mm, hora local de la clínica")
    slot_duration_minutes: int = Field(30, ge=5, le=240)
    break_start_time: time | None = None
    break_end_time: time | None = None

    @model_validator(mode="after")
    def check_ranges(self) -> "WorkingHoursItem":
        if self.open_time >= self.close_time:
            raise ValueError("open_time debe ser anterior a close_time")

        has_start = self.break_start_time is not None
        has_end = self.break_end_time is not None
        if has_start != has_end:
            raise ValueError("El descanso requiere hora de inicio y de fin")
        if has_start and has_end:
            if self.break_start_time >= self.break_end_time:
                raise ValueError("break_start_time debe ser anterior a break_end_time")
            if self.break_start_time < self.open_time or self.break_end_time > self.close_time:
                raise ValueError("El descanso debe estar dentro del horario de atención")
        return self


class WorkingHoursReplace(BaseModel):
    """Reemplazo completo del horario semanal."""
    working_hours: list[WorkingHoursItem] = Field(..., min_length=1)

    @field_validator("working_hours")
    @classmethod
    def unique_days(cls, v: list[WorkingHoursItem]) -> list[WorkingHoursItem]:
        days = [item.day for item in v]
        if len(days) != len(set(days)):
            raise ValueError("Cada día puede aparecer una sola vez")
        return v


class WorkingHoursResponse(BaseModel):
    id: UUID
    clinic_id: UUID
    day: DayOfWeek
    open_time: time
    close_time: time
    slot_duration_minutes: int
    break_start_time: time | None = None
    break_end_time: time | None = None

    model_config = {"from_attributes": True}

    @field_serializer("open_time", "close_time", "break_start_time", "break_end_time")
    def _hhmm(self, value: time | None) -> str | None:
        return value.strftime("%H:%M") if value is not None else None


class WorkingHoursReplaceResponse(BaseModel):
    message: str = "Horario guardado"
    count: int
    working_hours: list[WorkingHoursResponse]
