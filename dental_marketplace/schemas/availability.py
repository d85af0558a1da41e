"""
Schemas de disponibilidad: slots calculados al vuelo (nunca se persisten).
"""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, field_serializer


class TimeSlot(BaseModel):
    """Un slot de tiempo de la grilla de la clínica."""
    start_time: datetime
    end_time: datetime
    available: bool = True


class WorkingHoursInfo(BaseModel):
    """Horario usado para calcular los slots del día."""
    open_time: time
    close_time: time
    slot_duration_minutes: int
    break_start_time: time | None = None
    break_end_time: time | None = None

    @field_serializer("open_time", "close_time", "break_start_time", "break_end_time")
    def _hhmm(self, value: time | None) -> str | None:
        return value.strftime("%H:%M") if value is not None else None


class AvailabilityResponse(BaseModel):
    """Respuesta de la consulta de slots de una clínica para una fecha."""
    clinic_id: UUID
    date: date
    slots: list[TimeSlot]
    booked_slots: list[TimeSlot]
    working_hours: WorkingHoursInfo | None = None
    service_duration: int | None = None
    message: str | None = None
