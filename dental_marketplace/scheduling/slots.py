"""
Generación de slots de una clínica para un día.

Cálculo puro (sin DB): recibe el horario del día, la duración efectiva,
las citas que ocupan agenda y la hora actual, y devuelve los slots
disponibles y los ya reservados, ordenados por hora de inicio.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import NamedTuple, Protocol, Sequence

from dental_marketplace.models.working_hours import ClinicWorkingHours
from dental_marketplace.scheduling.overlap import (
    as_utc,
    intervals_overlap,
    local_to_utc,
)
from dental_marketplace.schemas.availability import TimeSlot


class TimedInterval(Protocol):
    start_time: datetime
    end_time: datetime


class SlotPartition(NamedTuple):
    available: list[TimeSlot]
    booked: list[TimeSlot]


def resolve_slot_duration(interval_minutes: int, service_duration: int | None) -> int:
    """
    Duración efectiva de la cita.
    La del servicio solo se respeta si es múltiplo entero positivo del
    intervalo de la clínica; si no, se usa el intervalo sin error.
    """
    if (
        service_duration
        and service_duration >= interval_minutes
        and service_duration % interval_minutes == 0
    ):
        return service_duration
    return interval_minutes


def generate_slots(
    target_date: date,
    hours: ClinicWorkingHours,
    duration_minutes: int,
    occupied: Sequence[TimedInterval],
    now: datetime,
    tz: tzinfo = timezone.utc,
    lead_time: timedelta = timedelta(0),
) -> SlotPartition:
    """
    Recorre la grilla de la clínica desde la apertura:

    1. Los inicios avanzan de a `slot_duration_minutes` de la clínica,
       aunque la cita dure más (los slots pueden superponerse entre sí).
    2. Se corta al primer slot que termina después del cierre.
    3. Se saltan los slots que tocan el descanso (sin cortar el recorrido).
    4. Un slot que solapa una cita activa va a `booked`; si no, a `available`.
    5. Solo se devuelven slots que empiezan estrictamente después de `now`.
    """
    available: list[TimeSlot] = []
    booked: list[TimeSlot] = []

    open_at = local_to_utc(target_date, hours.open_time, tz)
    close_at = local_to_utc(target_date, hours.close_time, tz)
    step = timedelta(minutes=hours.slot_duration_minutes)
    length = timedelta(minutes=duration_minutes)

    break_window: tuple[datetime, datetime] | None = None
    if hours.break_start_time is not None and hours.break_end_time is not None:
        break_window = (
            local_to_utc(target_date, hours.break_start_time, tz),
            local_to_utc(target_date, hours.break_end_time, tz),
        )

    busy = [(as_utc(appt.start_time), as_utc(appt.end_time)) for appt in occupied]
    earliest = as_utc(now) + lead_time

    current = open_at
    while current < close_at:
        slot_end = current + length
        if slot_end > close_at:
            break

        if break_window and intervals_overlap(current, slot_end, *break_window):
            current += step
            continue

        if current > earliest:
            taken = any(
                intervals_overlap(current, slot_end, appt_start, appt_end)
                for appt_start, appt_end in busy
            )
            slot = TimeSlot(start_time=current, end_time=slot_end, available=not taken)
            if taken:
                booked.append(slot)
            else:
                available.append(slot)

        current += step

    return SlotPartition(available=available, booked=booked)
