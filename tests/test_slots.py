"""
Tests del generador de slots (cálculo puro, sin DB).
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from dental_marketplace.models import ClinicWorkingHours, DayOfWeek
from dental_marketplace.scheduling.overlap import intervals_overlap
from dental_marketplace.scheduling.slots import generate_slots, resolve_slot_duration

DAY = date(2030, 3, 4)  # lunes
BEFORE_OPENING = datetime(2030, 3, 4, 0, 0, tzinfo=timezone.utc)


@dataclass
class Busy:
    start_time: datetime
    end_time: datetime


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 3, 4, hour, minute, tzinfo=timezone.utc)


def hours(
    open_time=time(9, 0),
    close_time=time(17, 0),
    interval=30,
    break_start=None,
    break_end=None,
) -> ClinicWorkingHours:
    return ClinicWorkingHours(
        day=DayOfWeek.MONDAY,
        open_time=open_time,
        close_time=close_time,
        slot_duration_minutes=interval,
        break_start_time=break_start,
        break_end_time=break_end,
    )


# ── Duración efectiva ────────────────────────────────


def test_service_duration_multiple_of_interval_is_used():
    assert resolve_slot_duration(30, 60) == 60
    assert resolve_slot_duration(30, 30) == 30


def test_service_duration_not_multiple_falls_back_to_interval():
    assert resolve_slot_duration(30, 45) == 30
    assert resolve_slot_duration(30, 20) == 30


def test_missing_service_duration_uses_interval():
    assert resolve_slot_duration(30, None) == 30
    assert resolve_slot_duration(15, 0) == 15


# ── Grilla ───────────────────────────────────────────


def test_full_day_with_one_booking():
    occupied = [Busy(at(10), at(10, 30))]
    result = generate_slots(DAY, hours(), 30, occupied, now=BEFORE_OPENING)

    assert len(result.available) + len(result.booked) == 16
    assert len(result.available) == 15
    assert [s.start_time for s in result.booked] == [at(10)]
    assert all(not s.available for s in result.booked)
    assert all(s.available for s in result.available)


def test_slots_stay_within_working_hours():
    result = generate_slots(DAY, hours(), 30, [], now=BEFORE_OPENING)

    assert result.available[0].start_time == at(9)
    assert result.available[-1].end_time == at(17)
    for slot in result.available:
        assert at(9) <= slot.start_time and slot.end_time <= at(17)


def test_break_window_is_skipped_without_stopping():
    result = generate_slots(
        DAY,
        hours(break_start=time(12, 0), break_end=time(13, 0)),
        30,
        [],
        now=BEFORE_OPENING,
    )
    starts = [s.start_time for s in result.available]

    assert at(11, 30) in starts
    assert at(12) not in starts
    assert at(12, 30) not in starts
    assert at(13) in starts
    for slot in result.available:
        assert not intervals_overlap(slot.start_time, slot.end_time, at(12), at(13))


def test_long_service_steps_by_clinic_interval():
    result = generate_slots(DAY, hours(), 60, [], now=BEFORE_OPENING)
    starts = [s.start_time for s in result.available]

    assert starts[:3] == [at(9), at(9, 30), at(10)]
    # El último slot de 60 min debe terminar al cierre
    assert starts[-1] == at(16)
    assert result.available[-1].end_time == at(17)


def test_long_service_marks_every_overlapping_start_as_booked():
    occupied = [Busy(at(10), at(10, 30))]
    result = generate_slots(DAY, hours(), 60, occupied, now=BEFORE_OPENING)

    assert [s.start_time for s in result.booked] == [at(9, 30), at(10)]


def test_touching_appointment_does_not_block_slot():
    occupied = [Busy(at(9), at(9, 30))]
    result = generate_slots(DAY, hours(), 30, occupied, now=BEFORE_OPENING)

    assert at(9, 30) in [s.start_time for s in result.available]


def test_generation_stops_at_first_slot_past_closing():
    result = generate_slots(
        DAY, hours(close_time=time(10, 45)), 30, [], now=BEFORE_OPENING
    )
    assert [s.start_time for s in result.available] == [at(9), at(9, 30), at(10)]


# ── Hora actual ──────────────────────────────────────


def test_past_slots_are_dropped():
    result = generate_slots(DAY, hours(), 30, [], now=at(10))
    starts = [s.start_time for s in result.available]

    assert at(10) not in starts
    assert starts[0] == at(10, 30)


def test_past_booked_slots_are_dropped_too():
    occupied = [Busy(at(9), at(9, 30))]
    result = generate_slots(DAY, hours(), 30, occupied, now=at(11))

    assert result.booked == []


def test_lead_time_pushes_first_slot():
    result = generate_slots(
        DAY, hours(), 30, [], now=at(10), lead_time=timedelta(minutes=60)
    )
    assert result.available[0].start_time == at(11, 30)


def test_day_in_the_past_returns_nothing():
    result = generate_slots(DAY, hours(), 30, [], now=at(23))
    assert result.available == [] and result.booked == []


# ── Zona horaria y determinismo ──────────────────────


def test_local_hours_are_converted_to_utc():
    kl = ZoneInfo("Asia/Kuala_Lumpur")  # UTC+8
    result = generate_slots(DAY, hours(), 30, [], now=datetime(2030, 3, 3, tzinfo=timezone.utc), tz=kl)

    first = result.available[0]
    assert first.start_time == datetime(2030, 3, 4, 1, 0, tzinfo=timezone.utc)
    assert first.start_time.astimezone(kl).time() == time(9, 0)


def test_generation_is_deterministic():
    occupied = [Busy(at(10), at(10, 30)), Busy(at(14), at(15))]
    first = generate_slots(DAY, hours(), 30, occupied, now=BEFORE_OPENING)
    second = generate_slots(DAY, hours(), 30, list(reversed(occupied)), now=BEFORE_OPENING)

    assert first == second
    starts = [s.start_time for s in first.available]
    assert starts == sorted(starts)
