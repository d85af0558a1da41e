"""
Tests de la regla de solapamiento y de las conversiones de hora.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from dental_marketplace.scheduling.overlap import (
    as_utc,
    day_bounds,
    intervals_overlap,
    local_to_utc,
)


def t(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 1, hour, minute, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((t(10), t(11)), (t(10, 30), t(11, 30)), True),   # cruce parcial
        ((t(10), t(12)), (t(10, 30), t(11)), True),        # contenido
        ((t(10), t(11)), (t(10), t(11)), True),            # idéntico
        ((t(10), t(11)), (t(11), t(12)), False),           # se tocan
        ((t(11), t(12)), (t(10), t(11)), False),           # se tocan (inverso)
        ((t(9), t(10)), (t(11), t(12)), False),            # separados
    ],
)
def test_intervals_overlap(a, b, expected):
    assert intervals_overlap(*a, *b) is expected
    assert intervals_overlap(*b, *a) is expected


def test_overlap_compares_across_timezones():
    kl = ZoneInfo("Asia/Kuala_Lumpur")
    local = datetime(2030, 1, 1, 18, 0, tzinfo=kl)  # 10:00 UTC
    assert intervals_overlap(local, local + timedelta(minutes=30), t(10, 15), t(11))


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2030, 1, 1, 10, 0)
    assert as_utc(naive) == t(10)
    assert as_utc(naive).tzinfo == timezone.utc


def test_local_to_utc():
    kl = ZoneInfo("Asia/Kuala_Lumpur")
    assert local_to_utc(date(2030, 1, 1), time(9, 0), kl) == datetime(
        2030, 1, 1, 1, 0, tzinfo=timezone.utc
    )


def test_day_bounds_cover_the_local_day():
    kl = ZoneInfo("Asia/Kuala_Lumpur")
    start, end = day_bounds(date(2030, 1, 2), kl)

    assert start == datetime(2030, 1, 1, 16, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)
