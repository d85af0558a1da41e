"""
Regla única de solapamiento de intervalos.

Dos intervalos [a_start, a_end) y [b_start, b_end) se solapan si:
    a_start < b_end AND a_end > b_start
Intervalos que solo se tocan en un borde (a_end == b_start) NO se solapan.

La misma regla se usa al generar slots (en Python) y al validar reservas
(en SQL), para que ambos caminos nunca discrepen.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement


def as_utc(value: datetime) -> datetime:
    """Normaliza a UTC; un datetime naive se interpreta como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def intervals_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Solapamiento estricto entre dos intervalos semiabiertos."""
    return as_utc(start_a) < as_utc(end_b) and as_utc(end_a) > as_utc(start_b)


def overlap_clause(start_column, end_column, start: datetime, end: datetime) -> ColumnElement[bool]:
    """Versión SQL de `intervals_overlap` para filtrar filas existentes."""
    return and_(start_column < as_utc(end), end_column > as_utc(start))


def local_to_utc(target_date: date, wall_time: time, tz: tzinfo) -> datetime:
    """Ancla una hora local de la clínica en una fecha y la lleva a UTC."""
    return datetime.combine(target_date, wall_time, tzinfo=tz).astimezone(timezone.utc)


def day_bounds(target_date: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Inicio y fin (exclusivo) del día calendario local, en UTC."""
    start = local_to_utc(target_date, time.min, tz)
    end = local_to_utc(target_date + timedelta(days=1), time.min, tz)
    return start, end
