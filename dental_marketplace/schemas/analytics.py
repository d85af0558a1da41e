"""
Schemas para métricas del dashboard de administración y de clínica.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class StatusCount(BaseModel):
    """Conteo agrupado por un valor (rol, estado...)."""
    status: str
    count: int


class PlatformAnalytics(BaseModel):
    """Totales de la plataforma."""
    users_by_role: list[StatusCount] = []
    clinics_by_status: list[StatusCount] = []
    appointments_by_status: list[StatusCount] = []
    total_users: int = 0
    total_clinics: int = 0
    total_appointments: int = 0
    appointments_last_30_days: int = 0
    revenue: Decimal = Decimal("0.00")
    generated_at: datetime


class TopService(BaseModel):
    service_id: UUID
    name: str
    count: int


class ClinicAnalytics(BaseModel):
    """Métricas de una clínica."""
    clinic_id: UUID
    appointments_by_status: list[StatusCount] = []
    total_appointments: int = 0
    upcoming_appointments: int = 0
    total_patients: int = 0
    revenue: Decimal = Decimal("0.00")
    top_services: list[TopService] = []
    generated_at: datetime


# ── Reporte exportable ───────────────────────────────


class ServiceRevenue(BaseModel):
    service_id: UUID
    name: str
    count: int
    revenue: Decimal


class DayCount(BaseModel):
    day: date
    count: int


class ExportSummary(BaseModel):
    total_appointments: int = 0
    completed_appointments: int = 0
    cancelled_appointments: int = 0
    no_show_appointments: int = 0
    total_revenue: Decimal = Decimal("0.00")
    average_revenue_per_appointment: Decimal = Decimal("0.00")


class ClinicAnalyticsExport(BaseModel):
    """Reporte de una clínica para los últimos `days` días."""
    report_type: str = "Reporte de métricas"
    clinic_id: UUID
    clinic_name: str
    days: int
    period_start: datetime
    period_end: datetime
    summary: ExportSummary
    top_services: list[ServiceRevenue] = []
    appointments_by_day: list[DayCount] = []
    generated_at: datetime
