"""
Modelos SQLAlchemy: exportar todos para que Alembic los detecte.
"""

from dental_marketplace.models.user import User, UserRole
from dental_marketplace.models.patient import Patient, PatientStatus, Gender
from dental_marketplace.models.clinic import Clinic, ClinicStatus
from dental_marketplace.models.working_hours import ClinicWorkingHours, DayOfWeek
from dental_marketplace.models.service import Service, ServiceCategory
from dental_marketplace.models.doctor import Doctor
from dental_marketplace.models.inventory import (
    InventoryCategory,
    InventoryItem,
    StockMovement,
    StockMovementType,
    StockStatus,
    Supplier,
)
from dental_marketplace.models.appointment import (
    Appointment,
    AppointmentStatus,
    PaymentStatus,
)
from dental_marketplace.models.notification import Notification, NotificationType
from dental_marketplace.models.review import Review
from dental_marketplace.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Patient",
    "PatientStatus",
    "Gender",
    "Clinic",
    "ClinicStatus",
    "ClinicWorkingHours",
    "DayOfWeek",
    "Service",
    "ServiceCategory",
    "Doctor",
    "Supplier",
    "InventoryCategory",
    "InventoryItem",
    "StockStatus",
    "StockMovement",
    "StockMovementType",
    "Appointment",
    "AppointmentStatus",
    "PaymentStatus",
    "Notification",
    "NotificationType",
    "Review",
    "AuditLog",
]
