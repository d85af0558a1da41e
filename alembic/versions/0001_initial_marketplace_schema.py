"""initial marketplace schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum(
    "UNASSIGNED", "PATIENT", "CLINIC_OWNER", "ADMIN", name="userrole"
)
gender = sa.Enum("MALE", "FEMALE", "OTHER", name="gender")
patient_status = sa.Enum("ACTIVE", "INACTIVE", name="patientstatus")
clinic_status = sa.Enum(
    "PENDING", "APPROVED", "REJECTED", "SUSPENDED", name="clinicstatus"
)
day_of_week = sa.Enum(
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY",
    name="dayofweek",
)
service_category = sa.Enum(
    "GENERAL", "CLEANING", "ORTHODONTICS", "ENDODONTICS", "SURGERY",
    "COSMETIC", "PEDIATRIC", "OTHER",
    name="servicecategory",
)
appointment_status = sa.Enum(
    "BOOKED", "CONFIRMED", "IN_PROGRESS", "COMPLETED", "CANCELLED", "NO_SHOW",
    name="appointmentstatus",
)
payment_status = sa.Enum("PENDING", "PAID", name="paymentstatus")
notification_type = sa.Enum(
    "APPOINTMENT_REMINDER", "APPOINTMENT_CONFIRMED", "APPOINTMENT_CANCELLED",
    "APPOINTMENT_RESCHEDULED", "CLINIC_UPDATE", "SYSTEM_NOTIFICATION",
    name="notificationtype",
)

OCCUPYING = "status IN ('BOOKED', 'CONFIRMED', 'IN_PROGRESS')"


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            )
        )
    return columns


def upgrade() -> None:
    # ── users ────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="UNASSIGNED"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── patients ─────────────────────────────────────
    op.create_table(
        "patients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("ic_or_passport", sa.String(255), nullable=False),
        sa.Column("ic_or_passport_hash", sa.String(64), nullable=False),
        sa.Column("phone", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("age", sa.Integer, nullable=False),
        sa.Column("gender", gender, nullable=False),
        sa.Column("blood_group", sa.String(5), nullable=True),
        sa.Column("allergies", sa.Text, nullable=True),
        sa.Column("medical_note", sa.Text, nullable=True),
        sa.Column("status", patient_status, nullable=False, server_default="ACTIVE"),
        *_timestamps(),
    )
    op.create_index(
        "ix_patients_ic_or_passport_hash", "patients", ["ic_or_passport_hash"], unique=True
    )

    # ── clinics ──────────────────────────────────────
    op.create_table(
        "clinics",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("documents", postgresql.JSONB, nullable=True),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("status", clinic_status, nullable=False, server_default="PENDING"),
        *_timestamps(),
    )
    op.create_index("ix_clinics_name", "clinics", ["name"])
    op.create_index("ix_clinics_status", "clinics", ["status"])

    # ── clinic_working_hours ─────────────────────────
    op.create_table(
        "clinic_working_hours",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day", day_of_week, nullable=False),
        sa.Column("open_time", sa.Time, nullable=False),
        sa.Column("close_time", sa.Time, nullable=False),
        sa.Column("slot_duration_minutes", sa.Integer, nullable=False, server_default="30"),
        sa.Column("break_start_time", sa.Time, nullable=True),
        sa.Column("break_end_time", sa.Time, nullable=True),
        sa.UniqueConstraint("clinic_id", "day", name="uq_working_hours_clinic_day"),
    )

    # ── services ─────────────────────────────────────
    op.create_table(
        "services",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "clinic_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clinics.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", service_category, nullable=False, server_default="GENERAL"),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("preparation", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.UniqueConstraint("clinic_id", "name", name="uq_service_clinic_name"),
    )
    op.create_index("idx_service_clinic", "services", ["clinic_id"])
    op.create_index("idx_service_clinic_category", "services", ["clinic_id", "category"])

    # ── appointments ─────────────────────────────────
    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "clinic_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clinics.id"), nullable=False
        ),
        sa.Column(
            "service_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("services.id"), nullable=False
        ),
        sa.Column(
            "patient_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("patients.id"), nullable=False
        ),
        sa.Column(
            "user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", appointment_status, nullable=False, server_default="BOOKED"),
        sa.Column("patient_description", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("payment_status", payment_status, nullable=False, server_default="PENDING"),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("cancelled_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_appointment_clinic_date", "appointments", ["clinic_id", "start_time"])
    op.create_index("idx_appointment_user_date", "appointments", ["user_id", "start_time"])
    op.create_index("idx_appointment_status", "appointments", ["clinic_id", "status"])
    op.create_index(
        "uq_appointment_clinic_slot_active",
        "appointments",
        ["clinic_id", "start_time", "end_time"],
        unique=True,
        postgresql_where=sa.text(OCCUPYING),
    )

    # ── notifications ────────────────────────────────
    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "appointment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("appointments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "type", notification_type, nullable=False, server_default="SYSTEM_NOTIFICATION"
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(with_updated=False),
    )
    op.create_index("idx_notification_user_read", "notifications", ["user_id", "is_read"])

    # ── reviews ──────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "clinic_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clinics.id"), nullable=False
        ),
        sa.Column("rating", sa.SmallInteger, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("is_approved", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "clinic_id", name="uq_review_user_clinic"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating_range"),
    )
    op.create_index("ix_reviews_clinic_id", "reviews", ["clinic_id"])

    # ── audit_log ────────────────────────────────────
    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "clinic_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clinics.id"), nullable=True
        ),
        sa.Column(
            "user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("entity", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("old_data", postgresql.JSONB, nullable=True),
        sa.Column("new_data", postgresql.JSONB, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index("ix_audit_log_clinic_id", "audit_log", ["clinic_id"])
    op.create_index("ix_audit_log_user_id", "audit_log", ["user_id"])
    op.create_index("ix_audit_log_entity", "audit_log", ["entity"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("reviews")
    op.drop_table("notifications")
    op.drop_index("uq_appointment_clinic_slot_active", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("services")
    op.drop_table("clinic_working_hours")
    op.drop_table("clinics")
    op.drop_table("patients")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        notification_type,
        payment_status,
        appointment_status,
        service_category,
        day_of_week,
        clinic_status,
        patient_status,
        gender,
        user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
