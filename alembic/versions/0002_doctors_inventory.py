"""doctors, inventory and working hours checks

Revision ID: 0002_doctors_inventory
Revises: 0001_initial
Create Date: 2026-10-19 15:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002_doctors_inventory"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

inventory_category = sa.Enum(
    "MEDICATION", "EQUIPMENT", "SUPPLIES", "MATERIALS", "INSTRUMENTS", "CONSUMABLES",
    name="inventorycategory",
)
stock_movement_type = sa.Enum("IN", "OUT", "ADJUSTMENT", name="stockmovementtype")

WORKING_HOURS_CHECKS = {
    "ck_working_hours_open_before_close": "open_time < close_time",
    "ck_working_hours_slot_positive": "slot_duration_minutes > 0",
    "ck_working_hours_break_pair": "(break_start_time IS NULL) = (break_end_time IS NULL)",
    "ck_working_hours_break_range": (
        "break_start_time IS NULL OR ("
        "break_start_time < break_end_time "
        "AND break_start_time >= open_time "
        "AND break_end_time <= close_time)"
    ),
}


def _clinic_fk() -> sa.Column:
    return sa.Column(
        "clinic_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # ── clinic_working_hours: invariantes del horario ─
    for name, condition in WORKING_HOURS_CHECKS.items():
        op.create_check_constraint(name, "clinic_working_hours", condition)

    # ── doctors ──────────────────────────────────────
    op.create_table(
        "doctors",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _clinic_fk(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("specialization", sa.String(150), nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("experience_years", sa.Integer, nullable=False, server_default="0"),
        sa.Column("image_url", sa.String(500), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("experience_years >= 0", name="ck_doctor_experience"),
    )
    op.create_index("idx_doctor_clinic", "doctors", ["clinic_id"])

    # ── suppliers ────────────────────────────────────
    op.create_table(
        "suppliers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _clinic_fk(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("contact_person", sa.String(200), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(30), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        _created_at(),
        sa.UniqueConstraint("clinic_id", "name", name="uq_supplier_clinic_name"),
    )
    op.create_index("idx_supplier_clinic", "suppliers", ["clinic_id"])

    # ── inventory_items ──────────────────────────────
    op.create_table(
        "inventory_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _clinic_fk(),
        sa.Column(
            "supplier_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("suppliers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", inventory_category, nullable=False),
        sa.Column("sku", sa.String(50), nullable=True),
        sa.Column("current_stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("minimum_stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("maximum_stock", sa.Integer, nullable=True),
        sa.Column("unit", sa.String(30), nullable=False, server_default="unidad"),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("expiry_date", sa.Date, nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("current_stock >= 0", name="ck_item_stock_non_negative"),
        sa.CheckConstraint("minimum_stock >= 0", name="ck_item_minimum_non_negative"),
    )
    op.create_index("idx_item_clinic", "inventory_items", ["clinic_id"])
    op.create_index("idx_item_clinic_category", "inventory_items", ["clinic_id", "category"])

    # ── stock_movements ──────────────────────────────
    op.create_table(
        "stock_movements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _clinic_fk(),
        sa.Column(
            "item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("inventory_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_by",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            nullable=True,
        ),
        sa.Column("movement_type", stock_movement_type, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("stock_before", sa.Integer, nullable=False),
        sa.Column("stock_after", sa.Integer, nullable=False),
        _created_at(),
    )
    op.create_index("idx_movement_clinic_date", "stock_movements", ["clinic_id", "created_at"])
    op.create_index("idx_movement_item", "stock_movements", ["item_id"])


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("inventory_items")
    op.drop_table("suppliers")
    op.drop_table("doctors")

    for name in WORKING_HOURS_CHECKS:
        op.drop_constraint(name, "clinic_working_hours", type_="check")

    bind = op.get_bind()
    for enum_type in (stock_movement_type, inventory_category):
        enum_type.drop(bind, checkfirst=True)
