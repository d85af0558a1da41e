"""
Modelos de Inventario: Proveedores, Artículos y Kardex de movimientos.

Insumos de la clínica (materiales, instrumental, medicamentos) con
stock mínimo/máximo. Todo cambio de stock deja un StockMovement con el
stock anterior y el resultante.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dental_marketplace.database import Base


# ── Enums ─────────────────────────────────────────────


class InventoryCategory(str, enum.Enum):
    """Categoría del artículo."""
    MEDICATION = "MEDICATION"
    EQUIPMENT = "EQUIPMENT"
    SUPPLIES = "SUPPLIES"
    MATERIALS = "MATERIALS"
    INSTRUMENTS = "INSTRUMENTS"
    CONSUMABLES = "CONSUMABLES"


class StockStatus(str, enum.Enum):
    """Estado derivado del stock actual frente al mínimo."""
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class StockMovementType(str, enum.Enum):
    """Tipo de movimiento de stock."""
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


# ── Supplier ──────────────────────────────────────────


class Supplier(Base):
    __tablename__ = "suppliers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(200))
    contact_email: Mapped[str | None] = mapped_column(String(255))
    contact_phone: Mapped[str | None] = mapped_column(String(30))
    address: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("clinic_id", "name", name="uq_supplier_clinic_name"),
        Index("idx_supplier_clinic", "clinic_id"),
    )

    def __repr__(self) -> str:
        return f"<Supplier {self.name}>"


# ── InventoryItem ─────────────────────────────────────


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False
    )
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("suppliers.id", ondelete="SET NULL")
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[InventoryCategory] = mapped_column(
        Enum(InventoryCategory), nullable=False
    )
    sku: Mapped[str | None] = mapped_column(
        String(50), comment="Código interno del artículo"
    )
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    minimum_stock: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Stock mínimo para alerta"
    )
    maximum_stock: Mapped[int | None] = mapped_column(
        Integer, comment="Stock máximo sugerido"
    )
    unit: Mapped[str] = mapped_column(
        String(30), nullable=False, default="unidad",
        comment="Unidad de medida (caja, unidad, ml...)"
    )
    unit_cost: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    expiry_date: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relaciones
    supplier: Mapped["Supplier | None"] = relationship("Supplier")
    movements: Mapped[list["StockMovement"]] = relationship(
        "StockMovement", back_populates="item",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_item_clinic", "clinic_id"),
        Index("idx_item_clinic_category", "clinic_id", "category"),
        CheckConstraint("current_stock >= 0", name="ck_item_stock_non_negative"),
        CheckConstraint("minimum_stock >= 0", name="ck_item_minimum_non_negative"),
    )

    @property
    def status(self) -> StockStatus:
        if self.current_stock <= 0:
            return StockStatus.OUT_OF_STOCK
        if self.current_stock <= self.minimum_stock:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    def __repr__(self) -> str:
        return f"<InventoryItem {self.name} stock={self.current_stock}>"


# ── StockMovement (Kardex) ────────────────────────────


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    movement_type: Mapped[StockMovementType] = mapped_column(
        Enum(StockMovementType), nullable=False
    )
    quantity: Mapped[int] = mapped_column(
        Integer, nullable=False,
        comment="Unidades movidas (siempre positivo)"
    )
    reason: Mapped[str | None] = mapped_column(Text)
    stock_before: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relaciones
    item: Mapped["InventoryItem"] = relationship("InventoryItem", back_populates="movements")

    __table_args__ = (
        Index("idx_movement_clinic_date", "clinic_id", "created_at"),
        Index("idx_movement_item", "item_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.movement_type.value} {self.quantity} "
            f"({self.stock_before}→{self.stock_after})>"
        )
