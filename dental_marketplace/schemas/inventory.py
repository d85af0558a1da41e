"""
Schemas Pydantic para el módulo de Inventario.
Artículos, ajustes de stock, kardex y proveedores.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from dental_marketplace.models.inventory import (
    InventoryCategory,
    StockMovementType,
    StockStatus,
)


# ── Proveedores ──────────────────────────────────────


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_person: str | None = Field(None, max_length=200)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=30)
    address: str | None = None


class SupplierResponse(BaseModel):
    id: UUID
    name: str
    contact_person: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Artículos ────────────────────────────────────────


class _StockLimits(BaseModel):
    @model_validator(mode="after")
    def check_limits(self):
        minimum = getattr(self, "minimum_stock", None)
        maximum = getattr(self, "maximum_stock", None)
        if minimum is not None and maximum is not None and maximum < minimum:
            raise ValueError("maximum_stock no puede ser menor que minimum_stock")
        return self


class InventoryItemCreate(_StockLimits):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: InventoryCategory
    sku: str | None = Field(None, max_length=50)
    current_stock: int = Field(0, ge=0, description="Stock inicial")
    minimum_stock: int = Field(0, ge=0)
    maximum_stock: int | None = Field(None, ge=0)
    unit: str = Field("unidad", min_length=1, max_length=30)
    unit_cost: Decimal | None = Field(None, ge=0)
    unit_price: Decimal | None = Field(None, ge=0)
    expiry_date: date | None = None
    supplier_id: UUID | None = None


class InventoryItemUpdate(_StockLimits):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: InventoryCategory | None = None
    sku: str | None = Field(None, max_length=50)
    current_stock: int | None = Field(None, ge=0)
    minimum_stock: int | None = Field(None, ge=0)
    maximum_stock: int | None = Field(None, ge=0)
    unit: str | None = Field(None, min_length=1, max_length=30)
    unit_cost: Decimal | None = Field(None, ge=0)
    unit_price: Decimal | None = Field(None, ge=0)
    expiry_date: date | None = None
    supplier_id: UUID | None = None


class InventoryItemResponse(BaseModel):
    id: UUID
    clinic_id: UUID
    name: str
    description: str | None = None
    category: InventoryCategory
    sku: str | None = None
    current_stock: int
    minimum_stock: int
    maximum_stock: int | None = None
    unit: str
    unit_cost: float | None = None
    unit_price: float | None = None
    expiry_date: date | None = None
    status: StockStatus
    supplier: SupplierResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Movimientos ──────────────────────────────────────


class StockAdjustment(BaseModel):
    """
    IN suma, OUT resta (sin bajar de cero) y ADJUSTMENT fija el stock
    al valor indicado, por ejemplo tras un conteo físico.
    """
    type: StockMovementType
    quantity: int = Field(..., ge=0)
    reason: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_quantity(self):
        if self.type != StockMovementType.ADJUSTMENT and self.quantity < 1:
            raise ValueError("quantity debe ser al menos 1")
        return self


class StockMovementResponse(BaseModel):
    id: UUID
    item_id: UUID
    item_name: str
    movement_type: StockMovementType
    quantity: int
    reason: str | None = None
    stock_before: int
    stock_after: int
    created_by: UUID | None = None
    created_at: datetime


class StockMovementListResponse(BaseModel):
    items: list[StockMovementResponse]
    total: int
    limit: int
    offset: int


class InventoryItemDetail(BaseModel):
    item: InventoryItemResponse
    movements: list[StockMovementResponse]


class InventoryAdjustResponse(BaseModel):
    item: InventoryItemResponse
    movement: StockMovementResponse


class InventorySummary(BaseModel):
    total_items: int
    low_stock: int
    out_of_stock: int
    stock_value: float


class InventoryListResponse(BaseModel):
    items: list[InventoryItemResponse]
    summary: InventorySummary
