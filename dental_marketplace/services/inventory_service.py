"""
Lógica de negocio para el inventario de la clínica.
Artículos, proveedores y kardex: cada cambio de stock registra un
StockMovement con el stock anterior y el resultante.
"""

from uuid import UUID

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from dental_marketplace.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from dental_marketplace.models.inventory import (
    InventoryCategory,
    InventoryItem,
    StockMovement,
    StockMovementType,
    StockStatus,
    Supplier,
)
from dental_marketplace.schemas.inventory import (
    InventoryAdjustResponse,
    InventoryItemCreate,
    InventoryItemDetail,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryListResponse,
    InventorySummary,
    StockAdjustment,
    StockMovementListResponse,
    StockMovementResponse,
    SupplierCreate,
    SupplierResponse,
)

INITIAL_STOCK_REASON = "Stock inicial"
MANUAL_UPDATE_REASON = "Actualización manual de stock"
RECENT_MOVEMENTS = 10

_OUT = InventoryItem.current_stock <= 0
_LOW = and_(InventoryItem.current_stock > 0, InventoryItem.current_stock <= InventoryItem.minimum_stock)
_IN = and_(InventoryItem.current_stock > 0, InventoryItem.current_stock > InventoryItem.minimum_stock)
STATUS_FILTERS = {
    StockStatus.OUT_OF_STOCK: _OUT,
    StockStatus.LOW_STOCK: _LOW,
    StockStatus.IN_STOCK: _IN,
}


def _movement_to_response(movement: StockMovement, item_name: str) -> StockMovementResponse:
    return StockMovementResponse(
        id=movement.id,
        item_id=movement.item_id,
        item_name=item_name,
        movement_type=movement.movement_type,
        quantity=movement.quantity,
        reason=movement.reason,
        stock_before=movement.stock_before,
        stock_after=movement.stock_after,
        created_by=movement.created_by,
        created_at=movement.created_at,
    )


# ── Proveedores ──────────────────────────────────────


async def list_suppliers(db: AsyncSession, clinic_id: UUID) -> list[SupplierResponse]:
    result = await db.execute(
        select(Supplier).where(Supplier.clinic_id == clinic_id).order_by(Supplier.name)
    )
    return [SupplierResponse.model_validate(s) for s in result.scalars().all()]


async def create_supplier(
    db: AsyncSession,
    clinic_id: UUID,
    data: SupplierCreate,
) -> SupplierResponse:
    name = data.name.strip()
    existing = await db.execute(
        select(Supplier.id).where(Supplier.clinic_id == clinic_id, Supplier.name == name)
    )
    if existing.scalar_one_or_none():
        raise ConflictException(f"Ya existe un proveedor con el nombre '{name}'")

    supplier = Supplier(
        clinic_id=clinic_id,
        name=name,
        contact_person=data.contact_person,
        contact_email=data.contact_email,
        contact_phone=data.contact_phone,
        address=data.address,
    )
    db.add(supplier)
    await db.flush()
    await db.refresh(supplier)
    return SupplierResponse.model_validate(supplier)


async def _ensure_supplier(db: AsyncSession, clinic_id: UUID, supplier_id: UUID) -> None:
    result = await db.execute(
        select(Supplier.id).where(Supplier.id == supplier_id, Supplier.clinic_id == clinic_id)
    )
    if not result.scalar_one_or_none():
        raise NotFoundException("Proveedor")


# ── Artículos ────────────────────────────────────────


async def _get_item_or_404(db: AsyncSession, clinic_id: UUID, item_id: UUID) -> InventoryItem:
    """Carga el artículo con su proveedor; refresca la instancia si ya estaba en sesión."""
    result = await db.execute(
        select(InventoryItem)
        .options(joinedload(InventoryItem.supplier))
        .where(InventoryItem.id == item_id, InventoryItem.clinic_id == clinic_id)
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundException("Artículo")
    return item


async def _record_movement(
    db: AsyncSession,
    item: InventoryItem,
    *,
    user_id: UUID | None,
    movement_type: StockMovementType,
    quantity: int,
    stock_before: int,
    reason: str | None,
) -> StockMovement:
    movement = StockMovement(
        clinic_id=item.clinic_id,
        item_id=item.id,
        created_by=user_id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
        stock_before=stock_before,
        stock_after=item.current_stock,
    )
    db.add(movement)
    await db.flush()
    await db.refresh(movement)
    return movement


async def _summary(db: AsyncSession, clinic_id: UUID) -> InventorySummary:
    result = await db.execute(
        select(
            func.count(InventoryItem.id),
            func.coalesce(func.sum(case((_LOW, 1), else_=0)), 0),
            func.coalesce(func.sum(case((_OUT, 1), else_=0)), 0),
            func.coalesce(
                func.sum(InventoryItem.current_stock * func.coalesce(InventoryItem.unit_cost, 0)),
                0,
            ),
        ).where(InventoryItem.clinic_id == clinic_id)
    )
    total, low, out, value = result.one()
    return InventorySummary(
        total_items=total,
        low_stock=low,
        out_of_stock=out,
        stock_value=float(value),
    )


async def list_items(
    db: AsyncSession,
    clinic_id: UUID,
    *,
    category: InventoryCategory | None = None,
    status: StockStatus | None = None,
    search: str | None = None,
) -> InventoryListResponse:
    query = (
        select(InventoryItem)
        .options(joinedload(InventoryItem.supplier))
        .where(InventoryItem.clinic_id == clinic_id)
    )
    if category:
        query = query.where(InventoryItem.category == category)
    if status:
        query = query.where(STATUS_FILTERS[status])
    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(InventoryItem.name.ilike(term), InventoryItem.sku.ilike(term)))

    result = await db.execute(query.order_by(InventoryItem.name))
    items = [InventoryItemResponse.model_validate(i) for i in result.scalars().all()]
    return InventoryListResponse(items=items, summary=await _summary(db, clinic_id))


async def get_item(db: AsyncSession, clinic_id: UUID, item_id: UUID) -> InventoryItemDetail:
    """Artículo con sus últimos movimientos."""
    item = await _get_item_or_404(db, clinic_id, item_id)
    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.item_id == item.id)
        .order_by(StockMovement.created_at.desc())
        .limit(RECENT_MOVEMENTS)
    )
    return InventoryItemDetail(
        item=InventoryItemResponse.model_validate(item),
        movements=[_movement_to_response(m, item.name) for m in result.scalars().all()],
    )


async def create_item(
    db: AsyncSession,
    clinic_id: UUID,
    user_id: UUID | None,
    data: InventoryItemCreate,
) -> InventoryItemResponse:
    if data.supplier_id:
        await _ensure_supplier(db, clinic_id, data.supplier_id)

    item = InventoryItem(clinic_id=clinic_id, **data.model_dump())
    item.name = data.name.strip()
    db.add(item)
    await db.flush()

    if item.current_stock > 0:
        await _record_movement(
            db,
            item,
            user_id=user_id,
            movement_type=StockMovementType.IN,
            quantity=item.current_stock,
            stock_before=0,
            reason=INITIAL_STOCK_REASON,
        )

    item = await _get_item_or_404(db, clinic_id, item.id)
    return InventoryItemResponse.model_validate(item)


async def update_item(
    db: AsyncSession,
    clinic_id: UUID,
    item_id: UUID,
    user_id: UUID | None,
    data: InventoryItemUpdate,
) -> InventoryItemResponse:
    """
    Edición parcial. Si cambia current_stock se registra un movimiento
    IN u OUT por la diferencia.
    """
    item = await _get_item_or_404(db, clinic_id, item_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("supplier_id"):
        await _ensure_supplier(db, clinic_id, update_data["supplier_id"])

    stock_before = item.current_stock
    for key, value in update_data.items():
        if value is None and key in ("name", "category", "current_stock", "minimum_stock", "unit"):
            continue
        setattr(item, key, value)

    if item.maximum_stock is not None and item.maximum_stock < item.minimum_stock:
        raise BadRequestException("maximum_stock no puede ser menor que minimum_stock")

    await db.flush()
    if item.current_stock != stock_before:
        delta = item.current_stock - stock_before
        await _record_movement(
            db,
            item,
            user_id=user_id,
            movement_type=StockMovementType.IN if delta > 0 else StockMovementType.OUT,
            quantity=abs(delta),
            stock_before=stock_before,
            reason=MANUAL_UPDATE_REASON,
        )

    item = await _get_item_or_404(db, clinic_id, item_id)
    return InventoryItemResponse.model_validate(item)


async def delete_item(db: AsyncSession, clinic_id: UUID, item_id: UUID) -> None:
    """Elimina el artículo junto con su kardex."""
    item = await _get_item_or_404(db, clinic_id, item_id)
    await db.execute(delete(StockMovement).where(StockMovement.item_id == item.id))
    await db.delete(item)
    await db.flush()


async def adjust_stock(
    db: AsyncSession,
    clinic_id: UUID,
    item_id: UUID,
    user_id: UUID | None,
    data: StockAdjustment,
) -> InventoryAdjustResponse:
    """
    IN suma la cantidad, OUT la resta sin bajar de cero y ADJUSTMENT
    fija el stock. El movimiento guarda las unidades realmente movidas.
    """
    item = await _get_item_or_404(db, clinic_id, item_id)
    stock_before = item.current_stock

    if data.type == StockMovementType.IN:
        item.current_stock = stock_before + data.quantity
    elif data.type == StockMovementType.OUT:
        item.current_stock = max(0, stock_before - data.quantity)
    else:
        item.current_stock = data.quantity

    await db.flush()
    movement = await _record_movement(
        db,
        item,
        user_id=user_id,
        movement_type=data.type,
        quantity=abs(item.current_stock - stock_before),
        stock_before=stock_before,
        reason=data.reason,
    )

    item = await _get_item_or_404(db, clinic_id, item_id)
    return InventoryAdjustResponse(
        item=InventoryItemResponse.model_validate(item),
        movement=_movement_to_response(movement, item.name),
    )


# ── Kardex ───────────────────────────────────────────


async def list_movements(
    db: AsyncSession,
    clinic_id: UUID,
    *,
    item_id: UUID | None = None,
    movement_type: StockMovementType | None = None,
    limit: int = 50,
    offset: int = 0,
) -> StockMovementListResponse:
    filters = [StockMovement.clinic_id == clinic_id]
    if item_id:
        filters.append(StockMovement.item_id == item_id)
    if movement_type:
        filters.append(StockMovement.movement_type == movement_type)

    total = (
        await db.execute(select(func.count(StockMovement.id)).where(*filters))
    ).scalar() or 0

    result = await db.execute(
        select(StockMovement, InventoryItem.name)
        .join(InventoryItem, InventoryItem.id == StockMovement.item_id)
        .where(*filters)
        .order_by(StockMovement.created_at.desc(), StockMovement.id)
        .limit(limit)
        .offset(offset)
    )
    return StockMovementListResponse(
        items=[_movement_to_response(m, name) for m, name in result.all()],
        total=total,
        limit=limit,
        offset=offset,
    )
