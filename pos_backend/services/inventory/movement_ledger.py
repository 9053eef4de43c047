from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.models.inventory.inventory_transaction_models import InventoryTransaction


async def append_movement(
    db: AsyncSession,
    *,
    kind: MovementKind,
    product_id: int,
    variant_id: int | None,
    location_kind: LocationKind,
    location_id: int,
    quantity: Decimal,
    reference_type: ReferenceType,
    reference_id: int | None,
    created_by_id: int,
    unit_cost: Decimal | None = None,
    notes: str | None = None,
) -> InventoryTransaction:
    location_kind = LocationKind(location_kind)
    entry = InventoryTransaction(
        product_id=product_id,
        product_variant_id=variant_id,
        location_type=location_kind.value,
        location_id=location_id,
        warehouse_id=location_id if location_kind is LocationKind.WAREHOUSE else None,
        store_id=location_id if location_kind is LocationKind.STORE else None,
        transaction_type=MovementKind(kind).value,
        quantity=quantity,
        unit_cost=unit_cost,
        reference_type=ReferenceType(reference_type).value,
        reference_id=reference_id,
        notes=notes,
        created_by_id=created_by_id,
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_movements(
    db: AsyncSession,
    *,
    product_id: int | None = None,
    location_kind: LocationKind | None = None,
    location_id: int | None = None,
    transaction_type: MovementKind | None = None,
    reference_type: ReferenceType | None = None,
    reference_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
):
    filters = []

    if product_id:
        filters.append(InventoryTransaction.product_id == product_id)
    if location_kind:
        filters.append(InventoryTransaction.location_type == LocationKind(location_kind).value)
    if location_id:
        filters.append(InventoryTransaction.location_id == location_id)
    if transaction_type:
        filters.append(InventoryTransaction.transaction_type == MovementKind(transaction_type).value)
    if reference_type:
        filters.append(InventoryTransaction.reference_type == ReferenceType(reference_type).value)
    if reference_id:
        filters.append(InventoryTransaction.reference_id == reference_id)
    if date_from:
        filters.append(InventoryTransaction.created_at >= date_from)
    if date_to:
        filters.append(InventoryTransaction.created_at <= date_to)

    total = await db.scalar(
        select(func.count()).select_from(InventoryTransaction).where(*filters)
    )

    result = await db.execute(
        select(InventoryTransaction)
        .where(*filters)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    return {"total": total or 0, "items": result.scalars().all()}
