import secrets
import time

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import (
    LocationKind,
    MovementKind,
    PurchaseOrderStatus,
    ReferenceType,
    RECEIVABLE_PO_STATUSES,
)
from pos_backend.core.exceptions import AppException, InvalidReferenceError
from pos_backend.models.base.mixins import utcnow
from pos_backend.models.inventory.purchase_order_models import PurchaseOrder, PurchaseOrderItem
from pos_backend.models.masters.supplier_models import Supplier
from pos_backend.schemas.inventory.purchase_order_schemas import (
    PurchaseOrderCreate,
    PurchaseOrderItemOut,
    PurchaseOrderListData,
    PurchaseOrderOut,
    ReceivePurchaseOrderRequest,
)
from pos_backend.services.inventory.reference_resolver import resolve_location, resolve_product
from pos_backend.services.inventory.stock_mutator import apply_stock_movement
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.decimal_utils import line_quantity, to_money, to_quantity
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": PurchaseOrder.created_at,
    "order_date": PurchaseOrder.order_date,
    "status": PurchaseOrder.status,
    "total_amount": PurchaseOrder.total_amount,
}


def generate_purchase_number(warehouse_id: int) -> str:
    return f"PO-{int(time.time())}-{warehouse_id}-{secrets.token_hex(2).upper()}"


# =====================================================
# MAPPER
# =====================================================
def _map_purchase_order(po: PurchaseOrder) -> PurchaseOrderOut:
    return PurchaseOrderOut(
        id=po.id,
        purchase_number=po.purchase_number,
        supplier_id=po.supplier_id,
        supplier_name=po.supplier_name,
        supplier_contact=po.supplier_contact,
        warehouse_id=po.warehouse_id,
        status=po.status,
        order_date=po.order_date,
        expected_date=po.expected_date,
        received_date=po.received_date,
        total_amount=po.total_amount,
        notes=po.notes,
        created_by=po.created_by_id,
        created_at=po.created_at,
        items=[
            PurchaseOrderItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product.name if i.product else None,
                product_variant_id=i.product_variant_id,
                quantity_ordered=i.quantity_ordered,
                quantity_received=i.quantity_received,
                unit_cost=i.unit_cost,
                total_cost=i.total_cost,
            )
            for i in po.items
        ],
    )


async def _load_purchase_order(db: AsyncSession, po_id: int, *, lock: bool = False) -> PurchaseOrder:
    stmt = (
        select(PurchaseOrder)
        .where(PurchaseOrder.id == po_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        stmt = stmt.with_for_update(of=PurchaseOrder)

    po = await db.scalar(stmt)
    if not po:
        raise AppException(404, "Purchase order not found", ErrorCode.PURCHASE_ORDER_NOT_FOUND)
    return po


# =====================================================
# CREATE
# =====================================================
async def create_purchase_order(
    db: AsyncSession,
    payload: PurchaseOrderCreate,
    user,
) -> PurchaseOrderOut:
    try:
        if payload.supplier_id is not None:
            supplier = await db.scalar(
                select(Supplier).where(
                    Supplier.id == payload.supplier_id,
                    Supplier.is_deleted.is_(False),
                )
            )
            if not supplier:
                raise InvalidReferenceError(
                    f"Supplier {payload.supplier_id} not found",
                    ErrorCode.PURCHASE_ORDER_INVALID_SUPPLIER,
                )
            supplier_name = supplier.name
            supplier_contact = payload.supplier_contact or supplier.contact_person or supplier.phone
        else:
            supplier_name = (payload.supplier_name or "").strip()
            supplier_contact = payload.supplier_contact
            if not supplier_name:
                raise AppException(
                    400,
                    "Either supplier_id or supplier_name is required",
                    ErrorCode.PURCHASE_ORDER_INVALID_SUPPLIER,
                )

        await resolve_location(db, LocationKind.WAREHOUSE, payload.warehouse_id)

        po = PurchaseOrder(
            purchase_number=generate_purchase_number(payload.warehouse_id),
            supplier_id=payload.supplier_id,
            supplier_name=supplier_name,
            supplier_contact=supplier_contact,
            warehouse_id=payload.warehouse_id,
            status=PurchaseOrderStatus.PENDING.value,
            expected_date=payload.expected_date,
            notes=payload.notes,
            created_by_id=user.id,
            updated_by_id=user.id,
        )

        total = to_money(0)
        for line in payload.items:
            await resolve_product(db, line.product_id, line.product_variant_id)
            quantity = line_quantity(line.quantity_ordered, field="quantity_ordered")
            line_total = to_money(quantity * line.unit_cost)
            total += line_total
            po.items.append(
                PurchaseOrderItem(
                    product_id=line.product_id,
                    product_variant_id=line.product_variant_id,
                    quantity_ordered=quantity,
                    quantity_received=to_quantity(0),
                    unit_cost=to_money(line.unit_cost),
                    total_cost=line_total,
                )
            )
        po.total_amount = total

        db.add(po)
        await db.flush()

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.CREATE_PURCHASE_ORDER,
            target_name=po.purchase_number,
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Purchase order created",
        extra={"purchase_order_id": po.id, "warehouse_id": po.warehouse_id, "lines": len(payload.items)},
    )
    return await get_purchase_order(db, po.id)


# =====================================================
# RECEIVE
# =====================================================
async def receive_purchase_order(
    db: AsyncSession,
    po_id: int,
    payload: ReceivePurchaseOrderRequest,
    user,
) -> PurchaseOrderOut:
    """Book received goods into the PO's warehouse.

    Every line is an ``in`` movement referencing the PO. Lines may arrive
    across several receipts; a line can never exceed what was ordered.
    """
    try:
        po = await _load_purchase_order(db, po_id, lock=True)

        if PurchaseOrderStatus(po.status) not in RECEIVABLE_PO_STATUSES:
            raise AppException(
                400,
                f"Cannot receive a purchase order in status '{po.status}'",
                ErrorCode.PURCHASE_ORDER_INVALID_STATUS,
            )

        items_by_id = {i.id: i for i in po.items}

        for line in payload.items:
            item = items_by_id.get(line.item_id)
            if item is None:
                raise AppException(
                    400,
                    f"Item {line.item_id} does not belong to purchase order {po.purchase_number}",
                    ErrorCode.PURCHASE_ORDER_INVALID_ITEM,
                )

            quantity = line_quantity(line.quantity_received, field="quantity_received")
            outstanding = to_quantity(item.quantity_ordered) - to_quantity(item.quantity_received)
            if quantity > outstanding:
                raise AppException(
                    400,
                    f"Cannot receive {quantity} for item {item.id}; only {outstanding} outstanding",
                    ErrorCode.PURCHASE_ORDER_OVER_RECEIPT,
                    details={"item_id": item.id, "outstanding": str(outstanding), "requested": str(quantity)},
                )

            await apply_stock_movement(
                db,
                kind=MovementKind.IN,
                product_id=item.product_id,
                variant_id=item.product_variant_id,
                location_kind=LocationKind.WAREHOUSE,
                location_id=po.warehouse_id,
                quantity=quantity,
                reference_type=ReferenceType.PURCHASE,
                reference_id=po.id,
                actor=user,
                unit_cost=item.unit_cost,
                notes=payload.notes or f"Received against {po.purchase_number}",
            )
            item.quantity_received = to_quantity(item.quantity_received) + quantity

        if all(i.quantity_received >= i.quantity_ordered for i in po.items):
            po.status = PurchaseOrderStatus.RECEIVED.value
            po.received_date = utcnow()
        elif any(i.quantity_received > 0 for i in po.items):
            po.status = PurchaseOrderStatus.PARTIAL.value
        po.updated_by_id = user.id

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.RECEIVE_PURCHASE_ORDER,
            line_count=len(payload.items),
            target_name=po.purchase_number,
            status=po.status,
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Purchase order received",
        extra={"purchase_order_id": po.id, "status": po.status, "lines": len(payload.items)},
    )
    return await get_purchase_order(db, po_id)


# =====================================================
# CANCEL
# =====================================================
async def cancel_purchase_order(db: AsyncSession, po_id: int, user) -> PurchaseOrderOut:
    try:
        po = await _load_purchase_order(db, po_id, lock=True)

        received_any = any(i.quantity_received > 0 for i in po.items)
        if po.status not in (PurchaseOrderStatus.DRAFT.value, PurchaseOrderStatus.PENDING.value) or received_any:
            raise AppException(
                400,
                "Only purchase orders with nothing received can be cancelled",
                ErrorCode.PURCHASE_ORDER_INVALID_STATUS,
            )

        po.status = PurchaseOrderStatus.CANCELLED.value
        po.updated_by_id = user.id

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.CANCEL_PURCHASE_ORDER,
            target_name=po.purchase_number,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return await get_purchase_order(db, po_id)


# =====================================================
# READ
# =====================================================
async def get_purchase_order(db: AsyncSession, po_id: int) -> PurchaseOrderOut:
    return _map_purchase_order(await _load_purchase_order(db, po_id))


async def list_purchase_orders(
    db: AsyncSession,
    *,
    status: PurchaseOrderStatus | None = None,
    warehouse_id: int | None = None,
    supplier_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    order: str = "desc",
) -> PurchaseOrderListData:
    filters = []
    if status:
        filters.append(PurchaseOrder.status == PurchaseOrderStatus(status).value)
    if warehouse_id:
        filters.append(PurchaseOrder.warehouse_id == warehouse_id)
    if supplier_id:
        filters.append(PurchaseOrder.supplier_id == supplier_id)

    sort_col = ALLOWED_SORT_FIELDS.get(sort_by, PurchaseOrder.created_at)
    sort_expr = sort_col.asc() if order == "asc" else sort_col.desc()

    total = await db.scalar(
        select(func.count()).select_from(PurchaseOrder).where(*filters)
    )

    result = await db.execute(
        select(PurchaseOrder)
        .where(*filters)
        .order_by(sort_expr, PurchaseOrder.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    return PurchaseOrderListData(
        total=total or 0,
        items=[_map_purchase_order(po) for po in result.scalars().all()],
    )
