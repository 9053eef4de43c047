import secrets
import time

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import (
    LocationKind,
    MovementKind,
    ReferenceType,
    TransferStatus,
)
from pos_backend.core.exceptions import AppException, InsufficientStockError
from pos_backend.models.base.mixins import utcnow
from pos_backend.models.inventory.stock_transfer_models import StockTransfer, StockTransferItem
from pos_backend.schemas.inventory.stock_transfer_schemas import (
    StockTransferCreate,
    StockTransferItemOut,
    StockTransferListData,
    StockTransferOut,
)
from pos_backend.services.inventory import balance_store
from pos_backend.services.inventory.reference_resolver import resolve_location, resolve_product
from pos_backend.services.inventory.stock_mutator import apply_stock_movement
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.decimal_utils import line_quantity, to_quantity
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)


def _single_endpoint(warehouse_id: int | None, store_id: int | None, side: str) -> tuple[LocationKind, int]:
    if (warehouse_id is None) == (store_id is None):
        raise AppException(
            400,
            f"Exactly one {side} warehouse or store is required",
            ErrorCode.STOCK_TRANSFER_INVALID_LOCATION,
        )
    if warehouse_id is not None:
        return LocationKind.WAREHOUSE, warehouse_id
    return LocationKind.STORE, store_id


def generate_transfer_number(source: tuple[LocationKind, int], destination: tuple[LocationKind, int]) -> str:
    return (
        f"ST-{int(time.time())}-{source[0].value[0].upper()}{source[1]}"
        f"{destination[0].value[0].upper()}{destination[1]}-{secrets.token_hex(2).upper()}"
    )


# =====================================================
# MAPPER
# =====================================================
def _map_transfer(t: StockTransfer) -> StockTransferOut:
    from_kind, from_id = t.source
    to_kind, to_id = t.destination
    return StockTransferOut(
        id=t.id,
        transfer_number=t.transfer_number,
        from_location_type=from_kind,
        from_location_id=from_id,
        to_location_type=to_kind,
        to_location_id=to_id,
        status=t.status,
        requested_by=t.requested_by_id,
        approved_by=t.approved_by_id,
        shipped_at=t.shipped_at,
        received_at=t.received_at,
        notes=t.notes,
        created_at=t.created_at,
        items=[
            StockTransferItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product.name if i.product else None,
                product_variant_id=i.product_variant_id,
                quantity_requested=i.quantity_requested,
                quantity_shipped=i.quantity_shipped,
                quantity_received=i.quantity_received,
            )
            for i in t.items
        ],
    )


async def _load_transfer(db: AsyncSession, transfer_id: int, *, lock: bool = False) -> StockTransfer:
    stmt = (
        select(StockTransfer)
        .where(StockTransfer.id == transfer_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        stmt = stmt.with_for_update()

    transfer = await db.scalar(stmt)
    if not transfer:
        raise AppException(404, "Stock transfer not found", ErrorCode.STOCK_TRANSFER_NOT_FOUND)
    return transfer


# =====================================================
# CREATE
# =====================================================
async def create_stock_transfer(
    db: AsyncSession,
    payload: StockTransferCreate,
    user,
) -> StockTransferOut:
    source = _single_endpoint(payload.from_warehouse_id, payload.from_store_id, "source")
    destination = _single_endpoint(payload.to_warehouse_id, payload.to_store_id, "destination")

    if source == destination:
        raise AppException(
            400,
            "Source and destination locations must differ",
            ErrorCode.STOCK_TRANSFER_INVALID_LOCATION,
        )

    try:
        await resolve_location(db, *source)
        await resolve_location(db, *destination)

        transfer = StockTransfer(
            transfer_number=generate_transfer_number(source, destination),
            from_warehouse_id=payload.from_warehouse_id,
            from_store_id=payload.from_store_id,
            to_warehouse_id=payload.to_warehouse_id,
            to_store_id=payload.to_store_id,
            status=TransferStatus.PENDING.value,
            requested_by_id=user.id,
            notes=payload.notes,
        )

        for line in payload.items:
            await resolve_product(db, line.product_id, line.product_variant_id)
            quantity = line_quantity(line.quantity)

            # Advisory only; execution re-checks under row lock
            balance = await balance_store.find_balance(
                db,
                product_id=line.product_id,
                variant_id=line.product_variant_id,
                location_kind=source[0],
                location_id=source[1],
            )
            available = to_quantity(balance.quantity) if balance else to_quantity(0)
            if available < quantity:
                raise InsufficientStockError(
                    product_id=line.product_id,
                    variant_id=line.product_variant_id,
                    location_kind=source[0].value,
                    location_id=source[1],
                    available=available,
                    requested=quantity,
                )

            transfer.items.append(
                StockTransferItem(
                    product_id=line.product_id,
                    product_variant_id=line.product_variant_id,
                    quantity_requested=quantity,
                    quantity_shipped=to_quantity(0),
                    quantity_received=to_quantity(0),
                    notes=line.notes,
                )
            )

        db.add(transfer)
        await db.flush()

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.CREATE_STOCK_TRANSFER,
            target_name=transfer.transfer_number,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return await get_stock_transfer(db, transfer.id)


# =====================================================
# EXECUTE
# =====================================================
async def execute_stock_transfer(db: AsyncSession, transfer_id: int, user) -> StockTransferOut:
    """Move every item from source to destination in one transaction.

    Each item yields an ``out`` at the source and an ``in`` at the
    destination, both referencing the transfer.
    """
    try:
        transfer = await _load_transfer(db, transfer_id, lock=True)

        if transfer.status != TransferStatus.PENDING.value:
            raise AppException(
                400,
                f"Cannot execute a transfer in status '{transfer.status}'",
                ErrorCode.STOCK_TRANSFER_INVALID_STATUS,
            )

        source = transfer.source
        destination = transfer.destination
        await resolve_location(db, *source)
        await resolve_location(db, *destination)

        for item in transfer.items:
            await apply_stock_movement(
                db,
                kind=MovementKind.OUT,
                product_id=item.product_id,
                variant_id=item.product_variant_id,
                location_kind=source[0],
                location_id=source[1],
                quantity=item.quantity_requested,
                reference_type=ReferenceType.TRANSFER,
                reference_id=transfer.id,
                actor=user,
                notes=f"Transfer {transfer.transfer_number} out",
            )
            await apply_stock_movement(
                db,
                kind=MovementKind.IN,
                product_id=item.product_id,
                variant_id=item.product_variant_id,
                location_kind=destination[0],
                location_id=destination[1],
                quantity=item.quantity_requested,
                reference_type=ReferenceType.TRANSFER,
                reference_id=transfer.id,
                actor=user,
                notes=f"Transfer {transfer.transfer_number} in",
            )
            item.quantity_shipped = item.quantity_requested
            item.quantity_received = item.quantity_requested

        now = utcnow()
        transfer.status = TransferStatus.COMPLETED.value
        transfer.approved_by_id = user.id
        transfer.shipped_at = now
        transfer.received_at = now

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.EXECUTE_STOCK_TRANSFER,
            target_name=transfer.transfer_number,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Stock transfer executed",
        extra={"transfer_id": transfer_id, "lines": len(transfer.items)},
    )
    return await get_stock_transfer(db, transfer_id)


# =====================================================
# CANCEL
# =====================================================
async def cancel_stock_transfer(db: AsyncSession, transfer_id: int, user) -> StockTransferOut:
    try:
        transfer = await _load_transfer(db, transfer_id, lock=True)

        if transfer.status != TransferStatus.PENDING.value:
            raise AppException(
                400,
                "Only pending transfers can be cancelled",
                ErrorCode.STOCK_TRANSFER_INVALID_STATUS,
            )

        transfer.status = TransferStatus.CANCELLED.value
        transfer.approved_by_id = user.id

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.CANCEL_STOCK_TRANSFER,
            target_name=transfer.transfer_number,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return await get_stock_transfer(db, transfer_id)


# =====================================================
# READ
# =====================================================
async def get_stock_transfer(db: AsyncSession, transfer_id: int) -> StockTransferOut:
    return _map_transfer(await _load_transfer(db, transfer_id))


async def list_stock_transfers(
    db: AsyncSession,
    *,
    status: TransferStatus | None = None,
    warehouse_id: int | None = None,
    store_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
) -> StockTransferListData:
    filters = []
    if status:
        filters.append(StockTransfer.status == TransferStatus(status).value)
    if warehouse_id:
        filters.append(
            or_(
                StockTransfer.from_warehouse_id == warehouse_id,
                StockTransfer.to_warehouse_id == warehouse_id,
            )
        )
    if store_id:
        filters.append(
            or_(
                StockTransfer.from_store_id == store_id,
                StockTransfer.to_store_id == store_id,
            )
        )

    total = await db.scalar(
        select(func.count()).select_from(StockTransfer).where(*filters)
    )
    result = await db.execute(
        select(StockTransfer)
        .where(*filters)
        .order_by(StockTransfer.created_at.desc(), StockTransfer.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    return StockTransferListData(
        total=total or 0,
        items=[_map_transfer(t) for t in result.scalars().all()],
    )
