from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import MovementKind, ReferenceType
from pos_backend.core.exceptions import AppException
from pos_backend.schemas.inventory.inventory_transaction_schemas import (
    AdjustInventoryOut,
    AdjustInventoryRequest,
)
from pos_backend.services.inventory.reference_resolver import resolve_location, resolve_product
from pos_backend.services.inventory.stock_mutator import apply_stock_movement
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)


async def adjust_inventory(
    db: AsyncSession,
    payload: AdjustInventoryRequest,
    user,
) -> AdjustInventoryOut:
    """Set a balance to a counted quantity (damage, shrinkage, recount)."""
    reason = (payload.reason or "").strip()
    if not reason:
        raise AppException(
            400,
            "Adjustment reason is required",
            ErrorCode.ADJUSTMENT_REASON_REQUIRED,
        )

    try:
        await resolve_location(db, payload.location_type, payload.location_id)
        await resolve_product(db, payload.product_id, payload.product_variant_id, require_active=False)

        result = await apply_stock_movement(
            db,
            kind=MovementKind.ADJUSTMENT,
            product_id=payload.product_id,
            variant_id=payload.product_variant_id,
            location_kind=payload.location_type,
            location_id=payload.location_id,
            quantity=payload.quantity,
            reference_type=ReferenceType.ADJUSTMENT,
            reference_id=None,
            actor=user,
            notes=reason,
        )

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.ADJUST_INVENTORY,
            product_id=payload.product_id,
            location_type=payload.location_type.value,
            location_id=payload.location_id,
            old_value=result.previous_quantity,
            new_value=result.new_quantity,
            reason=reason,
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return AdjustInventoryOut(
        transaction_id=result.entry.id,
        location_type=payload.location_type,
        location_id=payload.location_id,
        product_id=payload.product_id,
        product_variant_id=payload.product_variant_id,
        previous_quantity=result.previous_quantity,
        new_quantity=result.new_quantity,
        difference=result.delta,
        reason=reason,
    )
