from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.core.exceptions import (
    InsufficientStockError,
    InvalidMovementError,
    PersistenceError,
)
from pos_backend.models.inventory.inventory_transaction_models import InventoryTransaction
from pos_backend.services.inventory import balance_store
from pos_backend.services.inventory.movement_ledger import append_movement
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.decimal_utils import to_quantity
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StockMovementResult:
    previous_quantity: Decimal
    new_quantity: Decimal
    delta: Decimal
    balance: object
    entry: InventoryTransaction


def _validate(kind: MovementKind, quantity) -> Decimal:
    try:
        amount = to_quantity(quantity)
    except ValueError as e:
        raise InvalidMovementError(str(e))

    if kind is MovementKind.ADJUSTMENT:
        if amount < 0:
            raise InvalidMovementError(
                "Adjustment target quantity cannot be negative",
                details={"quantity": str(amount)},
            )
    elif amount <= 0:
        raise InvalidMovementError(
            f"Movement quantity for '{kind.value}' must be greater than zero",
            details={"quantity": str(amount)},
        )
    return amount


async def apply_stock_movement(
    db: AsyncSession,
    *,
    kind: MovementKind,
    product_id: int,
    variant_id: int | None,
    location_kind: LocationKind,
    location_id: int,
    quantity,
    reference_type: ReferenceType,
    reference_id: int | None,
    actor,
    unit_cost: Decimal | None = None,
    notes: str | None = None,
) -> StockMovementResult:
    """Change one balance and record it in the ledger.

    ``quantity`` is a magnitude for ``in``/``out`` and the absolute target for
    ``adjustment``. Runs inside the caller's transaction and never commits;
    the balance row stays locked until the caller commits or rolls back.
    """
    kind = MovementKind(kind)
    location_kind = LocationKind(location_kind)
    reference_type = ReferenceType(reference_type)
    amount = _validate(kind, quantity)

    try:
        balance = await balance_store.get_or_create(
            db,
            product_id=product_id,
            variant_id=variant_id,
            location_kind=location_kind,
            location_id=location_id,
        )
        previous = to_quantity(balance.quantity)

        if kind is MovementKind.OUT:
            if amount > previous:
                raise InsufficientStockError(
                    product_id=product_id,
                    variant_id=variant_id,
                    location_kind=location_kind.value,
                    location_id=location_id,
                    available=previous,
                    requested=amount,
                )
            new_quantity = previous - amount
            ledger_quantity = amount
        elif kind is MovementKind.IN:
            new_quantity = previous + amount
            ledger_quantity = amount
        else:
            new_quantity = amount
            ledger_quantity = new_quantity - previous

        balance_store.set_quantity(balance, new_quantity)

        entry = await append_movement(
            db,
            kind=kind,
            product_id=product_id,
            variant_id=variant_id,
            location_kind=location_kind,
            location_id=location_id,
            quantity=ledger_quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            created_by_id=actor.id,
            unit_cost=unit_cost,
            notes=notes,
        )

        await emit_activity(
            db,
            user=actor,
            code=ActivityCode.INVENTORY_MOVEMENT,
            movement_type=kind.value,
            quantity=ledger_quantity,
            product_id=product_id,
            location_type=location_kind.value,
            location_id=location_id,
            reference_type=reference_type.value,
            reference_id=reference_id if reference_id is not None else "-",
        )
    except SQLAlchemyError as e:
        logger.error(
            "Stock movement failed to persist",
            extra={
                "product_id": product_id,
                "location_type": location_kind.value,
                "location_id": location_id,
                "movement_type": kind.value,
            },
        )
        raise PersistenceError() from e

    logger.info(
        "Stock movement applied",
        extra={
            "movement_type": kind.value,
            "product_id": product_id,
            "variant_id": variant_id,
            "location_type": location_kind.value,
            "location_id": location_id,
            "previous_quantity": str(previous),
            "new_quantity": str(new_quantity),
            "reference": f"{reference_type.value}:{reference_id}",
        },
    )

    return StockMovementResult(
        previous_quantity=previous,
        new_quantity=new_quantity,
        delta=new_quantity - previous,
        balance=balance,
        entry=entry,
    )
