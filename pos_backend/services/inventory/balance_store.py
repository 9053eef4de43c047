"""Per-(product, variant, location) stock balances.

Warehouse and store balances live in two tables with the same shape. Callers
address them through a ``LocationKind`` and never touch the tables directly.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import raiseload

from pos_backend.constants.inventory import LocationKind
from pos_backend.models.inventory.inventory_balance_models import (
    BalanceMixin,
    StoreInventory,
    WarehouseInventory,
)
from pos_backend.models.base.mixins import utcnow
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)

BALANCE_MODELS = {
    LocationKind.WAREHOUSE: WarehouseInventory,
    LocationKind.STORE: StoreInventory,
}


def balance_model_for(kind: LocationKind | str) -> type[BalanceMixin]:
    return BALANCE_MODELS[LocationKind(kind)]


def _key_filters(model, product_id: int, variant_id: int | None, location_id: int):
    filters = [
        model.product_id == product_id,
        getattr(model, model.location_column) == location_id,
    ]
    if variant_id is None:
        filters.append(model.product_variant_id.is_(None))
    else:
        filters.append(model.product_variant_id == variant_id)
    return filters


async def find_balance(
    db: AsyncSession,
    *,
    product_id: int,
    variant_id: int | None,
    location_kind: LocationKind,
    location_id: int,
    lock: bool = False,
):
    model = balance_model_for(location_kind)
    stmt = (
        select(model)
        .options(raiseload("*"))
        .where(*_key_filters(model, product_id, variant_id, location_id))
    )
    if lock:
        stmt = stmt.with_for_update()
    return await db.scalar(stmt)


async def get_or_create(
    db: AsyncSession,
    *,
    product_id: int,
    variant_id: int | None,
    location_kind: LocationKind,
    location_id: int,
    lock: bool = True,
):
    """Return the balance for the key, inserting a zero row if none exists.

    The row is locked ``FOR UPDATE`` until the caller's transaction ends. A
    concurrent insert of the same key loses on the unique index; the loser's
    SAVEPOINT is rolled back and the winner's row is re-read under lock.
    """
    key = dict(
        product_id=product_id,
        variant_id=variant_id,
        location_kind=location_kind,
        location_id=location_id,
    )

    balance = await find_balance(db, **key, lock=lock)
    if balance is not None:
        return balance

    model = balance_model_for(location_kind)
    balance = model(
        product_id=product_id,
        product_variant_id=variant_id,
        quantity=Decimal("0"),
        reserved_quantity=Decimal("0"),
        **{model.location_column: location_id},
    )

    try:
        async with db.begin_nested():
            db.add(balance)
    except IntegrityError:
        logger.info(
            "Concurrent balance creation, re-reading winner",
            extra={"product_id": product_id, "location_type": LocationKind(location_kind).value, "location_id": location_id},
        )
        balance = await find_balance(db, **key, lock=lock)
        if balance is None:
            raise
    return balance


def set_quantity(balance: BalanceMixin, new_quantity: Decimal) -> None:
    if new_quantity < 0:
        raise ValueError(f"Balance quantity cannot be negative: {new_quantity}")
    balance.quantity = new_quantity
    balance.last_updated = utcnow()
