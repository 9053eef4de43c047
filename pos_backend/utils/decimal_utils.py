# pos_backend/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from pos_backend.constants.error_codes import ErrorCode
from pos_backend.core.exceptions import AppException

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.001")

# Numeric(14, 3) leaves 11 integer digits
MAX_QUANTITY = Decimal("99999999999.999")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_quantity(value) -> Decimal:
    """Normalise a stock quantity to the 3-decimal precision the balance tables store."""
    if isinstance(value, bool):
        raise ValueError("Quantity must be numeric")
    try:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return value.quantize(QTY_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid quantity: {value!r}")


def line_quantity(value, *, field: str = "quantity") -> Decimal:
    """to_quantity for request lines: must stay positive and fit the column after rounding."""
    try:
        quantity = to_quantity(value)
    except ValueError as e:
        raise AppException(400, str(e), ErrorCode.VALIDATION_ERROR, details={"field": field})

    if quantity <= 0 or quantity > MAX_QUANTITY:
        raise AppException(
            400,
            f"{field} must be between 0.001 and {MAX_QUANTITY}",
            ErrorCode.VALIDATION_ERROR,
            details={"field": field, "value": str(value)},
        )
    return quantity
