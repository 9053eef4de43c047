from decimal import Decimal

from fastapi import HTTPException
from pos_backend.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


# =====================================================
# STOCK ENGINE
# =====================================================
class InsufficientStockError(AppException):
    """An `out` movement asked for more than the balance holds."""

    def __init__(
        self,
        *,
        product_id: int,
        variant_id: int | None,
        location_kind: str,
        location_id: int,
        available: Decimal,
        requested: Decimal,
    ):
        super().__init__(
            400,
            (
                f"Insufficient stock for product {product_id} at "
                f"{location_kind} {location_id}. "
                f"Available: {available}, Requested: {requested}"
            ),
            ErrorCode.INSUFFICIENT_STOCK,
            details={
                "product_id": product_id,
                "product_variant_id": variant_id,
                "location_type": location_kind,
                "location_id": location_id,
                "available": str(available),
                "requested": str(requested),
            },
        )
        self.available = available
        self.requested = requested


class InvalidReferenceError(AppException):
    """A business event points at a product/location that cannot be resolved."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_REFERENCE,
        details: dict | None = None,
        status_code: int = 400,
    ):
        super().__init__(status_code, message, error_code, details)


class InvalidMovementError(AppException):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(400, message, ErrorCode.INVALID_MOVEMENT, details)


class PersistenceError(AppException):
    def __init__(self, message: str = "Failed to persist stock movement"):
        super().__init__(500, message, ErrorCode.PERSISTENCE_FAILURE)
