# pos_backend/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- STOCK ENGINE ----------------
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    INVALID_MOVEMENT = "INVALID_MOVEMENT"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"

    # ---------------- MASTERS ----------------
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_SKU_EXISTS = "PRODUCT_SKU_EXISTS"
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    SUPPLIER_NOT_FOUND = "SUPPLIER_NOT_FOUND"
    SUPPLIER_NAME_EXISTS = "SUPPLIER_NAME_EXISTS"
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
    CUSTOMER_EMAIL_EXISTS = "CUSTOMER_EMAIL_EXISTS"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    LOCATION_CODE_EXISTS = "LOCATION_CODE_EXISTS"
    LOCATION_INACTIVE = "LOCATION_INACTIVE"

    # ---------------- INVENTORY ----------------
    BALANCE_NOT_FOUND = "BALANCE_NOT_FOUND"
    ADJUSTMENT_REASON_REQUIRED = "ADJUSTMENT_REASON_REQUIRED"

    # ---------------- SALES ----------------
    SALE_NOT_FOUND = "SALE_NOT_FOUND"
    SALE_EMPTY_ITEMS = "SALE_EMPTY_ITEMS"
    SALE_UNDERPAID = "SALE_UNDERPAID"
    SALE_STORE_FORBIDDEN = "SALE_STORE_FORBIDDEN"
    LOYALTY_POINTS_INVALID = "LOYALTY_POINTS_INVALID"

    # ---------------- DISCOUNTS ----------------
    DISCOUNT_NOT_FOUND = "DISCOUNT_NOT_FOUND"
    DISCOUNT_CODE_EXISTS = "DISCOUNT_CODE_EXISTS"
    DISCOUNT_INVALID_VALUE = "DISCOUNT_INVALID_VALUE"
    DISCOUNT_INVALID_RANGE = "DISCOUNT_INVALID_RANGE"
    DISCOUNT_NOT_APPLICABLE = "DISCOUNT_NOT_APPLICABLE"

    # ---------------- PURCHASE ORDERS ----------------
    PURCHASE_ORDER_NOT_FOUND = "PURCHASE_ORDER_NOT_FOUND"
    PURCHASE_ORDER_INVALID_STATUS = "PURCHASE_ORDER_INVALID_STATUS"
    PURCHASE_ORDER_INVALID_SUPPLIER = "PURCHASE_ORDER_INVALID_SUPPLIER"
    PURCHASE_ORDER_INVALID_ITEM = "PURCHASE_ORDER_INVALID_ITEM"
    PURCHASE_ORDER_OVER_RECEIPT = "PURCHASE_ORDER_OVER_RECEIPT"

    # ---------------- STOCK TRANSFERS ----------------
    STOCK_TRANSFER_NOT_FOUND = "STOCK_TRANSFER_NOT_FOUND"
    STOCK_TRANSFER_INVALID_LOCATION = "STOCK_TRANSFER_INVALID_LOCATION"
    STOCK_TRANSFER_INVALID_STATUS = "STOCK_TRANSFER_INVALID_STATUS"
