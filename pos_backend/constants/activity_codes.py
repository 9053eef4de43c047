from enum import Enum


class ActivityCode(str, Enum):
    # AUTH
    LOGIN = "LOGIN"

    # MASTERS
    CREATE_PRODUCT = "CREATE_PRODUCT"
    CREATE_PRODUCT_VARIANT = "CREATE_PRODUCT_VARIANT"
    CREATE_SUPPLIER = "CREATE_SUPPLIER"
    CREATE_CUSTOMER = "CREATE_CUSTOMER"
    CREATE_WAREHOUSE = "CREATE_WAREHOUSE"
    CREATE_STORE = "CREATE_STORE"
    CREATE_DISCOUNT = "CREATE_DISCOUNT"
    DEACTIVATE_DISCOUNT = "DEACTIVATE_DISCOUNT"

    # INVENTORY
    INVENTORY_MOVEMENT = "INVENTORY_MOVEMENT"
    UPDATE_INVENTORY_SETTINGS = "UPDATE_INVENTORY_SETTINGS"
    ADJUST_INVENTORY = "ADJUST_INVENTORY"

    # SALES
    CREATE_SALE = "CREATE_SALE"

    # PURCHASE ORDERS
    CREATE_PURCHASE_ORDER = "CREATE_PURCHASE_ORDER"
    RECEIVE_PURCHASE_ORDER = "RECEIVE_PURCHASE_ORDER"
    CANCEL_PURCHASE_ORDER = "CANCEL_PURCHASE_ORDER"

    # STOCK TRANSFERS
    CREATE_STOCK_TRANSFER = "CREATE_STOCK_TRANSFER"
    EXECUTE_STOCK_TRANSFER = "EXECUTE_STOCK_TRANSFER"
    CANCEL_STOCK_TRANSFER = "CANCEL_STOCK_TRANSFER"
