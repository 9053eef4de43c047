# pos_backend/routers/__init__.py

from .auth.auth_router import router as auth_router

from .masters.product_router import router as product_router
from .masters.supplier_router import router as supplier_router
from .masters.customer_router import router as customer_router
from .masters.location_router import warehouse_router, store_router
from .masters.discount_router import router as discount_router

from .inventory.inventory_router import router as inventory_router
from .inventory.purchase_order_router import router as purchase_order_router
from .inventory.stock_transfer_router import router as stock_transfer_router

from .sales.sale_router import router as sale_router


__all__ = [
    "auth_router",

    "product_router",
    "supplier_router",
    "customer_router",
    "warehouse_router",
    "store_router",
    "discount_router",

    "inventory_router",
    "purchase_order_router",
    "stock_transfer_router",

    "sale_router",
]
