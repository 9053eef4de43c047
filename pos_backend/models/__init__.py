# Masters
from pos_backend.models.masters.product_models import Product, ProductVariant
from pos_backend.models.masters.supplier_models import Supplier
from pos_backend.models.masters.customer_models import Customer
from pos_backend.models.masters.location_models import Warehouse, Store
from pos_backend.models.masters.discount_models import Discount, DiscountUsage

# Users and audit
from pos_backend.models.users.user_models import User
from pos_backend.models.support.activity_models import UserActivity

# Inventory
from pos_backend.models.inventory.inventory_balance_models import WarehouseInventory, StoreInventory
from pos_backend.models.inventory.inventory_transaction_models import InventoryTransaction
from pos_backend.models.inventory.purchase_order_models import PurchaseOrder, PurchaseOrderItem
from pos_backend.models.inventory.stock_transfer_models import StockTransfer, StockTransferItem

# Sales
from pos_backend.models.sales.sale_models import Sale, SaleItem, SalePayment
