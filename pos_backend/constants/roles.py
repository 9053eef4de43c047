# pos_backend/constants/roles.py

ADMIN = "admin"
MANAGER = "manager"
INVENTORY = "inventory"
CASHIER = "cashier"

# Roles that are not pinned to a single store
ALL_STORES_ROLES = {ADMIN, MANAGER}

STOCK_ROLES = [ADMIN, MANAGER, INVENTORY]
SALES_ROLES = [ADMIN, MANAGER, CASHIER]
