from pos_backend.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- AUTH ----------------
    ActivityCode.LOGIN:
        "{actor_role} ({actor_email}) logged in",

    # ---------------- MASTERS ----------------
    ActivityCode.CREATE_PRODUCT:
        "{actor_role} ({actor_email}) created product {target_name} ({sku})",

    ActivityCode.CREATE_PRODUCT_VARIANT:
        "{actor_role} ({actor_email}) added variant {target_name} ({sku}) "
        "to product {product_id}",

    ActivityCode.CREATE_SUPPLIER:
        "{actor_role} ({actor_email}) created supplier {target_name}",

    ActivityCode.CREATE_CUSTOMER:
        "{actor_role} ({actor_email}) created customer {target_name}",

    ActivityCode.CREATE_WAREHOUSE:
        "{actor_role} ({actor_email}) created warehouse {target_name}",

    ActivityCode.CREATE_STORE:
        "{actor_role} ({actor_email}) created store {target_name}",

    ActivityCode.CREATE_DISCOUNT:
        "{actor_role} ({actor_email}) created discount {target_name} ({target_code})",

    ActivityCode.DEACTIVATE_DISCOUNT:
        "{actor_role} ({actor_email}) deactivated discount {target_name} ({target_code})",

    # ---------------- INVENTORY ----------------
    ActivityCode.INVENTORY_MOVEMENT:
        "{actor_role} ({actor_email}) recorded {movement_type} of {quantity} "
        "for product {product_id} at {location_type} {location_id} "
        "(ref: {reference_type}:{reference_id})",

    ActivityCode.UPDATE_INVENTORY_SETTINGS:
        "{actor_role} ({actor_email}) updated {location_type} inventory "
        "{target_id}: {changes}",

    ActivityCode.ADJUST_INVENTORY:
        "{actor_role} ({actor_email}) adjusted product {product_id} at "
        "{location_type} {location_id} from {old_value} to {new_value}: {reason}",

    # ---------------- SALES ----------------
    ActivityCode.CREATE_SALE:
        "{actor_role} ({actor_email}) completed sale {target_name} "
        "for {amount} at store {store_id}",

    # ---------------- PURCHASE ORDERS ----------------
    ActivityCode.CREATE_PURCHASE_ORDER:
        "{actor_role} ({actor_email}) created purchase order {target_name}",

    ActivityCode.RECEIVE_PURCHASE_ORDER:
        "{actor_role} ({actor_email}) received {line_count} line(s) on "
        "purchase order {target_name} (status: {status})",

    ActivityCode.CANCEL_PURCHASE_ORDER:
        "{actor_role} ({actor_email}) cancelled purchase order {target_name}",

    # ---------------- STOCK TRANSFERS ----------------
    ActivityCode.CREATE_STOCK_TRANSFER:
        "{actor_role} ({actor_email}) created stock transfer {target_name}",

    ActivityCode.EXECUTE_STOCK_TRANSFER:
        "{actor_role} ({actor_email}) executed stock transfer {target_name}",

    ActivityCode.CANCEL_STOCK_TRANSFER:
        "{actor_role} ({actor_email}) cancelled stock transfer {target_name}",
}
