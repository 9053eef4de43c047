import pytest
from sqlalchemy import select

from pos_backend.constants import roles
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.core.exceptions import AppException
from pos_backend.core.security import decode_access_token
from pos_backend.models import User
from pos_backend.schemas.masters.customer_schemas import CustomerCreate
from pos_backend.schemas.masters.location_schemas import LocationCreate, StoreCreate
from pos_backend.schemas.masters.product_schemas import ProductCreate, VariantCreate
from pos_backend.services.auth.auth_service import create_user, ensure_admin_user, login_user
from pos_backend.services.masters.customer_service import create_customer, list_customers
from pos_backend.services.masters.location_service import create_store, create_warehouse
from pos_backend.services.masters.product_service import add_variant, create_product, list_products


# =====================================================
# PRODUCTS
# =====================================================
async def test_create_product_and_variant(db, admin):
    product = await create_product(
        db,
        ProductCreate(sku="TEE-001", name="Basic Tee", selling_price=99000, category="apparel"),
        admin,
    )
    assert product.created_by == admin.id
    assert product.variants == []

    product = await add_variant(
        db,
        product.id,
        VariantCreate(sku="TEE-001-M-BLK", name="Basic Tee M Black", size="M", color="black"),
        admin,
    )
    assert [v.sku for v in product.variants] == ["TEE-001-M-BLK"]


async def test_sku_is_unique_across_products_and_variants(db, admin, product):
    with pytest.raises(AppException) as exc:
        await create_product(db, ProductCreate(sku=product.sku, name="Copy", selling_price=1), admin)
    assert exc.value.status_code == 409
    assert exc.value.error_code == ErrorCode.PRODUCT_SKU_EXISTS

    with pytest.raises(AppException) as exc:
        await add_variant(db, product.id, VariantCreate(sku=product.sku, name="Copy"), admin)
    assert exc.value.error_code == ErrorCode.PRODUCT_SKU_EXISTS


async def test_unknown_supplier_is_rejected(db, admin):
    with pytest.raises(AppException) as exc:
        await create_product(
            db,
            ProductCreate(sku="X-1", name="Orphan", selling_price=1, supplier_id=404),
            admin,
        )
    assert exc.value.error_code == ErrorCode.SUPPLIER_NOT_FOUND


async def test_product_search(db, product, second_product):
    found = await list_products(db, search="tea")
    assert [p.sku for p in found.items] == ["SKU-TEA"]


# =====================================================
# CUSTOMERS / LOCATIONS
# =====================================================
async def test_customer_email_is_unique(db, admin):
    customer = await create_customer(
        db,
        CustomerCreate(name="Dewi Lestari", email="dewi@example.com", phone="0812-3456-7890", is_member=True),
        admin,
    )
    assert customer.customer_code.startswith("CUS-DEW7890-")
    assert customer.loyalty_points == 0

    with pytest.raises(AppException) as exc:
        await create_customer(db, CustomerCreate(name="Dewi L", email="DEWI@example.com"), admin)
    assert exc.value.error_code == ErrorCode.CUSTOMER_EMAIL_EXISTS

    members = await list_customers(db, is_member=True)
    assert members.total == 1


async def test_location_codes_are_normalized_and_unique(db, admin):
    warehouse = await create_warehouse(db, LocationCreate(code=" wh-north ", name="North DC"), admin)
    assert warehouse.code == "WH-NORTH"

    store = await create_store(db, StoreCreate(code="st-mall", name="Mall Store", warehouse_id=warehouse.id), admin)
    assert store.warehouse_id == warehouse.id

    with pytest.raises(AppException) as exc:
        await create_warehouse(db, LocationCreate(code="WH-NORTH", name="Duplicate"), admin)
    assert exc.value.error_code == ErrorCode.LOCATION_CODE_EXISTS


# =====================================================
# AUTH
# =====================================================
async def test_login_issues_token_with_store(db, store):
    await create_user(db, username="kasir@pos.test", password="pw-123", role=roles.CASHIER, store_id=store.id)
    await db.commit()

    token = await login_user(db, "kasir@pos.test", "pw-123")
    assert token.role == roles.CASHIER
    assert token.store_id == store.id
    assert decode_access_token(token.access_token)["sub"] == "kasir@pos.test"

    user = await db.scalar(select(User).where(User.username == "kasir@pos.test"))
    assert user.last_login is not None


async def test_login_rejects_bad_password(db, admin):
    with pytest.raises(AppException) as exc:
        await login_user(db, admin.username, "wrong")
    assert exc.value.status_code == 401


async def test_unknown_role_is_rejected(db):
    with pytest.raises(AppException):
        await create_user(db, username="x@pos.test", password="pw", role="superuser")


async def test_ensure_admin_user_is_idempotent(db):
    await ensure_admin_user(db, "root@pos.test", "pw")
    await ensure_admin_user(db, "root@pos.test", "other")

    users = (await db.scalars(select(User).where(User.username == "root@pos.test"))).all()
    assert len(users) == 1
    assert users[0].role == roles.ADMIN
