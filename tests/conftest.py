import os

# Settings are read at import time
os.environ.setdefault("APP_ENV", "development")
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_ACCESS_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOYALTY_MIN_PURCHASE", "10000")

from decimal import Decimal

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pos_backend.core.db import Base, configure_sqlite_engine
from pos_backend.core.security import hash_password
from pos_backend.constants import roles
from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.models import (
    Customer,
    InventoryTransaction,
    Product,
    Store,
    User,
    Warehouse,
)
from pos_backend.services.inventory.stock_mutator import apply_stock_movement


def make_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite_engine(engine)
    return engine


def make_session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


# =====================================================
# DATABASE
# =====================================================
@pytest.fixture
async def engine():
    engine = make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    async with make_session_factory(engine)() as session:
        yield session


# =====================================================
# USERS
# =====================================================
async def create_test_user(db, username, role, store_id=None, password="secret"):
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def admin(db):
    return await create_test_user(db, "admin@pos.test", roles.ADMIN)


# =====================================================
# LOCATIONS / PRODUCTS
# =====================================================
@pytest.fixture
async def warehouse(db, admin):
    wh = Warehouse(code="WH-MAIN", name="Main Warehouse", created_by_id=admin.id)
    db.add(wh)
    await db.commit()
    return wh


@pytest.fixture
async def store(db, admin, warehouse):
    st = Store(code="ST-01", name="Downtown Store", warehouse_id=warehouse.id, created_by_id=admin.id)
    db.add(st)
    await db.commit()
    return st


@pytest.fixture
async def other_store(db, admin):
    st = Store(code="ST-02", name="Airport Store", created_by_id=admin.id)
    db.add(st)
    await db.commit()
    return st


async def create_test_product(db, sku, name, *, price="10000", min_stock="5", trackable=True):
    product = Product(
        sku=sku,
        name=name,
        selling_price=Decimal(price),
        cost_price=Decimal("0"),
        min_stock=Decimal(min_stock),
        is_trackable=trackable,
    )
    db.add(product)
    await db.commit()
    return product


@pytest.fixture
async def product(db):
    return await create_test_product(db, "SKU-COFFEE", "Coffee Beans 1kg")


@pytest.fixture
async def second_product(db):
    return await create_test_product(db, "SKU-TEA", "Green Tea 500g", price="5000")


@pytest.fixture
async def service_product(db):
    return await create_test_product(db, "SKU-GIFTWRAP", "Gift Wrapping", price="2000", trackable=False)


@pytest.fixture
async def member(db):
    customer = Customer(customer_code="CUST-0001", name="Rina Halim", is_member=True, loyalty_points=3)
    db.add(customer)
    await db.commit()
    return customer


# =====================================================
# HELPERS
# =====================================================
async def stock_in(db, actor, product_id, location_kind, location_id, quantity, variant_id=None):
    """Seed a balance through the normal movement path and commit."""
    result = await apply_stock_movement(
        db,
        kind=MovementKind.IN,
        product_id=product_id,
        variant_id=variant_id,
        location_kind=location_kind,
        location_id=location_id,
        quantity=quantity,
        reference_type=ReferenceType.PURCHASE,
        reference_id=None,
        actor=actor,
    )
    await db.commit()
    return result


async def ledger_count(db, **filters) -> int:
    conditions = [getattr(InventoryTransaction, k) == v for k, v in filters.items()]
    return await db.scalar(
        select(func.count()).select_from(InventoryTransaction).where(*conditions)
    )


@pytest.fixture
def seed_store_stock(db, admin, store):
    async def _seed(product_id, quantity, variant_id=None):
        return await stock_in(db, admin, product_id, LocationKind.STORE, store.id, quantity, variant_id)
    return _seed


@pytest.fixture
def seed_warehouse_stock(db, admin, warehouse):
    async def _seed(product_id, quantity, variant_id=None):
        return await stock_in(db, admin, product_id, LocationKind.WAREHOUSE, warehouse.id, quantity, variant_id)
    return _seed
