# main.py
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError

from pos_backend.core.db import init_models
from pos_backend.routers import (
    auth_router,
    product_router,
    supplier_router,
    customer_router,
    warehouse_router,
    store_router,
    discount_router,
    inventory_router,
    purchase_order_router,
    stock_transfer_router,
    sale_router,
)
from pos_backend.core.config import APP_ENV, CORS_ORIGINS, ENABLE_SCHEDULER
from pos_backend.core.scheduler import scheduler
from pos_backend.core.exceptions import AppException
from pos_backend.core.logging import setup_logging
from pos_backend.middleware.request_logging import request_logging_middleware
from pos_backend.core.error_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
)

# ------------------------------------------------------------------------------
# APP META
# ------------------------------------------------------------------------------
APP_NAME = "POS & Inventory API"
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

# ------------------------------------------------------------------------------
# LOGGING
# ------------------------------------------------------------------------------
setup_logging()
logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# LIFESPAN
# ------------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")

    if APP_ENV == "development":
        await init_models()
        logger.info("Database models initialized (development)")
    else:
        logger.info("init_models() skipped (%s)", APP_ENV)

    if APP_ENV != "production" or ENABLE_SCHEDULER:
        scheduler.start()
        logger.info("Scheduler started (%s)", APP_ENV)
    else:
        logger.info("Scheduler disabled (%s)", APP_ENV)

    yield

    logger.info("Shutting down application")
    if scheduler.running:
        scheduler.shutdown()


# ------------------------------------------------------------------------------
# APP INIT
# ------------------------------------------------------------------------------
app = FastAPI(
    title=APP_NAME,
    description="Point-of-sale and multi-location inventory API",
    version=APP_VERSION,
    docs_url="/docs" if APP_ENV != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# ------------------------------------------------------------------------------
# EXCEPTION HANDLERS
# ------------------------------------------------------------------------------
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# ------------------------------------------------------------------------------
# MIDDLEWARE
# ------------------------------------------------------------------------------
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------------------
# HEALTH CHECK
# ------------------------------------------------------------------------------
@app.get("/", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": "pos-inventory-api",
        "environment": APP_ENV,
        "version": APP_VERSION,
    }


# ------------------------------------------------------------------------------
# ROUTERS
# ------------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(product_router)
app.include_router(supplier_router)
app.include_router(customer_router)
app.include_router(warehouse_router)
app.include_router(store_router)
app.include_router(discount_router)
app.include_router(inventory_router)
app.include_router(purchase_order_router)
app.include_router(stock_transfer_router)
app.include_router(sale_router)
