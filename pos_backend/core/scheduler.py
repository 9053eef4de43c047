from apscheduler.schedulers.asyncio import AsyncIOScheduler

from pos_backend.core.config import LOW_STOCK_REPORT_HOUR
from pos_backend.core.db import AsyncSessionLocal
from pos_backend.services.inventory.inventory_balance_service import low_stock_report
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)

scheduler = AsyncIOScheduler()


async def log_low_stock(db) -> int:
    report = await low_stock_report(db)
    if not report.total:
        logger.info("Low stock report: all balances above threshold")
        return 0

    logger.warning(
        "Low stock report: %s balance(s) at or below threshold, %s out of stock",
        report.total,
        report.out_of_stock,
    )
    for item in report.items:
        logger.warning(
            "Low stock: %s (%s) at %s %s: %s left",
            item.product_name,
            item.sku,
            item.location_type.value,
            item.location_name or item.location_id,
            item.quantity,
        )
    return report.total


@scheduler.scheduled_job("cron", hour=LOW_STOCK_REPORT_HOUR, minute=0)
async def low_stock_report_job():
    async with AsyncSessionLocal() as db:
        await log_low_stock(db)
