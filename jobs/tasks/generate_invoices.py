"""
Monthly platform fee invoicing task.

Scheduled for the 1st of each month; bills the previous month.
"""

import dramatiq
from loguru import logger

from app.services.invoice import InvoiceGenerator, InvoiceRunResult
from app.utils.redis_utils import get_redis_client
from jobs.async_runner import run_async, task_session_maker
from jobs.locks import JobLock


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min timeout
def generate_monthly_invoices() -> None:
    """
    Invoice every eligible creator for the previous month.

    Not retried by the broker: a rerun is safe but should be an
    operator decision after reading the run summary.
    """
    logger.info("Starting monthly invoice generation...")

    try:
        result = run_async(_generate_monthly_invoices_async())
        logger.info(f"Monthly invoice generation complete: {result.summary()}")

    except Exception as e:
        logger.exception(f"Monthly invoice generation failed: {e}")


async def _generate_monthly_invoices_async() -> InvoiceRunResult:
    """Async implementation of monthly invoicing."""
    redis_client = await get_redis_client()
    try:
        async with JobLock(redis_client).lock("generate_monthly_invoices", timeout=1800):
            async with task_session_maker() as session_maker:
                generator = InvoiceGenerator(session_maker=session_maker)
                result = await generator.generate_monthly_invoices()
    finally:
        await redis_client.aclose()

    for entry in result.errors:
        logger.error(
            f"Creator {entry.creator_id} ({entry.company_name}) not invoiced: {entry.error}"
        )
    return result
