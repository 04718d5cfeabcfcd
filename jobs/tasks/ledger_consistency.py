"""Commission ledger consistency check task."""

import dramatiq
from loguru import logger

from app.services.counter_service import CounterService
from jobs.async_runner import run_async, task_session_maker


@dramatiq.actor(max_retries=1, time_limit=300_000)  # 5 min timeout
def check_ledger_consistency() -> None:
    """Log paid commissions whose shares do not sum to the sale amount."""
    logger.info("Starting ledger consistency check...")

    try:
        mismatches = run_async(_check_ledger_consistency_async())
        if mismatches:
            logger.error(f"Ledger check found {len(mismatches)} split mismatches")
        else:
            logger.info("Ledger consistency check passed")

    except Exception as e:
        logger.exception(f"Ledger consistency check failed: {e}")


async def _check_ledger_consistency_async() -> list[int]:
    """Async implementation of the ledger check."""
    async with task_session_maker() as session_maker:
        async with session_maker() as session:
            return await CounterService(session).check_ledger_consistency()
