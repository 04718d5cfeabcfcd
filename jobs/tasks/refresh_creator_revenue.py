"""Creator revenue cache refresh task."""

import dramatiq
from loguru import logger

from app.services.counter_service import CounterService
from jobs.async_runner import run_async, task_session_maker


@dramatiq.actor(max_retries=3, time_limit=300_000)  # 5 min timeout
def refresh_creator_revenue(creator_id: int | None = None) -> None:
    """
    Overwrite cached Creator revenue fields from the commission ledger.

    Args:
        creator_id: Refresh one creator (all active creators if None)
    """
    logger.info("Starting creator revenue refresh...")

    try:
        refreshed = run_async(_refresh_creator_revenue_async(creator_id))
        logger.info(f"Creator revenue refresh complete: {refreshed} creators")

    except Exception as e:
        logger.exception(f"Creator revenue refresh failed: {e}")
        raise


async def _refresh_creator_revenue_async(creator_id: int | None) -> int:
    """Async implementation of revenue refresh."""
    async with task_session_maker() as session_maker:
        async with session_maker() as session:
            return await CounterService(session).refresh_creator_revenue_cache(creator_id)
