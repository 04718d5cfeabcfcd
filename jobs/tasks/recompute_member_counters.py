"""Member referral counter recompute task."""

import dramatiq
from loguru import logger

from app.services.counter_service import CounterService
from jobs.async_runner import run_async, task_session_maker


@dramatiq.actor(max_retries=3, time_limit=600_000)  # 10 min timeout
def recompute_member_counters(creator_id: int | None = None) -> None:
    """
    Recompute total_referred, paid_referral_count and current_tier.

    Args:
        creator_id: Restrict to one community (all members if None)
    """
    logger.info("Starting member counter recompute...")

    try:
        updated = run_async(_recompute_member_counters_async(creator_id))
        logger.info(f"Member counter recompute complete: {updated} members")

    except Exception as e:
        logger.exception(f"Member counter recompute failed: {e}")
        raise


async def _recompute_member_counters_async(creator_id: int | None) -> int:
    """Async implementation of counter recompute."""
    async with task_session_maker() as session_maker:
        async with session_maker() as session:
            return await CounterService(session).recompute_member_counters(creator_id)
