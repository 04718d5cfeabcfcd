"""
Counter service.

The only writer of derived fields: member referral counters and
commission tiers, and the creator revenue cache. Both are projections
of the member and commission tables and are recomputed from them,
never incremented.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.commission_repository import CommissionRepository
from app.repositories.creator_repository import CreatorRepository
from app.repositories.member_repository import MemberRepository
from app.services.base_service import BaseService, transaction
from app.utils.datetime_utils import start_of_month, utc_now


class CounterService(BaseService):
    """Recomputes derived counters from source rows."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize counter service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.creator_repo = CreatorRepository(session)
        self.commission_repo = CommissionRepository(session)

    @transaction
    async def recompute_member_counters(self, creator_id: int | None = None) -> int:
        """
        Recompute total_referred, paid_referral_count and current_tier.

        Args:
            creator_id: Restrict to one community (all members if None)

        Returns:
            Number of members recomputed
        """
        updated = await self.member_repo.recompute_referral_counters(creator_id)
        self.logger.info(
            f"Recomputed referral counters for {updated} members",
            extra={"creator_id": creator_id},
        )
        return updated

    @transaction
    async def refresh_creator_revenue_cache(self, creator_id: int | None = None) -> int:
        """
        Overwrite Creator.total_revenue / monthly_revenue from commissions.

        Args:
            creator_id: Refresh one creator (all active creators if None)

        Returns:
            Number of creators refreshed
        """
        now = utc_now()
        month_start = start_of_month(now)
        creator_ids = (
            [creator_id]
            if creator_id is not None
            else await self.creator_repo.find_active_ids()
        )

        for cid in creator_ids:
            summary = await self.commission_repo.get_creator_revenue_summary(
                cid, month_start
            )
            await self.creator_repo.set_revenue_cache(
                cid,
                total_revenue=summary.total_revenue,
                monthly_revenue=summary.monthly_revenue,
                cached_at=now,
            )

        self.logger.info(f"Refreshed revenue cache for {len(creator_ids)} creators")
        return len(creator_ids)

    async def check_ledger_consistency(self) -> list[int]:
        """
        Find paid commissions whose shares do not add up to the sale.

        Returns:
            IDs of inconsistent commissions (logged, never repaired)
        """
        mismatches = await self.commission_repo.find_split_mismatches()
        for commission in mismatches:
            self.logger.error(
                f"Commission {commission.id} split mismatch: sale "
                f"${commission.sale_amount} != shares ${commission.split_total}",
                extra={"commission_id": commission.id, "creator_id": commission.creator_id},
            )
        return [commission.id for commission in mismatches]
