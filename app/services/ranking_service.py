"""
Ranking service.

Ordinal positions for a member: global earnings rank, global
referral rank and community (same creator) referral rank.
Rankings decorate dashboards; a failure yields empty ranks unless the
caller asks for transient errors so it can retry them.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import EARNINGS_RANK_TOLERANCE
from app.repositories.commission_repository import CommissionRepository
from app.repositories.member_repository import MemberRepository
from app.services.base_service import BaseService
from app.utils.exceptions import MemberNotFoundError, is_transient
from app.utils.money import round_money


@dataclass(frozen=True)
class MemberRankings:
    """Member ranks (1 = first). None when ranks could not be computed."""

    global_earnings_rank: int | None = None
    global_referrals_rank: int | None = None
    community_rank: int | None = None


class RankingService(BaseService):
    """Member ranking queries."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ranking service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def get_global_earnings_rank(self, member_id: int) -> int:
        """
        Rank by lifetime paid earnings across all creators.

        A competitor is ahead only if their total reaches the subject's
        total rounded to cents plus one cent, so totals within a cent
        never outrank each other.

        Args:
            member_id: Member ID

        Returns:
            1 + number of other members ahead
        """
        earnings = round_money(
            await self.commission_repo.sum_member_earnings(member_id)
        )
        ahead = await self.commission_repo.count_members_earning_at_least(
            earnings + EARNINGS_RANK_TOLERANCE, exclude_member_id=member_id
        )
        return ahead + 1

    async def get_member_rankings(
        self, member_id: int, creator_id: int, raise_transient: bool = False
    ) -> MemberRankings:
        """
        Compute all three ranks for a member.

        Args:
            member_id: Member ID
            creator_id: Member's creator (scope of the community rank)
            raise_transient: Re-raise transient store errors instead of
                degrading, for callers that retry

        Returns:
            MemberRankings; all fields None on any other error
        """
        try:
            member = await self.member_repo.get_by_id(member_id)
            if member is None:
                raise MemberNotFoundError(member_id)

            earnings_rank = await self.get_global_earnings_rank(member_id)
            referrals_ahead = await self.member_repo.count_with_more_referrals(
                member.total_referred
            )
            community_ahead = await self.member_repo.count_with_more_referrals(
                member.total_referred, creator_id=creator_id
            )
        except Exception as e:
            if raise_transient and is_transient(e):
                raise
            self.logger.warning(
                "Failed to compute rankings for member {} (creator {}): {}",
                member_id,
                creator_id,
                e,
            )
            return MemberRankings()

        return MemberRankings(
            global_earnings_rank=earnings_rank,
            global_referrals_rank=referrals_ahead + 1,
            community_rank=community_ahead + 1,
        )
