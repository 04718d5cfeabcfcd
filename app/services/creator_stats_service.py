"""
Creator statistics service.

Revenue, MRR and top performer figures for a creator, recomputed
from the commission ledger and member rows. The cached revenue
fields on Creator are never read here.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Literal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import TOP_PERFORMER_CONTRIBUTION_LIMIT, ZERO
from app.config.settings import settings
from app.models.creator import Creator
from app.models.enums import MemberOrigin
from app.repositories.commission_repository import CommissionRepository
from app.repositories.creator_repository import CreatorRepository
from app.repositories.member_repository import MemberRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import start_of_month, utc_now
from app.utils.exceptions import CreatorNotFoundError
from app.utils.money import round_money, safe_percent


SortBy = Literal["earnings", "referrals"]


@dataclass
class CreatorRevenueStats:
    """Creator revenue figures computed from paid commissions."""

    creator_id: int
    total_revenue: Decimal
    monthly_revenue: Decimal
    total_creator_earnings: Decimal
    monthly_creator_earnings: Decimal
    monthly_recurring_revenue: Decimal
    referral_mrr: Decimal
    total_members: int
    organic_members: int
    referred_members: int
    total_commissions: int
    monthly_commissions: int
    average_sale_value: Decimal

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict."""
        return asdict(self)


@dataclass
class TopPerformer:
    """Leaderboard entry."""

    member_id: int
    username: str
    referral_code: str
    total_referred: int
    monthly_referred: int
    lifetime_earnings: Decimal
    monthly_earnings: Decimal
    current_tier: str


@dataclass
class TopPerformerContribution:
    """Share of revenue attributable to the top earners."""

    top_performers_earnings: Decimal
    total_revenue: Decimal
    contribution_percent: Decimal


class CreatorStatsService(BaseService):
    """Read-only creator aggregation service."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize creator stats service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.creator_repo = CreatorRepository(session)
        self.member_repo = MemberRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def get_creator(self, creator_id: int) -> Creator:
        """
        Load a creator or fail.

        Raises:
            CreatorNotFoundError: If no creator has this ID
        """
        creator = await self.creator_repo.get_by_id(creator_id)
        if creator is None:
            raise CreatorNotFoundError(creator_id)
        return creator

    async def get_creator_by_product_id(self, product_id: str) -> Creator:
        """
        Load a creator by external product ID or fail.

        Raises:
            CreatorNotFoundError: If no creator has this product ID
        """
        creator = await self.creator_repo.get_by_product_id(product_id)
        if creator is None:
            raise CreatorNotFoundError(product_id)
        return creator

    async def get_creator_by_company_id(self, company_id: str) -> Creator:
        """
        Load a creator by external company ID or fail.

        Raises:
            CreatorNotFoundError: If no creator has this company ID
        """
        creator = await self.creator_repo.get_by_company_id(company_id)
        if creator is None:
            raise CreatorNotFoundError(company_id)
        return creator

    async def get_creator_revenue_stats(self, creator_id: int) -> CreatorRevenueStats:
        """
        Compute revenue, MRR and member counts for a creator.

        Args:
            creator_id: Creator ID

        Returns:
            CreatorRevenueStats
        """
        month_start = start_of_month(utc_now())
        revenue = await self.commission_repo.get_creator_revenue_summary(
            creator_id, month_start
        )
        members = await self.member_repo.count_by_origin(creator_id)
        mrr = await self.member_repo.sum_monthly_value(creator_id)
        referral_mrr = await self.member_repo.sum_monthly_value(
            creator_id, origin=MemberOrigin.REFERRED
        )

        average_sale = (
            round_money(revenue.total_revenue / revenue.total_commissions)
            if revenue.total_commissions
            else ZERO
        )

        return CreatorRevenueStats(
            creator_id=creator_id,
            total_revenue=revenue.total_revenue,
            monthly_revenue=revenue.monthly_revenue,
            total_creator_earnings=revenue.total_creator_earnings,
            monthly_creator_earnings=revenue.monthly_creator_earnings,
            monthly_recurring_revenue=mrr,
            referral_mrr=referral_mrr,
            total_members=sum(members.values()),
            organic_members=members[MemberOrigin.ORGANIC.value],
            referred_members=members[MemberOrigin.REFERRED.value],
            total_commissions=revenue.total_commissions,
            monthly_commissions=revenue.monthly_commissions,
            average_sale_value=average_sale,
        )

    async def get_creator_top_performers(
        self,
        creator_id: int,
        sort_by: SortBy = "earnings",
        limit: int | None = None,
    ) -> list[TopPerformer]:
        """
        Build a creator's leaderboard.

        Args:
            creator_id: Creator ID
            sort_by: "earnings" (lifetime paid earnings) or "referrals"
            limit: Max entries (default: settings.leaderboard_limit)

        Returns:
            TopPerformer list, best first
        """
        if sort_by not in ("earnings", "referrals"):
            raise ValueError(f"Unknown leaderboard sort: {sort_by}")

        limit = limit or settings.leaderboard_limit
        month_start = start_of_month(utc_now())

        if sort_by == "earnings":
            earnings = await self.commission_repo.get_member_earnings_for_creator(
                creator_id, month_start, limit=limit
            )
            member_ids = [row.member_id for row in earnings]
            members = await self.member_repo.get_by_ids(member_ids)
        else:
            top = await self.member_repo.get_top_referrers(creator_id, limit)
            member_ids = [member.id for member in top]
            members = {member.id: member for member in top}
            earnings = await self.commission_repo.get_member_earnings_for_creator(
                creator_id, month_start, member_ids=member_ids
            )

        by_member = {row.member_id: row for row in earnings}
        monthly_referred = await self.member_repo.count_referred_by(
            member_ids, month_start
        )

        performers = []
        for member_id in member_ids:
            member = members.get(member_id)
            if member is None:
                continue
            row = by_member.get(member_id)
            performers.append(
                TopPerformer(
                    member_id=member.id,
                    username=member.username,
                    referral_code=member.referral_code,
                    total_referred=member.total_referred,
                    monthly_referred=monthly_referred.get(member.id, 0),
                    lifetime_earnings=row.lifetime_earnings if row else ZERO,
                    monthly_earnings=row.monthly_earnings if row else ZERO,
                    current_tier=member.current_tier,
                )
            )
        return performers

    async def get_creator_top_performer_contribution(
        self, creator_id: int
    ) -> TopPerformerContribution:
        """
        Share of total revenue earned by the top 10 earners.

        Args:
            creator_id: Creator ID

        Returns:
            TopPerformerContribution (0% when there is no revenue)
        """
        month_start = start_of_month(utc_now())
        top = await self.commission_repo.get_member_earnings_for_creator(
            creator_id, month_start, limit=TOP_PERFORMER_CONTRIBUTION_LIMIT
        )
        revenue = await self.commission_repo.get_creator_revenue_summary(
            creator_id, month_start
        )
        top_earnings = sum((row.lifetime_earnings for row in top), ZERO)

        return TopPerformerContribution(
            top_performers_earnings=top_earnings,
            total_revenue=revenue.total_revenue,
            contribution_percent=safe_percent(top_earnings, revenue.total_revenue),
        )
