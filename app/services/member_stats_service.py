"""
Member statistics service.

Aggregates a member's earnings and referral metrics from the
commission ledger:
- Lifetime / monthly / last-month earnings and month-over-month trend
- Referral counts (derived counter and live monthly count)
- Daily earnings history
- Earnings generated by each referred member
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import FIRST_GROWTH_PERCENT, ZERO
from app.config.settings import settings
from app.models.member import Member
from app.repositories.commission_repository import CommissionRepository
from app.repositories.member_repository import MemberRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import start_of_month, start_of_previous_month, utc_now
from app.utils.exceptions import MemberNotFoundError
from app.utils.money import round_percent


@dataclass
class MemberStats:
    """Member metrics computed from paid commissions."""

    member_id: int
    membership_id: str
    username: str
    referral_code: str
    creator_id: int
    current_tier: str
    lifetime_earnings: Decimal
    monthly_earnings: Decimal
    last_month_earnings: Decimal
    monthly_trend: Decimal
    total_referred: int
    monthly_referred: int
    paid_referral_count: int
    total_commissions: int
    monthly_commissions: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict."""
        return asdict(self)


@dataclass
class EarningsPoint:
    """Paid earnings for one day."""

    date: str
    earnings: Decimal


@dataclass
class ReferralSummary:
    """A referred member and what they generated for the referrer."""

    member_id: int
    username: str
    joined_at: datetime
    total_earnings: Decimal
    payment_count: int
    first_payment_at: datetime | None


def calculate_monthly_trend(this_month: Decimal, last_month: Decimal) -> Decimal:
    """
    Month-over-month change in percent.

    Args:
        this_month: Current month value
        last_month: Previous month value

    Returns:
        (this - last) / last * 100, rounded to 2 places; 100 when last
        month is zero and this month is positive; 0 when both are zero
    """
    if last_month == 0:
        return FIRST_GROWTH_PERCENT if this_month > 0 else ZERO
    return round_percent((this_month - last_month) / last_month * 100)


class MemberStatsService(BaseService):
    """Read-only member aggregation service."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize member stats service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def get_member(self, member_id: int) -> Member:
        """
        Load a member or fail.

        Raises:
            MemberNotFoundError: If no member has this ID
        """
        member = await self.member_repo.get_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    async def get_member_by_membership_id(self, membership_id: str) -> Member:
        """
        Load a member by external membership ID or fail.

        Raises:
            MemberNotFoundError: If no member has this membership ID
        """
        member = await self.member_repo.get_by_membership_id(membership_id)
        if member is None:
            raise MemberNotFoundError(membership_id)
        return member

    async def get_member_stats(self, member_id: int) -> MemberStats:
        """
        Compute a member's earnings and referral metrics.

        Earnings are sums of member_share over paid commissions only.

        Args:
            member_id: Member ID

        Returns:
            MemberStats

        Raises:
            MemberNotFoundError: If no member has this ID
        """
        member = await self.get_member(member_id)

        now = utc_now()
        month_start = start_of_month(now)
        summary = await self.commission_repo.get_member_earnings_summary(
            member.id, month_start, start_of_previous_month(now)
        )
        monthly_referred = await self.member_repo.count_referred_since(
            member.id, month_start
        )

        return MemberStats(
            member_id=member.id,
            membership_id=member.membership_id,
            username=member.username,
            referral_code=member.referral_code,
            creator_id=member.creator_id,
            current_tier=member.current_tier,
            lifetime_earnings=summary.lifetime_earnings,
            monthly_earnings=summary.monthly_earnings,
            last_month_earnings=summary.last_month_earnings,
            monthly_trend=calculate_monthly_trend(
                summary.monthly_earnings, summary.last_month_earnings
            ),
            total_referred=member.total_referred,
            monthly_referred=monthly_referred,
            paid_referral_count=member.paid_referral_count,
            total_commissions=summary.total_commissions,
            monthly_commissions=summary.monthly_commissions,
        )

    async def get_member_earnings_history(
        self, member_id: int, days: int | None = None
    ) -> list[EarningsPoint]:
        """
        Get daily paid earnings for the last N days.

        Args:
            member_id: Member ID
            days: Window length (default: settings.earnings_history_days)

        Returns:
            EarningsPoints ascending by date, days without earnings omitted
        """
        days = days or settings.earnings_history_days
        since = utc_now() - timedelta(days=days)
        rows = await self.commission_repo.get_daily_member_earnings(member_id, since)
        return [EarningsPoint(date=day, earnings=earnings) for day, earnings in rows]

    async def get_member_referrals(
        self, member_id: int, limit: int = 10
    ) -> list[ReferralSummary]:
        """
        Get the member's most recent referrals that have paid.

        Args:
            member_id: Referring member ID
            limit: Max rows

        Returns:
            ReferralSummary list, most recently joined first
        """
        rows = await self.commission_repo.get_referral_breakdown(member_id, limit)
        return [
            ReferralSummary(
                member_id=row.member_id,
                username=row.username,
                joined_at=row.joined_at,
                total_earnings=row.total_earnings,
                payment_count=row.payment_count,
                first_payment_at=row.first_payment_at,
            )
            for row in rows
        ]
