"""
Commission repository.

Data access layer for the commission ledger. Every earnings and
revenue figure in the engine is aggregated here from paid rows.
"""

from datetime import datetime
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission import Commission
from app.models.enums import CommissionStatus, MemberOrigin
from app.models.member import Member
from app.repositories.base import BaseRepository
from app.utils.money import to_decimal


PAID = CommissionStatus.PAID.value


class EarningsSummary(NamedTuple):
    """Member earnings aggregated over paid commissions."""

    lifetime_earnings: Decimal
    monthly_earnings: Decimal
    last_month_earnings: Decimal
    total_commissions: int
    monthly_commissions: int


class RevenueSummary(NamedTuple):
    """Creator revenue aggregated over paid commissions."""

    total_revenue: Decimal
    monthly_revenue: Decimal
    total_creator_earnings: Decimal
    monthly_creator_earnings: Decimal
    total_commissions: int
    monthly_commissions: int


class CohortTotals(NamedTuple):
    """Paid commission totals for one cohort (organic or referred)."""

    sales_count: int
    revenue: Decimal
    member_shares: Decimal
    creator_shares: Decimal


class MemberEarnings(NamedTuple):
    """Per-member earnings row."""

    member_id: int
    lifetime_earnings: Decimal
    monthly_earnings: Decimal


class ReferralBreakdown(NamedTuple):
    """Earnings generated for a referrer by one referred member."""

    member_id: int
    username: str
    joined_at: datetime
    total_earnings: Decimal
    payment_count: int
    first_payment_at: datetime | None


def _referred_customers(creator_id: int):
    """Membership ids of the creator's referred-origin members."""
    return select(Member.membership_id).where(
        and_(
            Member.creator_id == creator_id,
            Member.member_origin == MemberOrigin.REFERRED.value,
        )
    )


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with ledger aggregations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_member_earnings_summary(
        self,
        member_id: int,
        month_start: datetime,
        last_month_start: datetime,
    ) -> EarningsSummary:
        """
        Aggregate a member's paid earnings in one round trip.

        Args:
            member_id: Referring member ID
            month_start: Start of the current month
            last_month_start: Start of the previous month

        Returns:
            EarningsSummary
        """
        this_month = Commission.created_at >= month_start
        last_month = and_(
            Commission.created_at >= last_month_start,
            Commission.created_at < month_start,
        )
        stmt = select(
            func.coalesce(func.sum(Commission.member_share), 0),
            func.coalesce(
                func.sum(case((this_month, Commission.member_share), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((last_month, Commission.member_share), else_=0)), 0
            ),
            func.count(Commission.id),
            func.coalesce(func.sum(case((this_month, 1), else_=0)), 0),
        ).where(
            and_(
                Commission.member_id == member_id,
                Commission.status == PAID,
            )
        )
        row = (await self.session.execute(stmt)).one()
        return EarningsSummary(
            lifetime_earnings=to_decimal(row[0]),
            monthly_earnings=to_decimal(row[1]),
            last_month_earnings=to_decimal(row[2]),
            total_commissions=int(row[3] or 0),
            monthly_commissions=int(row[4] or 0),
        )

    async def sum_member_earnings(self, member_id: int) -> Decimal:
        """
        Sum a member's paid member_share.

        Args:
            member_id: Referring member ID

        Returns:
            Lifetime earnings
        """
        stmt = select(func.coalesce(func.sum(Commission.member_share), 0)).where(
            and_(
                Commission.member_id == member_id,
                Commission.status == PAID,
            )
        )
        result = await self.session.execute(stmt)
        return to_decimal(result.scalar_one())

    async def count_members_earning_at_least(
        self, threshold: Decimal, exclude_member_id: int
    ) -> int:
        """
        Count members whose paid earnings reach threshold.

        Args:
            threshold: Minimum lifetime earnings
            exclude_member_id: Member left out of the count

        Returns:
            Number of other members at or above threshold
        """
        earners = (
            select(Commission.member_id)
            .where(
                and_(
                    Commission.status == PAID,
                    Commission.member_id != exclude_member_id,
                )
            )
            .group_by(Commission.member_id)
            .having(func.sum(Commission.member_share) >= threshold)
            .subquery()
        )
        stmt = select(func.count()).select_from(earners)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_daily_member_earnings(
        self, member_id: int, since: datetime
    ) -> list[tuple[str, Decimal]]:
        """
        Get a member's paid earnings grouped by day.

        Args:
            member_id: Referring member ID
            since: Window start

        Returns:
            List of (YYYY-MM-DD, earnings) ascending by day
        """
        day = func.date(Commission.created_at).label("day")
        stmt = (
            select(day, func.sum(Commission.member_share))
            .where(
                and_(
                    Commission.member_id == member_id,
                    Commission.status == PAID,
                    Commission.created_at >= since,
                )
            )
            .group_by(day)
            .order_by(day)
        )
        result = await self.session.execute(stmt)
        return [(str(row[0])[:10], to_decimal(row[1])) for row in result.all()]

    async def get_referral_breakdown(
        self, referrer_id: int, limit: int = 10
    ) -> list[ReferralBreakdown]:
        """
        Get earnings generated by each referred member with paid commissions.

        Args:
            referrer_id: Referring member ID
            limit: Max rows, most recently joined first

        Returns:
            List of ReferralBreakdown
        """
        stmt = (
            select(
                Member.id,
                Member.username,
                Member.created_at,
                func.sum(Commission.member_share),
                func.count(Commission.id),
                func.min(Commission.created_at),
            )
            .join(
                Commission,
                and_(
                    Commission.customer_membership_id == Member.membership_id,
                    Commission.member_id == referrer_id,
                    Commission.status == PAID,
                ),
            )
            .where(Member.referred_by_id == referrer_id)
            .group_by(Member.id, Member.username, Member.created_at)
            .order_by(Member.created_at.desc(), Member.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            ReferralBreakdown(
                member_id=row[0],
                username=row[1],
                joined_at=row[2],
                total_earnings=to_decimal(row[3]),
                payment_count=int(row[4]),
                first_payment_at=row[5],
            )
            for row in result.all()
        ]

    async def get_creator_revenue_summary(
        self, creator_id: int, month_start: datetime
    ) -> RevenueSummary:
        """
        Aggregate a creator's paid revenue in one round trip.

        Args:
            creator_id: Creator ID
            month_start: Start of the current month

        Returns:
            RevenueSummary
        """
        this_month = Commission.created_at >= month_start
        stmt = select(
            func.coalesce(func.sum(Commission.sale_amount), 0),
            func.coalesce(
                func.sum(case((this_month, Commission.sale_amount), else_=0)), 0
            ),
            func.coalesce(func.sum(Commission.creator_share), 0),
            func.coalesce(
                func.sum(case((this_month, Commission.creator_share), else_=0)), 0
            ),
            func.count(Commission.id),
            func.coalesce(func.sum(case((this_month, 1), else_=0)), 0),
        ).where(
            and_(
                Commission.creator_id == creator_id,
                Commission.status == PAID,
            )
        )
        row = (await self.session.execute(stmt)).one()
        return RevenueSummary(
            total_revenue=to_decimal(row[0]),
            monthly_revenue=to_decimal(row[1]),
            total_creator_earnings=to_decimal(row[2]),
            monthly_creator_earnings=to_decimal(row[3]),
            total_commissions=int(row[4] or 0),
            monthly_commissions=int(row[5] or 0),
        )

    async def get_member_earnings_for_creator(
        self,
        creator_id: int,
        month_start: datetime,
        member_ids: list[int] | None = None,
        limit: int | None = None,
    ) -> list[MemberEarnings]:
        """
        Get lifetime and monthly earnings per member of a creator.

        Args:
            creator_id: Creator ID
            month_start: Start of the current month
            member_ids: Restrict to these members
            limit: Max rows, highest lifetime earnings first

        Returns:
            List of MemberEarnings
        """
        lifetime = func.sum(Commission.member_share).label("lifetime")
        monthly = func.coalesce(
            func.sum(
                case(
                    (Commission.created_at >= month_start, Commission.member_share),
                    else_=0,
                )
            ),
            0,
        )
        conditions = [
            Commission.creator_id == creator_id,
            Commission.status == PAID,
            Commission.member_share > 0,
        ]
        if member_ids is not None:
            conditions.append(Commission.member_id.in_(member_ids))

        stmt = (
            select(Commission.member_id, lifetime, monthly)
            .where(and_(*conditions))
            .group_by(Commission.member_id)
            .order_by(lifetime.desc(), Commission.member_id)
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [
            MemberEarnings(
                member_id=row[0],
                lifetime_earnings=to_decimal(row[1]),
                monthly_earnings=to_decimal(row[2]),
            )
            for row in result.all()
        ]

    async def get_cohort_totals(
        self,
        creator_id: int,
        start: datetime,
        end: datetime,
        referred: bool,
        include_invoiced: bool = True,
    ) -> CohortTotals:
        """
        Aggregate paid commissions in a window for one cohort.

        A commission is referred when its paying customer is a
        referred-origin member of the creator; everything else is
        organic.

        Args:
            creator_id: Creator ID
            start: Window start (inclusive)
            end: Window end (exclusive)
            referred: Referred cohort if True, organic otherwise
            include_invoiced: Count commissions already invoiced

        Returns:
            CohortTotals
        """
        in_referred = Commission.customer_membership_id.in_(
            _referred_customers(creator_id)
        )
        conditions = [
            Commission.creator_id == creator_id,
            Commission.status == PAID,
            Commission.created_at >= start,
            Commission.created_at < end,
        ]
        if referred:
            conditions.append(in_referred)
            if not include_invoiced:
                conditions.append(Commission.platform_fee_invoiced == False)  # noqa: E712
        else:
            conditions.append(
                or_(Commission.customer_membership_id.is_(None), ~in_referred)
            )

        stmt = select(
            func.count(Commission.id),
            func.coalesce(func.sum(Commission.sale_amount), 0),
            func.coalesce(func.sum(Commission.member_share), 0),
            func.coalesce(func.sum(Commission.creator_share), 0),
        ).where(and_(*conditions))
        row = (await self.session.execute(stmt)).one()
        return CohortTotals(
            sales_count=int(row[0] or 0),
            revenue=to_decimal(row[1]),
            member_shares=to_decimal(row[2]),
            creator_shares=to_decimal(row[3]),
        )

    async def mark_invoiced(
        self,
        creator_id: int,
        invoice_id: int,
        start: datetime,
        end: datetime,
    ) -> int:
        """
        Flag the window's uninvoiced referred commissions as invoiced.

        The platform_fee_invoiced = false predicate makes the update
        safe to repeat: rows flagged by an earlier run are untouched.

        Args:
            creator_id: Creator ID
            invoice_id: Invoice the fee is billed on
            start: Window start (inclusive)
            end: Window end (exclusive)

        Returns:
            Number of commissions flagged
        """
        stmt = (
            update(Commission)
            .where(
                and_(
                    Commission.creator_id == creator_id,
                    Commission.status == PAID,
                    Commission.platform_fee_invoiced == False,  # noqa: E712
                    Commission.created_at >= start,
                    Commission.created_at < end,
                    Commission.customer_membership_id.in_(
                        _referred_customers(creator_id)
                    ),
                )
            )
            .values(platform_fee_invoiced=True, invoice_id=invoice_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def count_for_invoice(self, invoice_id: int) -> int:
        """Count commissions billed on an invoice."""
        return await self.count(invoice_id=invoice_id)

    async def find_split_mismatches(
        self, tolerance: Decimal = Decimal("0.005"), limit: int = 100
    ) -> list[Commission]:
        """
        Find paid commissions whose shares do not add up to the sale.

        Args:
            tolerance: Allowed absolute difference
            limit: Max rows

        Returns:
            List of inconsistent commissions
        """
        difference = func.abs(
            Commission.sale_amount
            - Commission.member_share
            - Commission.creator_share
            - Commission.platform_share
        )
        stmt = (
            select(Commission)
            .where(and_(Commission.status == PAID, difference >= tolerance))
            .order_by(Commission.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
