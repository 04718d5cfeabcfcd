"""
Member repository.

Data access layer for Member model, including the derived referral
counter projection.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, case, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.config.commission_tiers import COMMISSION_TIERS
from app.models.commission import Commission
from app.models.enums import CommissionStatus, MemberOrigin
from app.models.member import Member
from app.repositories.base import BaseRepository
from app.utils.money import to_decimal


class MemberRepository(BaseRepository[Member]):
    """Member repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize member repository."""
        super().__init__(Member, session)

    async def get_by_membership_id(self, membership_id: str) -> Member | None:
        """
        Get member by external membership ID.

        Args:
            membership_id: Membership ID

        Returns:
            Member or None
        """
        return await self.get_by(membership_id=membership_id)

    async def get_by_referral_code(self, referral_code: str) -> Member | None:
        """
        Get member by referral code.

        Args:
            referral_code: Referral code

        Returns:
            Member or None
        """
        return await self.get_by(referral_code=referral_code)

    async def count_referred_since(self, referrer_id: int, since: datetime) -> int:
        """
        Count members referred by a member since a given time.

        Args:
            referrer_id: Referring member ID
            since: Window start

        Returns:
            Live count of referred members
        """
        stmt = select(func.count(Member.id)).where(
            and_(
                Member.referred_by_id == referrer_id,
                Member.created_at >= since,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_referred_by(
        self, referrer_ids: list[int], since: datetime
    ) -> dict[int, int]:
        """
        Count members referred since a given time, per referrer.

        Args:
            referrer_ids: Referring member IDs
            since: Window start

        Returns:
            Dict referrer_id -> count (missing referrers have 0)
        """
        if not referrer_ids:
            return {}
        stmt = (
            select(Member.referred_by_id, func.count(Member.id))
            .where(
                and_(
                    Member.referred_by_id.in_(referrer_ids),
                    Member.created_at >= since,
                )
            )
            .group_by(Member.referred_by_id)
        )
        result = await self.session.execute(stmt)
        return {row[0]: int(row[1]) for row in result.all()}

    async def count_with_more_referrals(
        self, total_referred: int, creator_id: int | None = None
    ) -> int:
        """
        Count members with strictly more referrals.

        Args:
            total_referred: Subject's referral count
            creator_id: Restrict to one community

        Returns:
            Number of members ahead
        """
        conditions = [Member.total_referred > total_referred]
        if creator_id is not None:
            conditions.append(Member.creator_id == creator_id)
        stmt = select(func.count(Member.id)).where(and_(*conditions))
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_top_referrers(self, creator_id: int, limit: int = 10) -> list[Member]:
        """
        Get a community's members with the most referrals.

        Args:
            creator_id: Creator ID
            limit: Max rows

        Returns:
            Members ordered by total_referred descending
        """
        stmt = (
            select(Member)
            .where(and_(Member.creator_id == creator_id, Member.total_referred > 0))
            .order_by(Member.total_referred.desc(), Member.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_ids(self, member_ids: list[int]) -> dict[int, Member]:
        """
        Load members by ID.

        Args:
            member_ids: Member IDs

        Returns:
            Dict member_id -> Member
        """
        if not member_ids:
            return {}
        stmt = select(Member).where(Member.id.in_(member_ids))
        result = await self.session.execute(stmt)
        return {member.id: member for member in result.scalars().all()}

    async def count_by_origin(
        self,
        creator_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, int]:
        """
        Count a community's members by origin.

        Args:
            creator_id: Creator ID
            start: Only members created at or after start
            end: Only members created before end

        Returns:
            Dict with "organic" and "referred" counts
        """
        conditions = [Member.creator_id == creator_id]
        if start is not None:
            conditions.append(Member.created_at >= start)
        if end is not None:
            conditions.append(Member.created_at < end)

        stmt = (
            select(Member.member_origin, func.count(Member.id))
            .where(and_(*conditions))
            .group_by(Member.member_origin)
        )
        result = await self.session.execute(stmt)
        counts = {origin.value: 0 for origin in MemberOrigin}
        for origin, count in result.all():
            counts[origin] = int(count)
        return counts

    async def sum_monthly_value(
        self, creator_id: int, origin: MemberOrigin | None = None
    ) -> Decimal:
        """
        Sum normalized monthly subscription value (MRR).

        Args:
            creator_id: Creator ID
            origin: Restrict to one origin

        Returns:
            Monthly recurring revenue
        """
        conditions = [Member.creator_id == creator_id]
        if origin is not None:
            conditions.append(Member.member_origin == origin.value)
        stmt = select(func.coalesce(func.sum(Member.monthly_value), 0)).where(
            and_(*conditions)
        )
        result = await self.session.execute(stmt)
        return to_decimal(result.scalar_one())

    async def recompute_referral_counters(self, creator_id: int | None = None) -> int:
        """
        Recompute total_referred, paid_referral_count and current_tier.

        total_referred counts members whose referred_by_id points at the
        member. paid_referral_count counts those with at least one paid
        commission crediting the member. current_tier follows the
        commission tier table.

        Args:
            creator_id: Restrict to one community (all members if None)

        Returns:
            Number of member rows updated
        """
        referred = aliased(Member)
        total_referred = (
            select(func.count(referred.id))
            .where(referred.referred_by_id == Member.id)
            .scalar_subquery()
        )
        has_paid = exists().where(
            and_(
                Commission.customer_membership_id == referred.membership_id,
                Commission.member_id == Member.id,
                Commission.status == CommissionStatus.PAID.value,
            )
        )
        paid_referrals = (
            select(func.count(referred.id))
            .where(and_(referred.referred_by_id == Member.id, has_paid))
            .scalar_subquery()
        )

        counters = update(Member).values(
            total_referred=total_referred,
            paid_referral_count=paid_referrals,
        )
        if creator_id is not None:
            counters = counters.where(Member.creator_id == creator_id)
        result = await self.session.execute(
            counters.execution_options(synchronize_session=False)
        )

        # Highest threshold first so the first matching branch wins
        tier_case = case(
            *[
                (Member.paid_referral_count >= tier.min_referrals, tier.tier_name.value)
                for tier in reversed(COMMISSION_TIERS)
            ],
            else_=COMMISSION_TIERS[0].tier_name.value,
        )
        tiers = update(Member).values(current_tier=tier_case)
        if creator_id is not None:
            tiers = tiers.where(Member.creator_id == creator_id)
        await self.session.execute(tiers.execution_options(synchronize_session=False))

        return result.rowcount or 0
