"""
Integration tests for derived counters, the revenue cache, ledger
checks and referral code edits.
"""

from decimal import Decimal

import pytest

from app.config.commission_tiers import CommissionTierName
from app.models import Commission
from app.models.enums import CommissionStatus
from app.repositories.creator_repository import CreatorRepository
from app.repositories.member_repository import MemberRepository
from app.services.counter_service import CounterService
from app.services.referral_code_service import ReferralCodeService
from app.utils.exceptions import (
    MemberNotFoundError,
    ReferralCodeTakenError,
    ValidationError,
)


class TestMemberCounters:
    """Test recomputation of referral counters and tiers."""

    @pytest.mark.asyncio
    async def test_counts_referrals_and_paid_referrals(self, session_maker, factory):
        """Test that only referrals with a paid commission count as paid."""
        creator = await factory.creator()
        referrer = await factory.member(creator, total_referred=99)
        paying = await factory.member(creator, referred_by=referrer)
        await factory.member(creator, referred_by=referrer)
        pending = await factory.member(creator, referred_by=referrer)
        await factory.referred_sale(referrer, paying, "100")
        await factory.referred_sale(
            referrer, pending, "100", status=CommissionStatus.PENDING
        )

        async with session_maker() as s:
            updated = await CounterService(s).recompute_member_counters(creator.id)

        async with session_maker() as s:
            stored = await MemberRepository(s).get_by_id(referrer.id)

        assert updated == 4
        assert stored.total_referred == 3
        assert stored.paid_referral_count == 1
        assert stored.current_tier == CommissionTierName.STARTER.value

    @pytest.mark.asyncio
    async def test_tier_follows_paid_referrals(self, session_maker, factory):
        """Test promotion to ambassador at 50 paid referrals."""
        creator = await factory.creator()
        referrer = await factory.member(creator)
        for _ in range(50):
            customer = await factory.member(creator, referred_by=referrer)
            await factory.referred_sale(referrer, customer, "20")

        async with session_maker() as s:
            await CounterService(s).recompute_member_counters()

        async with session_maker() as s:
            stored = await MemberRepository(s).get_by_id(referrer.id)

        assert stored.paid_referral_count == 50
        assert stored.current_tier == CommissionTierName.AMBASSADOR.value

    @pytest.mark.asyncio
    async def test_scoped_to_creator(self, session_maker, factory):
        """Test that other communities are untouched."""
        creator = await factory.creator()
        other = await factory.creator()
        await factory.member(creator)
        untouched = await factory.member(other, total_referred=7)

        async with session_maker() as s:
            await CounterService(s).recompute_member_counters(creator.id)

        async with session_maker() as s:
            stored = await MemberRepository(s).get_by_id(untouched.id)

        assert stored.total_referred == 7


class TestRevenueCache:
    """Test the creator revenue cache refresh."""

    @pytest.mark.asyncio
    async def test_cache_overwritten_from_ledger(self, session_maker, factory, this_month):
        """Test that stale cached totals are replaced."""
        creator = await factory.creator(total_revenue=Decimal("9999"))
        inactive = await factory.creator(is_active=False, total_revenue=Decimal("5"))
        referrer = await factory.member(creator)
        customer = await factory.member(creator, referred_by=referrer)
        await factory.referred_sale(referrer, customer, "300", created_at=this_month)

        async with session_maker() as s:
            refreshed = await CounterService(s).refresh_creator_revenue_cache()

        async with session_maker() as s:
            repo = CreatorRepository(s)
            stored = await repo.get_by_id(creator.id)
            skipped = await repo.get_by_id(inactive.id)

        assert refreshed == 1
        assert stored.total_revenue == Decimal("300")
        assert stored.monthly_revenue == Decimal("300")
        assert stored.revenue_cached_at is not None
        assert skipped.total_revenue == Decimal("5")


class TestLedgerConsistency:
    """Test split mismatch detection."""

    @pytest.mark.asyncio
    async def test_mismatched_split_reported(self, session, factory):
        """Test that only rows whose shares miss the sale are reported."""
        creator = await factory.creator()
        referrer = await factory.member(creator)
        customer = await factory.member(creator, referred_by=referrer)
        await factory.referred_sale(referrer, customer, "100")
        broken = Commission(
            member_id=referrer.id,
            creator_id=creator.id,
            customer_membership_id=customer.membership_id,
            sale_amount=Decimal("100"),
            member_share=Decimal("10"),
            creator_share=Decimal("70"),
            platform_share=Decimal("10"),
        )
        session.add(broken)
        await session.commit()

        assert await CounterService(session).check_ledger_consistency() == [broken.id]

    @pytest.mark.asyncio
    async def test_clean_ledger(self, session, factory):
        """Test a consistent ledger."""
        creator = await factory.creator()
        member = await factory.member(creator)
        await factory.organic_sale(member, "33.33")

        assert await CounterService(session).check_ledger_consistency() == []


class TestReferralCodeUpdate:
    """Test member-chosen referral codes."""

    @pytest.mark.asyncio
    async def test_code_updated(self, session_maker, factory):
        """Test a valid, free code."""
        creator = await factory.creator()
        member = await factory.member(creator)

        async with session_maker() as s:
            updated = await ReferralCodeService(s).update_referral_code(member.id, " MIKE-2026 ")

        async with session_maker() as s:
            stored = await MemberRepository(s).get_by_referral_code("MIKE-2026")

        assert updated.referral_code == "MIKE-2026"
        assert stored.id == member.id

    @pytest.mark.asyncio
    async def test_own_code_accepted(self, session, factory):
        """Test re-submitting the member's current code."""
        creator = await factory.creator()
        member = await factory.member(creator, referral_code="SAME-CODE")

        updated = await ReferralCodeService(session).update_referral_code(member.id, "SAME-CODE")

        assert updated.referral_code == "SAME-CODE"

    @pytest.mark.asyncio
    async def test_taken_code_rejected(self, session_maker, factory):
        """Test that another member's code is refused and nothing changes."""
        creator = await factory.creator()
        holder = await factory.member(creator, referral_code="TAKEN-1")
        member = await factory.member(creator)

        async with session_maker() as s:
            with pytest.raises(ReferralCodeTakenError):
                await ReferralCodeService(s).update_referral_code(member.id, "TAKEN-1")

        async with session_maker() as s:
            assert (await MemberRepository(s).get_by_id(member.id)).referral_code == member.referral_code
            assert (await MemberRepository(s).get_by_referral_code("TAKEN-1")).id == holder.id

    @pytest.mark.asyncio
    async def test_invalid_code_rejected(self, session, factory):
        """Test format validation before any lookup."""
        creator = await factory.creator()
        member = await factory.member(creator)

        with pytest.raises(ValidationError):
            await ReferralCodeService(session).update_referral_code(member.id, "bad code")

    @pytest.mark.asyncio
    async def test_unknown_member(self, session):
        """Test a missing member."""
        with pytest.raises(MemberNotFoundError):
            await ReferralCodeService(session).update_referral_code(999_999, "VALID-1")

    @pytest.mark.asyncio
    async def test_generate_unique_code(self, session, factory):
        """Test that generated codes are free."""
        creator = await factory.creator()
        await factory.member(creator)

        code = await ReferralCodeService(session).generate_unique_code("Dana Scully")

        assert code.startswith("DANA-")
        assert not await MemberRepository(session).exists(referral_code=code)
