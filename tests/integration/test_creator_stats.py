"""
Integration tests for creator revenue and leaderboards.
"""

from decimal import Decimal

import pytest

from app.models.enums import CommissionStatus
from app.services.counter_service import CounterService
from app.services.creator_stats_service import CreatorStatsService
from app.utils.exceptions import CreatorNotFoundError


@pytest.fixture
async def storefront(factory, this_month, last_month):
    """
    Creator with two referrers.

    r1 refers c1 (200 this month) and c2 (100 last month).
    r2 refers c3 (100 this month). r1 also buys 100 organically.
    """
    creator = await factory.creator(company_name="Acme")
    r1 = await factory.member(creator, monthly_value=Decimal("30"))
    r2 = await factory.member(creator, monthly_value=Decimal("20"))
    c1 = await factory.member(creator, referred_by=r1, monthly_value=Decimal("10"))
    c2 = await factory.member(creator, referred_by=r1)
    c3 = await factory.member(creator, referred_by=r2, monthly_value=Decimal("5"))

    await factory.referred_sale(r1, c1, "200", created_at=this_month)
    await factory.referred_sale(r1, c2, "100", created_at=last_month)
    await factory.referred_sale(r2, c3, "100", created_at=this_month)
    await factory.organic_sale(r1, "100", created_at=this_month)
    await factory.referred_sale(
        r2, c3, "500", created_at=this_month, status=CommissionStatus.REFUNDED
    )
    return creator, r1, r2


class TestCreatorRevenueStats:
    """Test revenue aggregation."""

    @pytest.mark.asyncio
    async def test_revenue_totals(self, session, storefront):
        """Test totals from paid commissions only."""
        creator, _, _ = storefront

        stats = await CreatorStatsService(session).get_creator_revenue_stats(creator.id)

        assert stats.total_revenue == Decimal("500")
        assert stats.monthly_revenue == Decimal("400")
        assert stats.total_creator_earnings == Decimal("360")
        assert stats.monthly_creator_earnings == Decimal("290")
        assert stats.total_commissions == 4
        assert stats.monthly_commissions == 3
        assert stats.average_sale_value == Decimal("125.00")

    @pytest.mark.asyncio
    async def test_members_and_mrr(self, session, storefront):
        """Test member counts by origin and normalized MRR."""
        creator, _, _ = storefront

        stats = await CreatorStatsService(session).get_creator_revenue_stats(creator.id)

        assert stats.total_members == 5
        assert stats.organic_members == 2
        assert stats.referred_members == 3
        assert stats.monthly_recurring_revenue == Decimal("65")
        assert stats.referral_mrr == Decimal("15")

    @pytest.mark.asyncio
    async def test_creator_without_sales(self, session, factory):
        """Test zeros and no division by zero."""
        creator = await factory.creator()

        stats = await CreatorStatsService(session).get_creator_revenue_stats(creator.id)

        assert stats.total_revenue == Decimal("0")
        assert stats.average_sale_value == Decimal("0")
        assert stats.total_members == 0

    @pytest.mark.asyncio
    async def test_lookups(self, session, factory):
        """Test lookups by product and company ID."""
        creator = await factory.creator(product_id="prod_lookup", company_id="biz_lookup")
        service = CreatorStatsService(session)

        assert (await service.get_creator_by_product_id("prod_lookup")).id == creator.id
        assert (await service.get_creator_by_company_id("biz_lookup")).id == creator.id
        with pytest.raises(CreatorNotFoundError):
            await service.get_creator_by_product_id("prod_missing")
        with pytest.raises(CreatorNotFoundError):
            await service.get_creator(999_999)


class TestTopPerformers:
    """Test creator leaderboards."""

    @pytest.mark.asyncio
    async def test_top_earners(self, session, storefront):
        """Test ordering by lifetime earnings."""
        _, r1, r2 = storefront

        earners = await CreatorStatsService(session).get_creator_top_performers(
            storefront[0].id, sort_by="earnings"
        )

        assert [p.member_id for p in earners] == [r1.id, r2.id]
        assert earners[0].lifetime_earnings == Decimal("30")
        assert earners[0].monthly_earnings == Decimal("20")
        assert earners[0].monthly_referred == 2
        assert earners[1].lifetime_earnings == Decimal("10")

    @pytest.mark.asyncio
    async def test_top_referrers(self, session, session_maker, storefront):
        """Test ordering by recomputed referral counts."""
        creator, r1, r2 = storefront
        async with session_maker() as counter_session:
            await CounterService(counter_session).recompute_member_counters(creator.id)

        async with session_maker() as read_session:
            referrers = await CreatorStatsService(read_session).get_creator_top_performers(
                creator.id, sort_by="referrals"
            )

        assert [p.member_id for p in referrers] == [r1.id, r2.id]
        assert referrers[0].total_referred == 2
        assert referrers[0].lifetime_earnings == Decimal("30")
        assert referrers[1].total_referred == 1

    @pytest.mark.asyncio
    async def test_unknown_sort(self, session, storefront):
        """Test that an unknown sort key is rejected."""
        with pytest.raises(ValueError):
            await CreatorStatsService(session).get_creator_top_performers(
                storefront[0].id, sort_by="followers"
            )

    @pytest.mark.asyncio
    async def test_top_performer_contribution(self, session, storefront):
        """Test top earners' share of total revenue."""
        creator, _, _ = storefront

        contribution = await CreatorStatsService(
            session
        ).get_creator_top_performer_contribution(creator.id)

        assert contribution.top_performers_earnings == Decimal("40")
        assert contribution.total_revenue == Decimal("500")
        assert contribution.contribution_percent == Decimal("8.00")
