"""
End-to-end dashboard composition against a real database.
"""

from decimal import Decimal

import pytest

from app.models.enums import ReferralRewardTier
from app.services.counter_service import CounterService
from app.services.dashboard_service import DashboardService
from app.utils.exceptions import CreatorNotFoundError, MemberNotFoundError


@pytest.fixture
async def community(session_maker, factory, this_month, last_month):
    """Creator with a referrer of three customers, counters recomputed."""
    creator = await factory.creator(company_id="biz_dash", product_id="prod_dash")
    referrer = await factory.member(creator)
    customers = [await factory.member(creator, referred_by=referrer) for _ in range(3)]
    for customer, amount in zip(customers, ("100", "200", "300")):
        await factory.referred_sale(referrer, customer, amount, created_at=this_month)
    await factory.referred_sale(referrer, customers[0], "1000", created_at=last_month)
    await factory.organic_sale(referrer, "50", created_at=this_month)

    async with session_maker() as s:
        await CounterService(s).recompute_member_counters(creator.id)
    return creator, referrer


class TestMemberDashboardEndToEnd:
    """Test the member dashboard over the ledger."""

    @pytest.mark.asyncio
    async def test_member_dashboard(self, session_maker, community):
        """Test every section of the member dashboard."""
        _, referrer = community

        dashboard = await DashboardService(session_maker).get_member_dashboard(
            referrer.membership_id
        )

        assert dashboard.member_id == referrer.id
        assert dashboard.lifetime_earnings == Decimal("160")
        assert dashboard.monthly_earnings == Decimal("60")
        assert dashboard.monthly_trend == Decimal("-40.00")
        assert dashboard.total_referred == 3
        assert dashboard.global_earnings_rank == 1
        assert dashboard.community_rank == 1
        assert dashboard.reward_tier == ReferralRewardTier.BRONZE
        assert dashboard.tier_progress.referrals_needed == 47
        assert len(dashboard.referrals) == 3
        assert dashboard.earnings_history

    @pytest.mark.asyncio
    async def test_unknown_member(self, session_maker):
        """Test that an unknown membership fails the dashboard."""
        with pytest.raises(MemberNotFoundError):
            await DashboardService(session_maker).get_member_dashboard("mem_nobody")


class TestCreatorDashboards:
    """Test the creator dashboard and value overview."""

    @pytest.mark.asyncio
    async def test_creator_dashboard(self, session_maker, community):
        """Test revenue and leaderboards."""
        creator, referrer = community

        dashboard = await DashboardService(session_maker).get_creator_dashboard("prod_dash")

        assert dashboard.creator_id == creator.id
        assert dashboard.revenue_stats.total_revenue == Decimal("1650")
        assert dashboard.revenue_stats.monthly_revenue == Decimal("650")
        assert [p.member_id for p in dashboard.top_earners] == [referrer.id]
        assert [p.member_id for p in dashboard.top_referrers] == [referrer.id]
        assert dashboard.top_performer_contribution.top_performers_earnings == Decimal("160")
        assert dashboard.to_dict()["company_name"] == creator.company_name

    @pytest.mark.asyncio
    async def test_value_overview(self, session_maker, community):
        """Test the three value windows."""
        dashboard = await DashboardService(session_maker).get_creator_value_overview(
            "biz_dash"
        )

        assert dashboard.current_month.referred_revenue == Decimal("600")
        assert dashboard.current_month.organic_revenue == Decimal("50")
        assert dashboard.last_month.referred_revenue == Decimal("1000")
        assert dashboard.all_time.referred_revenue == Decimal("1600")
        assert dashboard.all_time.platform_fees_owed == Decimal("320")

    @pytest.mark.asyncio
    async def test_unknown_product(self, session_maker):
        """Test that an unknown product fails the dashboard."""
        with pytest.raises(CreatorNotFoundError):
            await DashboardService(session_maker).get_creator_dashboard("prod_nobody")
