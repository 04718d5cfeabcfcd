"""
Integration tests for member rankings.
"""

import pytest
from sqlalchemy.exc import OperationalError

from app.services.dashboard_service import DashboardService
from app.services.ranking_service import MemberRankings, RankingService


class TestGlobalEarningsRank:
    """Test earnings rank across all creators."""

    @pytest.mark.asyncio
    async def test_ties_within_a_cent_share_a_rank(self, session, factory):
        """Test that equal earners do not outrank each other."""
        creator = await factory.creator()
        other_creator = await factory.creator()
        alice = await factory.member(creator)
        bob = await factory.member(creator)
        carol = await factory.member(other_creator)

        await factory.referred_sale(alice, await factory.member(creator, referred_by=alice), "100")
        await factory.referred_sale(bob, await factory.member(creator, referred_by=bob), "100")
        await factory.referred_sale(
            carol, await factory.member(other_creator, referred_by=carol), "200"
        )

        service = RankingService(session)

        assert await service.get_global_earnings_rank(carol.id) == 1
        assert await service.get_global_earnings_rank(alice.id) == 2
        assert await service.get_global_earnings_rank(bob.id) == 2

    @pytest.mark.asyncio
    async def test_one_cent_apart_ranks_strictly(self, session, factory):
        """Test that a one-cent lead is enough to outrank."""
        creator = await factory.creator()
        alice = await factory.member(creator)
        bob = await factory.member(creator)
        alice_customer = await factory.member(creator, referred_by=alice)
        bob_customer = await factory.member(creator, referred_by=bob)
        # 10% shares: 100.01 and 100.00
        await factory.referred_sale(alice, alice_customer, "1000.10")
        await factory.referred_sale(bob, bob_customer, "1000.00")

        service = RankingService(session)

        assert await service.get_global_earnings_rank(alice.id) == 1
        assert await service.get_global_earnings_rank(bob.id) == 2

    @pytest.mark.asyncio
    async def test_member_without_earnings_ranks_last(self, session, factory):
        """Test that everyone with earnings is ahead of a zero earner."""
        creator = await factory.creator()
        earner = await factory.member(creator)
        idle = await factory.member(creator)
        await factory.referred_sale(earner, await factory.member(creator, referred_by=earner), "50")

        assert await RankingService(session).get_global_earnings_rank(idle.id) == 2


class TestReferralRanks:
    """Test global and community referral ranks."""

    @pytest.mark.asyncio
    async def test_global_and_community_ranks(self, session, factory):
        """Test that the community rank only counts the member's creator."""
        home = await factory.creator()
        away = await factory.creator()
        subject = await factory.member(home, total_referred=5)
        await factory.member(home, total_referred=8)
        await factory.member(home, total_referred=5)
        await factory.member(away, total_referred=12)
        await factory.member(away, total_referred=9)

        rankings = await RankingService(session).get_member_rankings(subject.id, home.id)

        assert rankings.global_referrals_rank == 4
        assert rankings.community_rank == 2
        assert rankings.global_earnings_rank == 1

    @pytest.mark.asyncio
    async def test_unknown_member_has_no_ranks(self, session):
        """Test that ranks degrade to None for a missing member."""
        rankings = await RankingService(session).get_member_rankings(999_999, 1)

        assert rankings == MemberRankings()


class TestRankingsOnDashboard:
    """Test rankings as a dashboard branch."""

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, session_maker, factory, monkeypatch):
        """Test that a dropped connection is retried before ranks degrade."""
        creator = await factory.creator()
        earner = await factory.member(creator)
        await factory.referred_sale(earner, await factory.member(creator, referred_by=earner), "50")

        compute_rank = RankingService.get_global_earnings_rank
        calls = []

        async def flaky_rank(self, member_id):
            calls.append(member_id)
            if len(calls) == 1:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return await compute_rank(self, member_id)

        monkeypatch.setattr(RankingService, "get_global_earnings_rank", flaky_rank)

        dashboard = await DashboardService(session_maker).get_member_dashboard(
            earner.membership_id
        )

        assert calls == [earner.id, earner.id]
        assert dashboard.global_earnings_rank == 1
        assert dashboard.community_rank == 1

    @pytest.mark.asyncio
    async def test_persistent_failure_degrades(self, session_maker, factory, monkeypatch):
        """Test that ranks are empty once retries are exhausted."""
        creator = await factory.creator()
        member = await factory.member(creator)

        async def broken_rank(self, member_id):
            raise OperationalError("SELECT", {}, Exception("connection reset"))

        monkeypatch.setattr(RankingService, "get_global_earnings_rank", broken_rank)

        dashboard = await DashboardService(session_maker).get_member_dashboard(
            member.membership_id
        )

        assert dashboard.global_earnings_rank is None
        assert dashboard.community_rank is None
        assert dashboard.member_id == member.id
