"""
Dashboard composers.

Builds one read model per persona by running the aggregation,
ranking and value queries concurrently.

Join policy:
- Subject resolution and core sums are load-bearing: an error fails
  the whole composition and cancels the sibling queries.
- Rankings, history, referral lists and leaderboards are decorative:
  an error is logged and replaced by an empty default.

Each branch opens its own session (an AsyncSession must not be used
by concurrent tasks) and goes through the retrying query boundary.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.business_constants import ZERO
from app.models.enums import ReferralRewardTier
from app.services.commission.reward_tiers import calculate_member_reward_tier
from app.services.commission.tiered_commission import TierProgress, get_next_tier_info
from app.services.creator_stats_service import (
    CreatorRevenueStats,
    CreatorStatsService,
    TopPerformer,
    TopPerformerContribution,
)
from app.services.member_stats_service import (
    EarningsPoint,
    MemberStatsService,
    ReferralSummary,
)
from app.services.ranking_service import MemberRankings, RankingService
from app.services.value_metrics_service import ValueMetrics, ValueMetricsService
from app.utils.datetime_utils import (
    current_month_period,
    previous_month_period,
    start_of_next_month,
    utc_now,
)
from app.utils.db_retry import call_with_retry

T = TypeVar("T")

# Lower bound for all-time value metrics
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass
class MemberDashboard:
    """Member dashboard read model."""

    member_id: int
    membership_id: str
    username: str
    referral_code: str
    lifetime_earnings: Decimal
    monthly_earnings: Decimal
    monthly_trend: Decimal
    total_referred: int
    monthly_referred: int
    global_earnings_rank: int | None
    global_referrals_rank: int | None
    community_rank: int | None
    commission_tier: str
    tier_progress: TierProgress
    reward_tier: ReferralRewardTier | None
    earnings_history: list[EarningsPoint] = field(default_factory=list)
    referrals: list[ReferralSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict."""
        return asdict(self)


@dataclass
class CreatorDashboard:
    """Creator dashboard read model."""

    creator_id: int
    company_name: str
    revenue_stats: CreatorRevenueStats
    top_earners: list[TopPerformer] = field(default_factory=list)
    top_referrers: list[TopPerformer] = field(default_factory=list)
    top_performer_contribution: TopPerformerContribution | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict."""
        return asdict(self)


@dataclass
class CreatorValueOverview:
    """Program value for the current month, last month and all time."""

    creator_id: int
    company_name: str
    current_month: ValueMetrics
    last_month: ValueMetrics
    all_time: ValueMetrics

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict."""
        return asdict(self)


class DashboardService:
    """Concurrent dashboard composition."""

    def __init__(
        self, session_maker: async_sessionmaker[AsyncSession] | None = None
    ) -> None:
        """
        Initialize dashboard service.

        Args:
            session_maker: Session factory (default: app.config.database)
        """
        if session_maker is None:
            from app.config.database import async_session_maker

            session_maker = async_session_maker
        self.session_maker = session_maker
        self.logger = logger.bind(service=self.__class__.__name__)

    async def _query(
        self, name: str, query: Callable[[AsyncSession], Awaitable[T]]
    ) -> T:
        async def attempt() -> T:
            async with self.session_maker() as session:
                return await query(session)

        return await call_with_retry(attempt, operation_name=name)

    async def _run_load_bearing(
        self, name: str, query: Callable[[AsyncSession], Awaitable[T]]
    ) -> T:
        """Run a query whose failure fails the composition."""
        return await self._query(name, query)

    async def _run_decorative(
        self,
        name: str,
        query: Callable[[AsyncSession], Awaitable[T]],
        default: T,
    ) -> T:
        """Run a query whose failure degrades to default."""
        try:
            return await self._query(name, query)
        except Exception as e:
            self.logger.warning(
                "{} failed, using default: {}: {}", name, type(e).__name__, e
            )
            return default

    @staticmethod
    async def _join(*coros: Awaitable[Any]) -> list[Any]:
        """
        Await all branches; on the first error cancel the rest and re-raise.
        """
        tasks = [asyncio.ensure_future(coro) for coro in coros]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def get_member_dashboard(self, membership_id: str) -> MemberDashboard:
        """
        Compose the member dashboard.

        Args:
            membership_id: External membership ID

        Returns:
            MemberDashboard

        Raises:
            MemberNotFoundError: If the membership does not resolve
            TransientStoreError: If load-bearing queries keep failing
        """
        member = await self._run_load_bearing(
            "resolve member",
            lambda s: MemberStatsService(s).get_member_by_membership_id(membership_id),
        )
        member_id = member.id
        creator_id = member.creator_id
        total_referred = member.total_referred

        async def reward_tier(session: AsyncSession) -> ReferralRewardTier:
            creator = await CreatorStatsService(session).get_creator(creator_id)
            return calculate_member_reward_tier(total_referred, creator.reward_thresholds)

        stats, rankings, history, referrals, reward = await self._join(
            self._run_load_bearing(
                "member stats",
                lambda s: MemberStatsService(s).get_member_stats(member_id),
            ),
            self._run_decorative(
                "member rankings",
                lambda s: RankingService(s).get_member_rankings(
                    member_id, creator_id, raise_transient=True
                ),
                MemberRankings(),
            ),
            self._run_decorative(
                "earnings history",
                lambda s: MemberStatsService(s).get_member_earnings_history(member_id),
                [],
            ),
            self._run_decorative(
                "member referrals",
                lambda s: MemberStatsService(s).get_member_referrals(member_id),
                [],
            ),
            self._run_decorative("reward tier", reward_tier, None),
        )

        return MemberDashboard(
            member_id=stats.member_id,
            membership_id=stats.membership_id,
            username=stats.username,
            referral_code=stats.referral_code,
            lifetime_earnings=stats.lifetime_earnings,
            monthly_earnings=stats.monthly_earnings,
            monthly_trend=stats.monthly_trend,
            total_referred=stats.total_referred,
            monthly_referred=stats.monthly_referred,
            global_earnings_rank=rankings.global_earnings_rank,
            global_referrals_rank=rankings.global_referrals_rank,
            community_rank=rankings.community_rank,
            commission_tier=stats.current_tier,
            tier_progress=get_next_tier_info(stats.paid_referral_count),
            reward_tier=reward,
            earnings_history=history,
            referrals=referrals,
        )

    async def get_creator_dashboard(self, product_id: str) -> CreatorDashboard:
        """
        Compose the creator dashboard.

        Args:
            product_id: External product ID

        Returns:
            CreatorDashboard

        Raises:
            CreatorNotFoundError: If the product does not resolve
            TransientStoreError: If load-bearing queries keep failing
        """
        creator = await self._run_load_bearing(
            "resolve creator",
            lambda s: CreatorStatsService(s).get_creator_by_product_id(product_id),
        )
        creator_id = creator.id

        revenue, top_earners, top_referrers, contribution = await self._join(
            self._run_load_bearing(
                "creator revenue",
                lambda s: CreatorStatsService(s).get_creator_revenue_stats(creator_id),
            ),
            self._run_decorative(
                "top earners",
                lambda s: CreatorStatsService(s).get_creator_top_performers(
                    creator_id, sort_by="earnings"
                ),
                [],
            ),
            self._run_decorative(
                "top referrers",
                lambda s: CreatorStatsService(s).get_creator_top_performers(
                    creator_id, sort_by="referrals"
                ),
                [],
            ),
            self._run_decorative(
                "top performer contribution",
                lambda s: CreatorStatsService(s).get_creator_top_performer_contribution(
                    creator_id
                ),
                TopPerformerContribution(ZERO, ZERO, ZERO),
            ),
        )

        return CreatorDashboard(
            creator_id=creator_id,
            company_name=creator.company_name,
            revenue_stats=revenue,
            top_earners=top_earners,
            top_referrers=top_referrers,
            top_performer_contribution=contribution,
        )

    async def get_creator_value_overview(self, company_id: str) -> CreatorValueOverview:
        """
        Compose value metrics for the current month, last month and all time.

        Args:
            company_id: External company ID

        Returns:
            CreatorValueOverview

        Raises:
            CreatorNotFoundError: If the company does not resolve
        """
        creator = await self._run_load_bearing(
            "resolve creator",
            lambda s: CreatorStatsService(s).get_creator_by_company_id(company_id),
        )
        creator_id = creator.id
        now = utc_now()
        windows = (
            current_month_period(now),
            previous_month_period(now),
            (EPOCH, start_of_next_month(now)),
        )

        def metrics_query(start: datetime, end: datetime):
            return lambda s: ValueMetricsService(s).calculate_value_metrics(
                creator_id, start, end
            )

        current, last, all_time = await self._join(
            *(
                self._run_load_bearing("value metrics", metrics_query(start, end))
                for start, end in windows
            )
        )

        return CreatorValueOverview(
            creator_id=creator_id,
            company_name=creator.company_name,
            current_month=current,
            last_month=last,
            all_time=all_time,
        )
