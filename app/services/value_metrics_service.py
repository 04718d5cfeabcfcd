"""
Value metrics service.

Computes the value the referral program generated for a creator over
a date range and whether a platform fee invoice is due.

Paid commissions in the window are split into two cohorts by the
paying customer: referred (customer is a referred-origin member of
the creator) and organic (everything else).
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import FIRST_GROWTH_PERCENT, ZERO
from app.config.settings import settings
from app.models.enums import MemberOrigin
from app.repositories.commission_repository import CohortTotals, CommissionRepository
from app.repositories.creator_repository import CreatorRepository
from app.repositories.member_repository import MemberRepository
from app.services.base_service import BaseService
from app.utils.exceptions import CreatorNotFoundError
from app.utils.money import round_money, round_percent, safe_percent


SKIP_NO_REFERRED_SALES = "no_referred_sales"
SKIP_BELOW_MINIMUM = "below_minimum"


@dataclass
class ValueMetrics:
    """Program value for one creator and window."""

    creator_id: int
    period_start: datetime
    period_end: datetime

    organic_sales_count: int
    organic_revenue: Decimal
    referred_sales_count: int
    referred_revenue: Decimal
    total_sales_count: int
    total_revenue: Decimal

    organic_revenue_kept: Decimal
    referred_revenue_kept: Decimal
    total_revenue_kept: Decimal
    member_share_total: Decimal

    new_organic_members: int
    new_referred_members: int

    revenue_without_app: Decimal
    revenue_with_app: Decimal
    additional_revenue_generated: Decimal
    percentage_growth: Decimal

    platform_fees_owed: Decimal
    platform_fee_as_percent_of_gain: Decimal
    net_benefit: Decimal
    roi_on_platform_fee: Decimal

    average_order_value: Decimal
    referral_rate: Decimal

    should_invoice: bool
    skip_reason: str | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict."""
        return asdict(self)


def build_value_metrics(
    creator_id: int,
    period_start: datetime,
    period_end: datetime,
    organic: CohortTotals,
    referred: CohortTotals,
    new_members: dict[str, int] | None = None,
    fee_rate: Decimal | None = None,
    minimum_invoice: Decimal | None = None,
) -> ValueMetrics:
    """
    Derive value metrics from cohort totals.

    additional_revenue_generated is referred revenue net of the member
    shares paid out on it. The platform fee is fee_rate of referred
    revenue. An invoice is due when there are referred sales and the fee
    reaches minimum_invoice.

    Args:
        creator_id: Creator ID
        period_start: Window start
        period_end: Window end
        organic: Organic cohort totals
        referred: Referred cohort totals
        new_members: Members created in the window by origin
        fee_rate: Platform fee rate (default: settings.platform_fee_rate)
        minimum_invoice: Minimum fee to invoice (default: settings.minimum_invoice_amount)

    Returns:
        ValueMetrics
    """
    fee_rate = settings.platform_fee_rate if fee_rate is None else fee_rate
    minimum_invoice = (
        settings.minimum_invoice_amount if minimum_invoice is None else minimum_invoice
    )
    new_members = new_members or {}

    additional = round_money(referred.revenue - referred.member_shares)
    fee = round_money(referred.revenue * fee_rate)
    net_benefit = additional - fee
    roi = round_percent(additional / fee) if fee > 0 else ZERO

    revenue_without_app = organic.revenue
    if revenue_without_app > 0:
        growth = round_percent(additional / revenue_without_app * 100)
    else:
        growth = FIRST_GROWTH_PERCENT if additional > 0 else ZERO

    total_count = organic.sales_count + referred.sales_count
    total_revenue = organic.revenue + referred.revenue

    if referred.sales_count == 0:
        skip_reason: str | None = SKIP_NO_REFERRED_SALES
    elif fee < minimum_invoice:
        skip_reason = SKIP_BELOW_MINIMUM
    else:
        skip_reason = None

    return ValueMetrics(
        creator_id=creator_id,
        period_start=period_start,
        period_end=period_end,
        organic_sales_count=organic.sales_count,
        organic_revenue=organic.revenue,
        referred_sales_count=referred.sales_count,
        referred_revenue=referred.revenue,
        total_sales_count=total_count,
        total_revenue=total_revenue,
        organic_revenue_kept=organic.creator_shares,
        referred_revenue_kept=referred.creator_shares,
        total_revenue_kept=organic.creator_shares + referred.creator_shares,
        member_share_total=referred.member_shares,
        new_organic_members=new_members.get(MemberOrigin.ORGANIC.value, 0),
        new_referred_members=new_members.get(MemberOrigin.REFERRED.value, 0),
        revenue_without_app=revenue_without_app,
        revenue_with_app=revenue_without_app + additional,
        additional_revenue_generated=additional,
        percentage_growth=growth,
        platform_fees_owed=fee,
        platform_fee_as_percent_of_gain=safe_percent(fee, additional),
        net_benefit=net_benefit,
        roi_on_platform_fee=roi,
        average_order_value=(
            round_money(total_revenue / total_count) if total_count else ZERO
        ),
        referral_rate=safe_percent(Decimal(referred.sales_count), Decimal(total_count)),
        should_invoice=skip_reason is None,
        skip_reason=skip_reason,
    )


class ValueMetricsService(BaseService):
    """Creator value and invoice eligibility calculator."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize value metrics service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.creator_repo = CreatorRepository(session)
        self.member_repo = MemberRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def calculate_value_metrics(
        self,
        creator_id: int,
        start: datetime,
        end: datetime,
        include_invoiced: bool = True,
    ) -> ValueMetrics:
        """
        Compute program value for a creator over [start, end).

        Args:
            creator_id: Creator ID
            start: Window start (inclusive)
            end: Window end (exclusive)
            include_invoiced: Count referred commissions already invoiced.
                The invoice generator passes False so a period that was
                already billed shows no referred sales.

        Returns:
            ValueMetrics

        Raises:
            CreatorNotFoundError: If no creator has this ID
        """
        if await self.creator_repo.get_by_id(creator_id) is None:
            raise CreatorNotFoundError(creator_id)

        organic = await self.commission_repo.get_cohort_totals(
            creator_id, start, end, referred=False
        )
        referred = await self.commission_repo.get_cohort_totals(
            creator_id, start, end, referred=True, include_invoiced=include_invoiced
        )
        new_members = await self.member_repo.count_by_origin(creator_id, start, end)

        metrics = build_value_metrics(
            creator_id, start, end, organic, referred, new_members
        )
        self.logger.debug(
            f"Value metrics for creator {creator_id}: "
            f"referred ${metrics.referred_revenue} ({metrics.referred_sales_count} sales), "
            f"fee ${metrics.platform_fees_owed}, net ${metrics.net_benefit}",
            extra={"creator_id": creator_id, "skip_reason": metrics.skip_reason},
        )
        return metrics
