"""
Unit tests for value metrics and invoice eligibility.

Tests cover:
- Additional revenue, net benefit and ROI on the platform fee
- Growth against organic revenue
- The minimum invoice boundary
- Skipping creators without referred sales
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.repositories.commission_repository import CohortTotals
from app.services.value_metrics_service import (
    SKIP_BELOW_MINIMUM,
    SKIP_NO_REFERRED_SALES,
    build_value_metrics,
)

START = datetime(2026, 9, 1, tzinfo=UTC)
END = datetime(2026, 10, 1, tzinfo=UTC)
RATE = Decimal("0.20")
MINIMUM = Decimal("10.00")


def cohort(count, revenue, member_shares="0", creator_shares="0"):
    return CohortTotals(
        sales_count=count,
        revenue=Decimal(revenue),
        member_shares=Decimal(member_shares),
        creator_shares=Decimal(creator_shares),
    )


def metrics(organic, referred, **kwargs):
    kwargs.setdefault("fee_rate", RATE)
    kwargs.setdefault("minimum_invoice", MINIMUM)
    return build_value_metrics(1, START, END, organic, referred, **kwargs)


class TestValueCalculation:
    """Test program value figures."""

    def test_thousand_dollar_referred_month(self):
        """Test $1000 referred revenue with 10% member shares."""
        result = metrics(cohort(0, "0"), cohort(10, "1000", "100", "700"))

        assert result.additional_revenue_generated == Decimal("900.00")
        assert result.platform_fees_owed == Decimal("200.00")
        assert result.net_benefit == Decimal("700.00")
        assert result.roi_on_platform_fee == Decimal("4.5")
        assert result.should_invoice is True
        assert result.skip_reason is None

    def test_growth_against_organic_revenue(self):
        """Test growth as additional revenue over organic revenue."""
        result = metrics(cohort(20, "1800"), cohort(10, "1000", "100", "700"))

        assert result.revenue_without_app == Decimal("1800")
        assert result.revenue_with_app == Decimal("2700.00")
        assert result.percentage_growth == Decimal("50.00")
        assert result.total_sales_count == 30
        assert result.total_revenue == Decimal("2800")

    def test_growth_without_organic_revenue(self):
        """Test that growth is 100 when there was no organic revenue."""
        result = metrics(cohort(0, "0"), cohort(1, "100", "10"))

        assert result.percentage_growth == Decimal("100")

    def test_referral_rate_and_average_order(self):
        """Test referral rate and average order value."""
        result = metrics(cohort(3, "300"), cohort(1, "100", "10"))

        assert result.referral_rate == Decimal("25.00")
        assert result.average_order_value == Decimal("100.00")

    def test_new_member_counts(self):
        """Test that new member counts are carried through."""
        result = metrics(
            cohort(0, "0"),
            cohort(1, "100", "10"),
            new_members={"organic": 4, "referred": 2},
        )

        assert result.new_organic_members == 4
        assert result.new_referred_members == 2


class TestInvoiceEligibility:
    """Test when an invoice is due."""

    def test_no_referred_sales_always_skipped(self):
        """Test that organic revenue alone never triggers an invoice."""
        result = metrics(cohort(500, "100000"), cohort(0, "0"))

        assert result.should_invoice is False
        assert result.skip_reason == SKIP_NO_REFERRED_SALES
        assert result.platform_fees_owed == Decimal("0.00")
        assert result.roi_on_platform_fee == Decimal("0")

    def test_fee_just_below_minimum(self):
        """Test that a $9.99 fee is skipped."""
        result = metrics(cohort(0, "0"), cohort(1, "49.95", "5.00"))

        assert result.platform_fees_owed == Decimal("9.99")
        assert result.skip_reason == SKIP_BELOW_MINIMUM
        assert result.should_invoice is False

    def test_fee_at_minimum(self):
        """Test that a $10.00 fee is invoiced."""
        result = metrics(cohort(0, "0"), cohort(1, "50.00", "5.00"))

        assert result.platform_fees_owed == Decimal("10.00")
        assert result.should_invoice is True

    @pytest.mark.parametrize("rate,fee", [("0.10", "5.00"), ("0.30", "15.00")])
    def test_custom_fee_rate(self, rate, fee):
        """Test that the fee follows the configured rate."""
        result = metrics(cohort(0, "0"), cohort(1, "50", "5"), fee_rate=Decimal(rate))

        assert result.platform_fees_owed == Decimal(fee)
