"""
Subscription billing period helpers.

Normalizes annual and lifetime plans to a monthly equivalent so
recurring revenue sums are comparable across billing periods.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from app.models.enums import BillingPeriod, PaymentType
from app.utils.money import round_money, to_decimal


_PERIOD_LABELS = {
    BillingPeriod.MONTHLY: "Monthly subscription",
    BillingPeriod.ANNUAL: "Annual subscription",
    BillingPeriod.LIFETIME: "Lifetime access",
}


@dataclass(frozen=True)
class MrrImpact:
    """Effect of one payment on revenue and MRR."""

    add_to_total_revenue: bool
    add_to_mrr: bool
    monthly_value: Decimal | None
    description: str


def normalize_billing_period(period: str | None) -> BillingPeriod | None:
    """
    Map a free-form billing period to a BillingPeriod.

    Args:
        period: Raw period ("Month", "yearly", "forever", ...)

    Returns:
        BillingPeriod or None for one-time / unknown periods
    """
    if not period:
        return None
    normalized = period.lower().strip()
    if "month" in normalized:
        return BillingPeriod.MONTHLY
    if "annual" in normalized or "year" in normalized:
        return BillingPeriod.ANNUAL
    if "lifetime" in normalized or "forever" in normalized:
        return BillingPeriod.LIFETIME
    return None


def calculate_monthly_value(
    sale_amount: Decimal | int | float | str,
    billing_period: BillingPeriod | str | None,
) -> Decimal | None:
    """
    Monthly-equivalent value of a subscription price.

    Args:
        sale_amount: Nominal price
        billing_period: Billing period (None for one-time purchases)

    Returns:
        Amount for monthly plans, amount / 12 for annual plans,
        None for lifetime and one-time purchases
    """
    if not billing_period:
        return None

    try:
        period = BillingPeriod(billing_period)
    except ValueError:
        logger.warning(f"Unknown billing period: {billing_period}")
        return None

    amount = to_decimal(sale_amount)
    if period == BillingPeriod.MONTHLY:
        return round_money(amount)
    if period == BillingPeriod.ANNUAL:
        return round_money(amount / 12)
    # Lifetime access adds to revenue but has no recurring value
    return None


def get_billing_period_label(billing_period: BillingPeriod | str | None) -> str:
    """Human-readable billing period."""
    try:
        return _PERIOD_LABELS[BillingPeriod(billing_period)]
    except ValueError:
        return "One-time purchase"


def calculate_mrr_impact(
    sale_amount: Decimal | int | float | str,
    billing_period: BillingPeriod | str | None,
    payment_type: PaymentType | str,
) -> MrrImpact:
    """
    Describe how a payment affects revenue and MRR.

    Every payment counts toward total revenue; only initial payments
    of plans with a monthly value add to MRR (renewals keep it).
    """
    monthly_value = calculate_monthly_value(sale_amount, billing_period)
    return MrrImpact(
        add_to_total_revenue=True,
        add_to_mrr=monthly_value is not None and str(payment_type) == PaymentType.INITIAL.value,
        monthly_value=monthly_value,
        description=(
            f"+${monthly_value:.2f}/month to MRR"
            if monthly_value
            else "One-time revenue (no MRR impact)"
        ),
    )
