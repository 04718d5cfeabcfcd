"""
Tiered commission resolver and split calculator.

Maps a member's lifetime paid-referral count to a rate bracket and
splits sales three ways using that bracket. Pure functions, no I/O.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.config.business_constants import MONEY_QUANTUM
from app.config.commission_tiers import (
    COMMISSION_TIERS,
    CommissionTier,
    CommissionTierName,
)
from app.utils.validation import validate_sale_amount


@dataclass(frozen=True)
class TierProgress:
    """Progress toward the next commission tier."""

    current_tier: CommissionTier
    next_tier: CommissionTier | None
    next_threshold: int | None
    next_member_rate: Decimal | None
    referrals_needed: int
    progress_percent: int
    is_max_tier: bool


@dataclass(frozen=True)
class CommissionSplit:
    """Three-way split of one sale."""

    sale_amount: Decimal
    member_share: Decimal
    creator_share: Decimal
    platform_share: Decimal
    applied_tier: CommissionTierName
    member_rate: Decimal
    platform_rate: Decimal
    creator_rate: Decimal

    @property
    def total(self) -> Decimal:
        """Sum of the shares (equals sale_amount)."""
        return self.member_share + self.creator_share + self.platform_share


@dataclass(frozen=True)
class TierUpgrade:
    """Result of comparing a stored tier with the tier a count earns."""

    should_upgrade: bool
    new_tier: CommissionTier | None
    rate_increase: Decimal


def resolve_tier(lifetime_paid_referrals: int) -> CommissionTier:
    """
    Resolve the commission tier for a paid-referral count.

    Args:
        lifetime_paid_referrals: Referred members with at least one paid commission

    Returns:
        Highest tier whose threshold is reached (starter for counts below 0)
    """
    for tier in reversed(COMMISSION_TIERS):
        if lifetime_paid_referrals >= tier.min_referrals:
            return tier
    return COMMISSION_TIERS[0]


def get_tier_by_name(tier_name: str | CommissionTierName) -> CommissionTier:
    """
    Get tier configuration by name.

    Unknown names fall back to the starter tier.
    """
    name = tier_name.value if isinstance(tier_name, CommissionTierName) else tier_name
    for tier in COMMISSION_TIERS:
        if tier.tier_name.value == name:
            return tier
    return COMMISSION_TIERS[0]


def get_next_tier_info(lifetime_paid_referrals: int) -> TierProgress:
    """
    Get progress toward the next tier, for progress bars.

    Args:
        lifetime_paid_referrals: Referred members with at least one paid commission

    Returns:
        TierProgress; at the top tier next_tier is None, is_max_tier is
        True, referrals_needed is 0 and progress_percent is 100
    """
    current = resolve_tier(lifetime_paid_referrals)
    index = COMMISSION_TIERS.index(current)

    if index + 1 >= len(COMMISSION_TIERS):
        return TierProgress(
            current_tier=current,
            next_tier=None,
            next_threshold=None,
            next_member_rate=None,
            referrals_needed=0,
            progress_percent=100,
            is_max_tier=True,
        )

    next_tier = COMMISSION_TIERS[index + 1]
    range_size = next_tier.min_referrals - current.min_referrals
    progress_in_range = lifetime_paid_referrals - current.min_referrals
    percent = int(
        (Decimal(progress_in_range) / Decimal(range_size) * 100).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )

    return TierProgress(
        current_tier=current,
        next_tier=next_tier,
        next_threshold=next_tier.min_referrals,
        next_member_rate=next_tier.member_rate,
        referrals_needed=next_tier.min_referrals - lifetime_paid_referrals,
        progress_percent=max(0, min(100, percent)),
        is_max_tier=False,
    )


def _share(amount: Decimal, rate: Decimal) -> Decimal:
    return (amount * rate).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def calculate_tiered_commission(
    sale_amount: Decimal | int | float | str,
    referral_count: int,
) -> CommissionSplit:
    """
    Split a sale using the tier earned by referral_count.

    Each share is rounded to cents; the platform share absorbs the
    rounding difference so the shares always add up to the sale.

    Args:
        sale_amount: Gross sale amount
        referral_count: Referrer's lifetime paid-referral count

    Returns:
        CommissionSplit

    Raises:
        ValidationError: If sale_amount is negative, non-finite or above 1,000,000
    """
    amount = validate_sale_amount(sale_amount).quantize(
        MONEY_QUANTUM, rounding=ROUND_HALF_UP
    )
    tier = resolve_tier(referral_count)

    member_share = _share(amount, tier.member_rate)
    creator_share = _share(amount, tier.creator_rate)
    platform_share = _share(amount, tier.platform_rate)
    platform_share += amount - (member_share + creator_share + platform_share)

    return CommissionSplit(
        sale_amount=amount,
        member_share=member_share,
        creator_share=creator_share,
        platform_share=platform_share,
        applied_tier=tier.tier_name,
        member_rate=tier.member_rate,
        platform_rate=tier.platform_rate,
        creator_rate=tier.creator_rate,
    )


def calculate_commission(sale_amount: Decimal | int | float | str) -> CommissionSplit:
    """Split a sale at the starter (base) rates."""
    return calculate_tiered_commission(sale_amount, 0)


def check_tier_upgrade(
    current_tier_name: str | CommissionTierName,
    lifetime_paid_referrals: int,
) -> TierUpgrade:
    """
    Check whether a member's stored tier is behind their referral count.

    Args:
        current_tier_name: Tier stored on the member
        lifetime_paid_referrals: Current paid-referral count

    Returns:
        TierUpgrade with the member rate gained; never a downgrade
    """
    earned = resolve_tier(lifetime_paid_referrals)
    current = get_tier_by_name(current_tier_name)

    if COMMISSION_TIERS.index(earned) <= COMMISSION_TIERS.index(current):
        return TierUpgrade(should_upgrade=False, new_tier=None, rate_increase=Decimal("0"))

    return TierUpgrade(
        should_upgrade=True,
        new_tier=earned,
        rate_increase=earned.member_rate - current.member_rate,
    )


def format_rate_as_percent(rate: Decimal) -> str:
    """Format a rate like 0.15 as '15%'."""
    return f"{(rate * 100):.0f}%"
