"""
Single source of truth for commission tier configuration.

Creator always keeps 70%. Higher tiers move part of the platform
share to the referring member. Tier upgrades are driven by PAID
referrals (referred members with at least one paid commission).
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from app.config.business_constants import (
    BASE_CREATOR_RATE,
    BASE_MEMBER_RATE,
    BASE_PLATFORM_RATE,
)


class CommissionTierName(str, Enum):
    """Commission tier names."""

    STARTER = "starter"
    AMBASSADOR = "ambassador"
    ELITE = "elite"


class CommissionTier(NamedTuple):
    """Commission tier configuration."""

    tier_name: CommissionTierName
    min_referrals: int  # Minimum paid referrals to qualify
    member_rate: Decimal
    platform_rate: Decimal
    creator_rate: Decimal
    requires_paid_referrals: bool
    display_name: str


COMMISSION_TIERS: tuple[CommissionTier, ...] = (
    CommissionTier(
        tier_name=CommissionTierName.STARTER,
        min_referrals=0,
        member_rate=BASE_MEMBER_RATE,  # 10%
        platform_rate=BASE_PLATFORM_RATE,  # 20%
        creator_rate=BASE_CREATOR_RATE,  # 70%
        requires_paid_referrals=False,
        display_name="Starter",
    ),
    CommissionTier(
        tier_name=CommissionTierName.AMBASSADOR,
        min_referrals=50,
        member_rate=Decimal("0.15"),
        platform_rate=Decimal("0.15"),
        creator_rate=BASE_CREATOR_RATE,
        requires_paid_referrals=True,
        display_name="Ambassador",
    ),
    CommissionTier(
        tier_name=CommissionTierName.ELITE,
        min_referrals=100,
        member_rate=Decimal("0.18"),
        platform_rate=Decimal("0.12"),
        creator_rate=BASE_CREATOR_RATE,
        requires_paid_referrals=True,
        display_name="Elite",
    ),
)


def _validate_tiers(tiers: tuple[CommissionTier, ...]) -> None:
    """Check tier table is ordered, monotonic and sums to 100%."""
    if not tiers or tiers[0].min_referrals != 0:
        raise ValueError("First commission tier must start at 0 referrals")

    previous: CommissionTier | None = None
    for tier in tiers:
        total = tier.member_rate + tier.platform_rate + tier.creator_rate
        if abs(total - 1) > Decimal("0.001"):
            raise ValueError(
                f"{tier.tier_name.value} commission rates must sum to 100%, got {total * 100}%"
            )
        if tier.creator_rate != BASE_CREATOR_RATE:
            raise ValueError(
                f"{tier.tier_name.value} creator rate must be {BASE_CREATOR_RATE * 100}%"
            )
        if previous is not None:
            if tier.min_referrals <= previous.min_referrals:
                raise ValueError("Commission tier thresholds must be strictly increasing")
            if tier.member_rate < previous.member_rate:
                raise ValueError("Commission tier member rates must not decrease")
        previous = tier


_validate_tiers(COMMISSION_TIERS)
