"""
Creator-configured reward tiers.

Separate from commission tiers: each creator sets four referral
thresholds (Bronze..Platinum) for the rewards they hand out.
"""

from collections.abc import Sequence

from app.models.enums import ReferralRewardTier


_ORDERED_TIERS = (
    ReferralRewardTier.BRONZE,
    ReferralRewardTier.SILVER,
    ReferralRewardTier.GOLD,
    ReferralRewardTier.PLATINUM,
)


def calculate_member_reward_tier(
    total_referred: int, thresholds: Sequence[int]
) -> ReferralRewardTier:
    """
    Resolve a member's reward tier.

    Args:
        total_referred: Member's referral count
        thresholds: Creator's (tier1, tier2, tier3, tier4) referral counts

    Returns:
        Highest tier reached, Unranked below tier1

    Raises:
        ValueError: If thresholds does not hold exactly four counts
    """
    if len(thresholds) != len(_ORDERED_TIERS):
        raise ValueError(f"Expected 4 reward thresholds, got {len(thresholds)}")

    for tier, threshold in reversed(list(zip(_ORDERED_TIERS, thresholds))):
        if total_referred >= threshold:
            return tier
    return ReferralRewardTier.UNRANKED
