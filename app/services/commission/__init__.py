"""
Commission calculations.

Tier resolution, sale splits, billing period normalization and
creator reward tiers.
"""

from app.services.commission.billing_period import (
    MrrImpact,
    calculate_monthly_value,
    calculate_mrr_impact,
    get_billing_period_label,
    normalize_billing_period,
)
from app.services.commission.reward_tiers import calculate_member_reward_tier
from app.services.commission.tiered_commission import (
    CommissionSplit,
    TierProgress,
    TierUpgrade,
    calculate_commission,
    calculate_tiered_commission,
    check_tier_upgrade,
    format_rate_as_percent,
    get_next_tier_info,
    get_tier_by_name,
    resolve_tier,
)


__all__ = [
    "CommissionSplit",
    "MrrImpact",
    "TierProgress",
    "TierUpgrade",
    "calculate_commission",
    "calculate_member_reward_tier",
    "calculate_monthly_value",
    "calculate_mrr_impact",
    "calculate_tiered_commission",
    "check_tier_upgrade",
    "format_rate_as_percent",
    "get_billing_period_label",
    "get_next_tier_info",
    "get_tier_by_name",
    "normalize_billing_period",
    "resolve_tier",
]
