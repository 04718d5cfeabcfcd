"""
Enumerations shared by models and services.

Stored as plain strings in the database (String columns), compared
through the enum values in code.
"""

from enum import StrEnum


class CommissionStatus(StrEnum):
    """Commission lifecycle status."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentType(StrEnum):
    """Whether a commission comes from the first or a renewal payment."""

    INITIAL = "initial"
    RECURRING = "recurring"


class MemberOrigin(StrEnum):
    """How a member joined the community."""

    ORGANIC = "organic"
    REFERRED = "referred"


class InvoiceStatus(StrEnum):
    """Platform fee invoice status."""

    PENDING = "pending"  # Created locally, not sent
    SENT = "sent"  # Sent to the creator by the billing system
    PAID = "paid"
    OVERDUE = "overdue"  # Payment failed


class BillingPeriod(StrEnum):
    """Normalized subscription billing period."""

    MONTHLY = "monthly"
    ANNUAL = "annual"
    LIFETIME = "lifetime"


class ReferralRewardTier(StrEnum):
    """Creator-configured reward tier reached by a member."""

    UNRANKED = "Unranked"
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
