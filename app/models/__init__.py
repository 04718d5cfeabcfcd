"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.commission import Commission
from app.models.creator import Creator
from app.models.enums import (
    BillingPeriod,
    CommissionStatus,
    InvoiceStatus,
    MemberOrigin,
    PaymentType,
    ReferralRewardTier,
)
from app.models.invoice import Invoice
from app.models.member import Member


__all__ = [
    "Base",
    "BillingPeriod",
    "Commission",
    "CommissionStatus",
    "Creator",
    "Invoice",
    "InvoiceStatus",
    "Member",
    "MemberOrigin",
    "PaymentType",
    "ReferralRewardTier",
]
