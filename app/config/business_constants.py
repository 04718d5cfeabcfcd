"""
Business logic constants for the referral engine.

Central location for commission rates, limits and invoicing rules.
This module can be imported by services, repositories and jobs
without circular dependencies.
"""

from decimal import Decimal

# Base split (starter tier): member / creator / platform
BASE_MEMBER_RATE = Decimal("0.10")
BASE_CREATOR_RATE = Decimal("0.70")
BASE_PLATFORM_RATE = Decimal("0.20")

# Sale amount limit
MAX_SALE_AMOUNT = Decimal("1000000")

# Monetary precision
MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")

# Earnings rank comparison tolerance (one cent)
EARNINGS_RANK_TOLERANCE = Decimal("0.01")

# Growth reported when the previous period had nothing
FIRST_GROWTH_PERCENT = Decimal("100")

# Platform fee invoicing defaults (overridable via settings)
DEFAULT_PLATFORM_FEE_RATE = Decimal("0.20")
DEFAULT_MINIMUM_INVOICE_AMOUNT = Decimal("10.00")

# Referral codes
REFERRAL_CODE_PATTERN = r"^[A-Z0-9-]{3,20}$"
GENERATED_REFERRAL_CODE_PATTERN = r"^[A-Z]+-[A-Z0-9]{6}$"
REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_SUFFIX_LENGTH = 6
REFERRAL_CODE_PREFIX_MAX_LENGTH = 10
REFERRAL_CODE_FALLBACK_PREFIX = "USER"

# Top performer contribution is computed over this many earners
TOP_PERFORMER_CONTRIBUTION_LIMIT = 10

if abs(BASE_MEMBER_RATE + BASE_CREATOR_RATE + BASE_PLATFORM_RATE - 1) > Decimal("0.001"):
    raise ValueError("Base commission rates must sum to 100%")
