"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for sale amounts, shares, revenue and invoices
# Precision: 18 digits total, 2 after decimal point
# Suitable for: USD amounts
# Range: up to 9,999,999,999,999,999.99
MoneyType = DECIMAL(18, 2)

# Commission rate type
# Precision: 5 digits total, 4 after decimal point
# Suitable for: split rates (e.g., 0.1000, 0.1500)
# Range: 0.0000 to 9.9999
RateType = DECIMAL(5, 4)

# Percentage type for growth figures stored on invoices
# Precision: 12 digits total, 2 after decimal point
PercentType = DECIMAL(12, 2)
