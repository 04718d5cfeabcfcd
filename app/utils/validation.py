"""
Input validation utilities.

Validators raise ValidationError with a descriptive reason; nothing
is mutated before validation passes.
"""

import math
import re
from decimal import Decimal, InvalidOperation

from app.config.business_constants import MAX_SALE_AMOUNT, REFERRAL_CODE_PATTERN
from app.utils.exceptions import ValidationError


_REFERRAL_CODE_RE = re.compile(REFERRAL_CODE_PATTERN)


def validate_sale_amount(amount: Decimal | int | float | str) -> Decimal:
    """
    Validate and normalize a sale amount.

    Args:
        amount: Sale amount

    Returns:
        Amount as Decimal

    Raises:
        ValidationError: If amount is not a finite number in [0, 1,000,000]
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Invalid sale amount: {amount!r}")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValidationError(f"Invalid sale amount: {amount}. Must be a finite number.")

    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid sale amount: {amount!r}") from e

    if not value.is_finite():
        raise ValidationError(f"Invalid sale amount: {amount}. Must be a finite number.")
    if value < 0:
        raise ValidationError(f"Invalid sale amount: {amount}. Cannot be negative.")
    if value > MAX_SALE_AMOUNT:
        raise ValidationError(
            f"Sale amount exceeds maximum: {amount}. Maximum allowed is {MAX_SALE_AMOUNT}."
        )
    return value


def validate_referral_code(code: str) -> str:
    """
    Validate a member-chosen referral code.

    Args:
        code: Raw referral code

    Returns:
        Code with surrounding whitespace removed

    Raises:
        ValidationError: If the code is not 3-20 chars of A-Z, 0-9 or '-'
    """
    normalized = (code or "").strip()
    if not normalized:
        raise ValidationError("Referral code is required")
    if not _REFERRAL_CODE_RE.match(normalized):
        raise ValidationError(
            "Invalid code format. Use 3-20 characters "
            "(A-Z, 0-9, hyphens only)"
        )
    return normalized
