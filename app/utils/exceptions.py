"""
Exception handling utilities.

Defines the engine's exception taxonomy and categories used to
decide whether an error is retried, degraded or propagated.
"""

from sqlalchemy.exc import InterfaceError, OperationalError


class ReferralEngineError(Exception):
    """Base class for engine errors."""


class NotFoundError(ReferralEngineError):
    """Requested entity does not exist. Permanent, never retried."""

    entity = "Entity"

    def __init__(self, identifier: object) -> None:
        self.identifier = identifier
        super().__init__(f"{self.entity} not found: {identifier}")


class MemberNotFoundError(NotFoundError):
    """Member lookup failed."""

    entity = "Member"


class CreatorNotFoundError(NotFoundError):
    """Creator lookup failed."""

    entity = "Creator"


class TransientStoreError(ReferralEngineError):
    """Store unreachable or timed out after retries were exhausted."""


class BillingError(ReferralEngineError):
    """External billing system call failed."""


class ValidationError(ReferralEngineError, ValueError):
    """Input rejected before any mutation."""


class ReferralCodeTakenError(ValidationError):
    """Referral code already belongs to another member."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Referral code already taken: {code}")


# Exception categories based on handling strategy

# Retried with backoff at the query boundary
TRANSIENT = (
    OperationalError,
    InterfaceError,
    TimeoutError,
    TransientStoreError,
)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is a transient store failure.

    Args:
        exc: Exception to check

    Returns:
        True if the operation may succeed on retry
    """
    return isinstance(exc, TRANSIENT)

