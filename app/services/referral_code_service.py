"""
Referral code service.

Generates FIRSTNAME-XXXXXX codes and applies member-chosen codes
after format and uniqueness checks.
"""

import re
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    GENERATED_REFERRAL_CODE_PATTERN,
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_FALLBACK_PREFIX,
    REFERRAL_CODE_PREFIX_MAX_LENGTH,
    REFERRAL_CODE_SUFFIX_LENGTH,
)
from app.models.member import Member
from app.repositories.member_repository import MemberRepository
from app.services.base_service import BaseService, transaction
from app.utils.exceptions import (
    MemberNotFoundError,
    ReferralCodeTakenError,
    ValidationError,
)
from app.utils.validation import validate_referral_code


_GENERATED_CODE_RE = re.compile(GENERATED_REFERRAL_CODE_PATTERN)
_NAME_SPLIT_RE = re.compile(r"[\s@]")
_NON_LETTERS_RE = re.compile(r"[^A-Z]")

MAX_GENERATION_ATTEMPTS = 10


def generate_referral_code(name: str) -> str:
    """
    Generate a referral code from a display name or email.

    The prefix is the first word (before a space or '@'), uppercased,
    letters only, at most 10 characters; USER when nothing is left.

    Example:
        generate_referral_code("mike@example.com") -> "MIKE-A2X9K7"
    """
    first_word = _NAME_SPLIT_RE.split(name or "")[0]
    prefix = _NON_LETTERS_RE.sub("", first_word.upper())[:REFERRAL_CODE_PREFIX_MAX_LENGTH]
    suffix = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET)
        for _ in range(REFERRAL_CODE_SUFFIX_LENGTH)
    )
    return f"{prefix or REFERRAL_CODE_FALLBACK_PREFIX}-{suffix}"


def is_generated_referral_code(code: str) -> bool:
    """Check if code has the generated FIRSTNAME-XXXXXX shape."""
    return bool(_GENERATED_CODE_RE.match(code or ""))


class ReferralCodeService(BaseService):
    """Referral code generation and member edits."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize referral code service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.member_repo = MemberRepository(session)

    async def generate_unique_code(self, name: str) -> str:
        """
        Generate a code not used by any member.

        Args:
            name: Display name or email for the prefix

        Returns:
            Unused referral code

        Raises:
            ValidationError: If no free code was found
        """
        for _ in range(MAX_GENERATION_ATTEMPTS):
            code = generate_referral_code(name)
            if not await self.member_repo.exists(referral_code=code):
                return code
        raise ValidationError(
            f"Could not generate a unique referral code after "
            f"{MAX_GENERATION_ATTEMPTS} attempts"
        )

    @transaction
    async def update_referral_code(self, member_id: int, new_code: str) -> Member:
        """
        Replace a member's referral code.

        Args:
            member_id: Member ID
            new_code: Requested code (3-20 chars of A-Z, 0-9, '-')

        Returns:
            Updated member

        Raises:
            ValidationError: If the format is invalid
            ReferralCodeTakenError: If another member holds the code
            MemberNotFoundError: If no member has this ID
        """
        code = validate_referral_code(new_code)

        member = await self.member_repo.get_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)

        holder = await self.member_repo.get_by_referral_code(code)
        if holder is not None and holder.id != member.id:
            raise ReferralCodeTakenError(code)

        old_code = member.referral_code
        member.referral_code = code
        await self.session.flush()

        self.logger.info(
            "Referral code updated for member {}: {} -> {}",
            member.id,
            old_code,
            code,
        )
        return member
