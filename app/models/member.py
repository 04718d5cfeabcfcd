"""
Member model.

A participant of a creator community, organic or referred.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config.commission_tiers import CommissionTierName
from app.models.base import Base
from app.models.enums import MemberOrigin
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.creator import Creator


class Member(Base):
    """
    Member entity.

    Counters (total_referred, paid_referral_count) are projections of
    the members and commissions tables. They are written only by
    CounterService.recompute_member_counters.

    Attributes:
        id: Primary key
        membership_id: External membership identifier (unique)
        username: Display name
        email: Contact email
        referral_code: Public referral code (unique, member-editable)
        referred_by_id: Member who referred this one
        creator_id: Community this member belongs to
        member_origin: organic or referred
        total_referred: Members referred by this member
        paid_referral_count: Referred members with at least one paid commission
        current_tier: Commission tier name
        subscription_price: Nominal plan price
        billing_period: monthly / annual / lifetime (None if unknown)
        monthly_value: Monthly-equivalent price (None for one-time plans)
        created_at: Join time
    """

    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint(
            "total_referred >= 0", name="check_member_total_referred_non_negative"
        ),
        CheckConstraint(
            "paid_referral_count >= 0",
            name="check_member_paid_referrals_non_negative",
        ),
        Index("ix_members_creator_origin", "creator_id", "member_origin"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    membership_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )

    # Attribution
    referred_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_origin: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MemberOrigin.ORGANIC.value
    )

    # Derived counters
    total_referred: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    paid_referral_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    current_tier: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CommissionTierName.STARTER.value
    )

    # Subscription
    subscription_price: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True, comment="Nominal plan price"
    )
    billing_period: Mapped[str | None] = mapped_column(String(20), nullable=True)
    monthly_value: Mapped[Decimal | None] = mapped_column(
        MoneyType,
        nullable=True,
        comment="Monthly equivalent of subscription_price",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    # Relationships
    creator: Mapped["Creator"] = relationship("Creator", back_populates="members")
    referred_by: Mapped["Member | None"] = relationship(
        "Member", remote_side=[id], foreign_keys=[referred_by_id]
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Member(id={self.id}, membership_id={self.membership_id!r}, "
            f"code={self.referral_code!r}, origin={self.member_origin})>"
        )
