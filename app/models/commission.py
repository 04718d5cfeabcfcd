"""
Commission model.

One row per completed sale. The commission ledger is the single
source of truth for earnings and revenue.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
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
from app.models.enums import CommissionStatus, PaymentType
from app.models.types import MoneyType, RateType


if TYPE_CHECKING:
    from app.models.creator import Creator
    from app.models.invoice import Invoice
    from app.models.member import Member


class Commission(Base):
    """
    Commission entity.

    Three-way split of a sale: member / creator / platform.
    For paid rows member_share + creator_share + platform_share
    equals sale_amount. Rows are immutable once paid except for
    the invoicing flags.

    Attributes:
        id: Primary key
        member_id: Referring member credited with member_share
        creator_id: Community owner
        customer_membership_id: Membership id of the paying customer
        sale_amount: Gross sale amount
        member_share: Referrer share
        creator_share: Creator share
        platform_share: Platform share
        status: pending / paid / refunded / failed
        payment_type: initial / recurring
        applied_tier: Commission tier used for the split
        member_rate: Member rate used for the split
        created_at: Sale time
        platform_fee_invoiced: Whether the platform fee was invoiced
        invoice_id: Invoice the fee was billed on
    """

    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint(
            "sale_amount >= 0", name="check_commission_sale_amount_non_negative"
        ),
        Index("ix_commissions_member_status", "member_id", "status"),
        Index(
            "ix_commissions_creator_status_created",
            "creator_id",
            "status",
            "created_at",
        ),
        Index(
            "ix_commissions_uninvoiced",
            "creator_id",
            "platform_fee_invoiced",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    member_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_membership_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        comment="Membership id of the paying customer",
    )

    # Split
    sale_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    member_share: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    creator_share: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    platform_share: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CommissionStatus.PAID.value,
        index=True,
    )
    payment_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentType.INITIAL.value
    )
    applied_tier: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CommissionTierName.STARTER.value
    )
    member_rate: Mapped[Decimal] = mapped_column(
        RateType, nullable=False, default=Decimal("0.10")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    # Invoicing flags
    platform_fee_invoiced: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    invoice_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("invoices.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    member: Mapped["Member"] = relationship("Member")
    creator: Mapped["Creator"] = relationship("Creator")
    invoice: Mapped["Invoice | None"] = relationship(
        "Invoice", back_populates="commissions"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, member_id={self.member_id}, "
            f"sale={self.sale_amount}, status={self.status})>"
        )

    @property
    def split_total(self) -> Decimal:
        """Sum of the three shares."""
        return self.member_share + self.creator_share + self.platform_share
