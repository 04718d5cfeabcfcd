"""
Invoice model.

Monthly platform fee invoice, one per creator per billing period.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import InvoiceStatus
from app.models.types import MoneyType, PercentType


if TYPE_CHECKING:
    from app.models.commission import Commission
    from app.models.creator import Creator


class Invoice(Base):
    """
    Invoice entity.

    Attributes:
        id: Primary key
        creator_id: Invoiced creator
        period_start: Billing period start (inclusive)
        period_end: Billing period end (inclusive)
        status: pending / sent / paid / overdue
        total_amount: Platform fee owed before refund credit
        refund_credit_applied: Credit deducted from this invoice
        sales_count: Referred sales billed
        referred_sales_total: Referred revenue
        organic_sales_total: Organic revenue
        creator_gain_from_referrals: Referred revenue kept by creator
        total_revenue_with_app: Organic plus additional revenue
        total_revenue_without_app: Organic revenue
        additional_revenue: Revenue generated by the program
        percentage_growth: Growth over organic revenue
        external_invoice_id: Billing system invoice id
        external_invoice_url: Hosted invoice page
        due_date: Payment due date
        paid_at: Payment time
        created_at: Creation time
    """

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint(
            "creator_id",
            "period_start",
            "period_end",
            name="uq_invoice_creator_period",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("creators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    period_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    period_end: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvoiceStatus.PENDING.value,
        index=True,
    )

    # Totals
    total_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    refund_credit_applied: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    sales_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    referred_sales_total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    organic_sales_total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    creator_gain_from_referrals: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_revenue_with_app: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_revenue_without_app: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    additional_revenue: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    percentage_growth: Mapped[Decimal] = mapped_column(
        PercentType, default=Decimal("0"), nullable=False
    )

    # Billing system
    external_invoice_id: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True
    )
    external_invoice_url: Mapped[str | None] = mapped_column(
        String(1024), nullable=True
    )

    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    creator: Mapped["Creator"] = relationship("Creator", back_populates="invoices")
    commissions: Mapped[list["Commission"]] = relationship(
        "Commission", back_populates="invoice"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Invoice(id={self.id}, creator_id={self.creator_id}, "
            f"amount={self.total_amount}, status={self.status})>"
        )

    @property
    def amount_due(self) -> Decimal:
        """Fee after refund credit."""
        return max(self.total_amount - self.refund_credit_applied, Decimal("0"))
