"""
Creator model.

Community owner. Holds reward tier and competition configuration,
billing identifiers and invoicing counters.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.invoice import Invoice
    from app.models.member import Member


class Creator(Base):
    """
    Creator entity.

    total_revenue and monthly_revenue are a cache refreshed by the
    refresh_creator_revenue job. Business logic recomputes revenue
    from commissions and never reads them.

    Attributes:
        id: Primary key
        company_id: External company identifier (unique)
        product_id: External product identifier
        company_name: Display name
        is_active: Whether the community is live
        invoicing_enabled: Whether platform fees are invoiced
        tier1_count..tier4_count: Referrals needed for each reward tier
        tier1_reward..tier4_reward: Reward description for each tier
        competition_enabled: Custom competition switch
        competition_prize: Competition prize description
        competition_ends_at: Competition end time
        total_revenue: Cached all-time revenue (non-authoritative)
        monthly_revenue: Cached current-month revenue (non-authoritative)
        revenue_cached_at: When the cache was last refreshed
        billing_customer_id: Customer id in the billing system
        pending_refund_credit: Credit applied to the next invoice
        lifetime_invoiced: Total platform fees invoiced
        lifetime_referred: Total referred revenue invoiced on
        first_invoice_date: When the first invoice was issued
        created_at: Creation time
    """

    __tablename__ = "creators"
    __table_args__ = (
        CheckConstraint(
            "pending_refund_credit >= 0",
            name="check_creator_refund_credit_non_negative",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    company_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    invoicing_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    # Reward tiers
    tier1_count: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    tier1_reward: Mapped[str] = mapped_column(
        String(255), default="1 month free", nullable=False
    )
    tier2_count: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    tier2_reward: Mapped[str] = mapped_column(
        String(255), default="3 months free", nullable=False
    )
    tier3_count: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    tier3_reward: Mapped[str] = mapped_column(
        String(255), default="6 months free", nullable=False
    )
    tier4_count: Mapped[int] = mapped_column(Integer, default=20, nullable=False)
    tier4_reward: Mapped[str] = mapped_column(
        String(255), default="Lifetime access", nullable=False
    )

    # Custom competition
    competition_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    competition_prize: Mapped[str | None] = mapped_column(Text, nullable=True)
    competition_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Cached revenue
    total_revenue: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    monthly_revenue: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    revenue_cached_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Billing
    billing_customer_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    pending_refund_credit: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    lifetime_invoiced: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    lifetime_referred: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    first_invoice_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    members: Mapped[list["Member"]] = relationship(
        "Member", back_populates="creator"
    )
    invoices: Mapped[list["Invoice"]] = relationship(
        "Invoice", back_populates="creator"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Creator(id={self.id}, company_id={self.company_id!r})>"

    @property
    def reward_thresholds(self) -> tuple[int, int, int, int]:
        """Referral counts for reward tiers 1-4."""
        return (self.tier1_count, self.tier2_count, self.tier3_count, self.tier4_count)
