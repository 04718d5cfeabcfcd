"""
Creator repository.

Data access layer for Creator model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.creator import Creator
from app.repositories.base import BaseRepository


class CreatorRepository(BaseRepository[Creator]):
    """Creator repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize creator repository."""
        super().__init__(Creator, session)

    async def get_by_company_id(self, company_id: str) -> Creator | None:
        """Get creator by external company ID."""
        return await self.get_by(company_id=company_id)

    async def get_by_product_id(self, product_id: str) -> Creator | None:
        """Get creator by external product ID."""
        return await self.get_by(product_id=product_id)

    async def find_invoiceable(self) -> list[Creator]:
        """
        Get creators eligible for platform fee invoicing.

        Returns:
            Active creators with invoicing enabled, ordered by ID
        """
        stmt = (
            select(Creator)
            .where(
                and_(
                    Creator.is_active == True,  # noqa: E712
                    Creator.invoicing_enabled == True,  # noqa: E712
                )
            )
            .order_by(Creator.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_active_ids(self) -> list[int]:
        """Get IDs of active creators."""
        stmt = (
            select(Creator.id)
            .where(Creator.is_active == True)  # noqa: E712
            .order_by(Creator.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_revenue_cache(
        self,
        creator_id: int,
        total_revenue: Decimal,
        monthly_revenue: Decimal,
        cached_at: datetime,
    ) -> None:
        """
        Overwrite the cached revenue fields.

        Args:
            creator_id: Creator ID
            total_revenue: Recomputed all-time revenue
            monthly_revenue: Recomputed current-month revenue
            cached_at: Refresh time
        """
        stmt = (
            update(Creator)
            .where(Creator.id == creator_id)
            .values(
                total_revenue=total_revenue,
                monthly_revenue=monthly_revenue,
                revenue_cached_at=cached_at,
            )
        )
        await self.session.execute(stmt)

    async def add_invoiced_totals(
        self,
        creator_id: int,
        invoiced: Decimal,
        referred: Decimal,
        invoiced_at: datetime,
    ) -> None:
        """
        Increment lifetime invoicing counters atomically.

        first_invoice_date is set only if it is still empty.

        Args:
            creator_id: Creator ID
            invoiced: Platform fee invoiced
            referred: Referred revenue the fee was computed on
            invoiced_at: Invoice time
        """
        stmt = (
            update(Creator)
            .where(Creator.id == creator_id)
            .values(
                lifetime_invoiced=Creator.lifetime_invoiced + invoiced,
                lifetime_referred=Creator.lifetime_referred + referred,
                first_invoice_date=func.coalesce(
                    Creator.first_invoice_date, invoiced_at
                ),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
