"""
Invoice repository.

Data access layer for Invoice model.
"""

from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.invoice import Invoice
from app.repositories.base import BaseRepository


class InvoiceRepository(BaseRepository[Invoice]):
    """Invoice repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize invoice repository."""
        super().__init__(Invoice, session)

    async def get_for_period(
        self, creator_id: int, period_start: datetime, period_end: datetime
    ) -> Invoice | None:
        """
        Get a creator's invoice for a billing period.

        Args:
            creator_id: Creator ID
            period_start: Period start
            period_end: Period end

        Returns:
            Invoice or None
        """
        stmt = select(Invoice).where(
            and_(
                Invoice.creator_id == creator_id,
                Invoice.period_start == period_start,
                Invoice.period_end == period_end,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_external_id(self, external_invoice_id: str) -> Invoice | None:
        """Get invoice by billing system ID."""
        return await self.get_by(external_invoice_id=external_invoice_id)
