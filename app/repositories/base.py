"""
Base repository.

Lookups, inserts and counts shared by the member, creator,
commission and invoice repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository over one ledger table.

    Repositories flush but never commit; the owning service or job
    decides the transaction boundary. Aggregations live in the
    concrete repositories.

    Example:
        class InvoiceRepository(BaseRepository[Invoice]):
            def __init__(self, session: AsyncSession):
                super().__init__(Invoice, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Get row by primary key (identity map first)."""
        return await self.session.get(self.model, id)

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get the row matching unique-column filters.

        Args:
            **filters: Column filters, e.g. membership_id="mem_1"

        Returns:
            Row or None
        """
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Insert a row.

        Args:
            **data: Column values

        Returns:
            Row flushed and refreshed, so server defaults and ID are loaded
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        """Count rows matching column filters."""
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """Check if any row matches column filters."""
        return await self.count(**filters) > 0
