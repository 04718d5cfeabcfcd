"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
import tempfile
from pathlib import Path

# Settings are read at import time: point them at a throwaway database
_TEST_DIR = Path(tempfile.mkdtemp(prefix="referral_engine_tests_"))
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR / 'default.db'}"
os.environ["LOG_DIR"] = str(_TEST_DIR / "logs")
os.environ["QUERY_RETRY_BASE_DELAY"] = "0"

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import itertools
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from app.config.database import create_session_maker
from app.models import Base, Commission, Creator, Member
from app.models.enums import CommissionStatus, MemberOrigin
from app.services.commission import calculate_tiered_commission
from app.utils.datetime_utils import start_of_month, utc_now
from app.utils.money import round_money


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with the schema created."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest.fixture
async def session(session_maker):
    """Database session for one test."""
    async with session_maker() as db_session:
        yield db_session


@pytest.fixture
def this_month():
    """A moment inside the current calendar month (never in the future)."""
    now = utc_now()
    return max(start_of_month(now), now - timedelta(minutes=5))


@pytest.fixture
def last_month():
    """A moment inside the previous calendar month."""
    return start_of_month() - timedelta(days=3)


class LedgerFactory:
    """Creates committed creators, members and commissions."""

    _ids = itertools.count(1)

    def __init__(self, session):
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def creator(self, **overrides) -> Creator:
        n = next(self._ids)
        data = {
            "company_id": f"biz_{n}",
            "product_id": f"prod_{n}",
            "company_name": f"Creator {n}",
        }
        data.update(overrides)
        return await self._save(Creator(**data))

    async def member(
        self, creator: Creator, referred_by: Member | None = None, **overrides
    ) -> Member:
        n = next(self._ids)
        data = {
            "membership_id": f"mem_{n}",
            "username": f"member{n}",
            "referral_code": f"CODE-{n:06d}",
            "creator_id": creator.id,
            "referred_by_id": referred_by.id if referred_by else None,
            "member_origin": (
                MemberOrigin.REFERRED.value if referred_by else MemberOrigin.ORGANIC.value
            ),
        }
        data.update(overrides)
        return await self._save(Member(**data))

    async def referred_sale(
        self,
        referrer: Member,
        customer: Member,
        amount: str | Decimal,
        created_at: datetime | None = None,
        status: CommissionStatus = CommissionStatus.PAID,
    ) -> Commission:
        """Sale by a referred customer, credited to the referrer."""
        split = calculate_tiered_commission(amount, referrer.paid_referral_count)
        return await self._save(
            Commission(
                member_id=referrer.id,
                creator_id=customer.creator_id,
                customer_membership_id=customer.membership_id,
                sale_amount=split.sale_amount,
                member_share=split.member_share,
                creator_share=split.creator_share,
                platform_share=split.platform_share,
                applied_tier=split.applied_tier.value,
                member_rate=split.member_rate,
                status=status.value,
                created_at=created_at or utc_now(),
            )
        )

    async def organic_sale(
        self,
        customer: Member,
        amount: str | Decimal,
        created_at: datetime | None = None,
    ) -> Commission:
        """Sale with no referrer: no member share."""
        sale = round_money(amount)
        platform_share = round_money(sale * Decimal("0.20"))
        return await self._save(
            Commission(
                member_id=customer.id,
                creator_id=customer.creator_id,
                customer_membership_id=customer.membership_id,
                sale_amount=sale,
                member_share=Decimal("0"),
                creator_share=sale - platform_share,
                platform_share=platform_share,
                created_at=created_at or utc_now(),
            )
        )


@pytest.fixture
def factory(session):
    """Ledger row factory bound to the test session."""
    return LedgerFactory(session)
