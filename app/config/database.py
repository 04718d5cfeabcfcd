"""
Database configuration.

Async engine and session factory shared by services and jobs.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create async engine.

    Args:
        database_url: Override for settings.database_url

    Returns:
        Configured AsyncEngine
    """
    url = database_url or settings.database_url
    kwargs: dict = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow
    return create_async_engine(url, **kwargs)


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """
    Create session maker.

    Args:
        engine: Engine to bind (defaults to the module engine)

    Returns:
        async_sessionmaker producing AsyncSession objects
    """
    return async_sessionmaker(
        bind=engine or async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
