"""
Base service class.

Session handling, bound logging and transaction/timing decorators
shared by the engine services.
"""

import functools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


@dataclass
class ServiceResult:
    """
    Standard service result container.

    Returned where a failure is an expected outcome rather than an error
    (e.g. a billing event for an invoice this system never issued).
    """

    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None


class BaseService:
    """
    Base service class.

    Services receive one AsyncSession and never share it across
    concurrent tasks.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()


def transaction(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Wrap a service method in a transaction.

    Commits on success, rolls back and re-raises on exception.

    Usage:
        @transaction
        async def update_referral_code(self, member_id: int, code: str): ...
    """

    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except Exception as e:
            await self.rollback()
            self.logger.error(
                f"Transaction failed in {func.__name__}",
                extra={
                    "error": str(e),
                    "function": func.__name__,
                },
            )
            raise

    return wrapper


def log_operation(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Log method entry and exit with timing.

    Usage:
        @log_operation
        async def generate_monthly_invoices(self, period=None): ...
    """

    @functools.wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        start_time = time.monotonic()
        self.logger.info(
            f"Starting {func.__name__}",
            extra={
                "function": func.__name__,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            },
        )

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(time.monotonic() - start_time, 3),
                    "error": str(e),
                    "success": False,
                },
            )
            raise

        self.logger.info(
            f"Completed {func.__name__}",
            extra={
                "function": func.__name__,
                "duration_seconds": round(time.monotonic() - start_time, 3),
                "success": True,
            },
        )
        return result

    return wrapper
