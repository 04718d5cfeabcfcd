"""
Query boundary with timeout and retry logic.

Every store round trip issued by the dashboard composers goes through
call_with_retry: a per-attempt timeout plus exponential backoff for
transient failures. NotFound and validation errors are never retried.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

from app.config.settings import settings
from app.utils.exceptions import TransientStoreError, is_transient

T = TypeVar("T")


async def with_timeout(
    coro: Awaitable[T],
    timeout: float | None = None,
    operation_name: str = "query",
) -> T:
    """
    Execute coroutine with timeout.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds (default: settings.query_timeout_seconds)
        operation_name: Operation name for logging

    Returns:
        Result of the coroutine

    Raises:
        TimeoutError: If operation times out
    """
    timeout = timeout if timeout is not None else settings.query_timeout_seconds
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError:
        logger.warning(f"{operation_name} timed out after {timeout}s")
        raise


async def call_with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    operation_name: str = "query",
    max_retries: int | None = None,
    timeout: float | None = None,
    base_delay: float | None = None,
) -> T:
    """
    Execute a store call with timeout and retry on transient errors.

    The factory is called once per attempt so each attempt gets a
    fresh coroutine (and, in the composers, a fresh session).

    Args:
        coro_factory: Factory returning the coroutine to run
        operation_name: Operation name for logging
        max_retries: Retries after the first attempt
        timeout: Timeout per attempt in seconds
        base_delay: First backoff delay in seconds, doubled each retry

    Returns:
        Result of the call

    Raises:
        TransientStoreError: If every attempt failed transiently
        Exception: Any non-transient error, unchanged and unretried
    """
    retries = settings.query_max_retries if max_retries is None else max_retries
    delay = settings.query_retry_base_delay if base_delay is None else base_delay
    attempts = retries + 1
    last_error: BaseException | None = None

    for attempt in range(attempts):
        try:
            result = await with_timeout(
                coro_factory(), timeout=timeout, operation_name=operation_name
            )
            if attempt > 0:
                logger.info(f"{operation_name} succeeded on attempt {attempt + 1}")
            return result
        except Exception as e:
            if not is_transient(e):
                raise
            last_error = e
            if attempt < attempts - 1:
                wait = delay * (2 ** attempt)
                logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}/{attempts}: "
                    f"{type(e).__name__}. Retrying in {wait:.2f}s"
                )
                await asyncio.sleep(wait)

    logger.error(f"{operation_name} failed after {attempts} attempts: {last_error}")
    raise TransientStoreError(
        f"{operation_name} failed after {attempts} attempts"
    ) from last_error
