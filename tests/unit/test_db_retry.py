"""
Unit tests for the query boundary (timeout and retry).
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.utils.db_retry import call_with_retry, with_timeout
from app.utils.exceptions import (
    MemberNotFoundError,
    TransientStoreError,
    is_transient,
)


def operational_error():
    return OperationalError("SELECT 1", {}, Exception("connection reset"))


class TestWithTimeout:
    """Test per-call timeouts."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        """Test a fast call."""
        assert await with_timeout(asyncio.sleep(0, result=42), timeout=1) == 42

    @pytest.mark.asyncio
    async def test_times_out(self):
        """Test a call slower than the timeout."""
        with pytest.raises(TimeoutError):
            await with_timeout(asyncio.sleep(1), timeout=0.01)


class TestCallWithRetry:
    """Test retry with backoff."""

    @pytest.mark.asyncio
    async def test_transient_error_retried(self):
        """Test that a transient failure is retried until success."""
        call = AsyncMock(side_effect=[operational_error(), operational_error(), "ok"])

        result = await call_with_retry(call, max_retries=3, base_delay=0)

        assert result == "ok"
        assert call.await_count == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_transient_store_error(self):
        """Test that repeated transient failures surface as TransientStoreError."""
        call = AsyncMock(side_effect=operational_error())

        with pytest.raises(TransientStoreError):
            await call_with_retry(call, operation_name="stats", max_retries=2, base_delay=0)

        assert call.await_count == 3

    @pytest.mark.asyncio
    async def test_not_found_never_retried(self):
        """Test that permanent errors propagate on the first attempt."""
        call = AsyncMock(side_effect=MemberNotFoundError("mem_x"))

        with pytest.raises(MemberNotFoundError):
            await call_with_retry(call, max_retries=3, base_delay=0)

        assert call.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        """Test that timeouts are retried."""
        attempts = []

        async def slow_then_fast():
            attempts.append(1)
            if len(attempts) == 1:
                await asyncio.sleep(1)
            return "done"

        result = await call_with_retry(
            slow_then_fast, max_retries=1, timeout=0.01, base_delay=0
        )

        assert result == "done"
        assert len(attempts) == 2


class TestErrorCategories:
    """Test exception classification."""

    def test_transient(self):
        """Test transient categories."""
        assert is_transient(operational_error())
        assert is_transient(TimeoutError())
        assert not is_transient(ValueError())

    def test_not_found_message(self):
        """Test the not-found message and identifier."""
        error = MemberNotFoundError("mem_42")

        assert error.identifier == "mem_42"
        assert str(error) == "Member not found: mem_42"
