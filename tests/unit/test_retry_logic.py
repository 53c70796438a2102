"""
Retry Logic Tests
=================

Unit tests for bounded retry around transient failures.
"""

import pytest
from unittest.mock import AsyncMock, patch

from feedrelay.recovery.retry_logic import RetryConfig, RetryManager
from feedrelay.utils.exceptions import ErrorCode, FeedFetchError


def make_manager(**overrides):
    config = RetryConfig(**{"max_attempts": 3, "delay": 0.0, **overrides})
    return RetryManager(config, name="test_retry")


class TestRetryAsync:

    @pytest.mark.asyncio
    async def test_first_attempt_success(self):
        func = AsyncMock(return_value="ok")

        assert await make_manager().retry_async(func, 1, key="v") == "ok"
        func.assert_awaited_once_with(1, key="v")

    @pytest.mark.asyncio
    async def test_transient_error_then_success(self):
        func = AsyncMock(side_effect=[
            FeedFetchError("down", error_code=ErrorCode.FEED_NETWORK_ERROR),
            "ok",
        ])

        assert await make_manager().retry_async(func) == "ok"
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        error = FeedFetchError("slow", error_code=ErrorCode.FEED_FETCH_TIMEOUT)
        func = AsyncMock(side_effect=error)

        with pytest.raises(FeedFetchError) as exc_info:
            await make_manager().retry_async(func)

        assert exc_info.value is error
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_immediately(self):
        func = AsyncMock(side_effect=FeedFetchError(
            "gone", error_code=ErrorCode.FEED_NOT_FOUND
        ))

        with pytest.raises(FeedFetchError):
            await make_manager().retry_async(func)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_unrecoverable_error_not_retried(self):
        func = AsyncMock(side_effect=FeedFetchError(
            "bad", error_code=ErrorCode.FEED_NETWORK_ERROR, recoverable=False
        ))

        with pytest.raises(FeedFetchError):
            await make_manager().retry_async(func)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_plain_connection_error_retried(self):
        func = AsyncMock(side_effect=[ConnectionError("reset"), "ok"])

        assert await make_manager().retry_async(func) == "ok"

    @pytest.mark.asyncio
    async def test_sync_callable_supported(self):
        assert await make_manager().retry_async(lambda: 42) == 42

    @pytest.mark.asyncio
    async def test_fixed_delay_between_attempts(self):
        func = AsyncMock(side_effect=[ConnectionError(), ConnectionError(), "ok"])
        manager = make_manager(delay=5.0)

        with patch("feedrelay.recovery.retry_logic.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await manager.retry_async(func) == "ok"

        assert [call.args[0] for call in sleep.await_args_list] == [5.0, 5.0]

