"""Unit tests for RetryPolicy."""

import pytest
from unittest.mock import AsyncMock, patch

from portfolio_scraper.infrastructure.retry import RetryPolicy


class TestRetryPolicyDelays:
    """Tests for backoff calculation."""

    def test_default_config(self):
        """Test default configuration values."""
        policy = RetryPolicy()

        assert policy.max_attempts == 3
        assert policy.initial_delay == 0.5
        assert policy.backoff_base == 2
        assert policy.max_delay == 5.0

    def test_exponential_growth_without_jitter(self):
        """Test delays double per attempt."""
        policy = RetryPolicy(initial_delay=1.0, backoff_base=2, max_delay=100, jitter=0)

        assert policy.delay_for(0) == 1.0
        assert policy.delay_for(1) == 2.0
        assert policy.delay_for(3) == 8.0

    def test_delay_capped(self):
        """Test delays never exceed max_delay before jitter."""
        policy = RetryPolicy(initial_delay=1.0, max_delay=3.0, jitter=0)

        assert policy.delay_for(10) == 3.0

    def test_jitter_bounds(self):
        """Test jitter stays within the configured fraction."""
        policy = RetryPolicy(initial_delay=4.0, max_delay=100, jitter=0.25)

        for _ in range(50):
            delay = policy.delay_for(0)
            assert 3.0 <= delay <= 5.0

    def test_invalid_attempts(self):
        """Test zero attempts is rejected."""
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestRetryPolicyDecisions:
    """Tests for should_retry and run."""

    def test_should_retry_until_exhausted(self):
        policy = RetryPolicy(max_attempts=3)
        error = RuntimeError("boom")

        assert policy.should_retry(1, error)
        assert policy.should_retry(2, error)
        assert not policy.should_retry(3, error)

    def test_should_retry_respects_predicate(self):
        policy = RetryPolicy(max_attempts=5, retryable=lambda e: not isinstance(e, KeyError))

        assert policy.should_retry(1, RuntimeError("transient"))
        assert not policy.should_retry(1, KeyError("fatal"))

    @pytest.mark.asyncio
    async def test_run_returns_first_success(self):
        """Test run() retries until the operation succeeds."""
        policy = RetryPolicy(max_attempts=3, initial_delay=0, jitter=0)
        operation = AsyncMock(side_effect=[RuntimeError("one"), "ok"])

        result = await policy.run(operation)

        assert result == "ok"
        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_run_raises_after_exhaustion(self):
        """Test run() re-raises the last error once attempts are used up."""
        policy = RetryPolicy(max_attempts=2, initial_delay=0, jitter=0)
        operation = AsyncMock(side_effect=[RuntimeError("one"), RuntimeError("two")])

        with pytest.raises(RuntimeError, match="two"):
            await policy.run(operation)

        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_run_does_not_retry_fatal_errors(self):
        """Test non-retryable errors propagate immediately."""
        policy = RetryPolicy(max_attempts=5, retryable=lambda e: not isinstance(e, KeyError))
        operation = AsyncMock(side_effect=KeyError("fatal"))

        with pytest.raises(KeyError):
            await policy.run(operation)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_run_sleeps_between_attempts(self):
        """Test backoff sleeps are awaited between attempts."""
        policy = RetryPolicy(max_attempts=3, initial_delay=1.0, jitter=0)
        operation = AsyncMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "ok"])

        with patch("portfolio_scraper.infrastructure.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            await policy.run(operation)

        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]
