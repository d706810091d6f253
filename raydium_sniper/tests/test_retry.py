"""
Unit tests for RetryPolicy, async_retry and FetchResult
"""

import pytest

from conftest import recorded_sleep, sleep_delays
from raydium_sniper.utils.result import FetchResult, Outcome, classify_status
from raydium_sniper.utils.retry import RetryPolicy, async_retry, fixed_backoff


class TestRetryPolicy:

    def test_fixed_delay(self):
        policy = RetryPolicy(max_attempts=5, delay=2.0)
        assert [policy.delay_for(a) for a in (1, 2, 3)] == [2.0, 2.0, 2.0]

    def test_exponential_delay(self):
        policy = RetryPolicy(max_attempts=4, delay=1.0, multiplier=2.0)
        assert [policy.delay_for(a) for a in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_bounded_attempts(self):
        policy = RetryPolicy(max_attempts=3)
        assert policy.has_attempts_left(2) is True
        assert policy.has_attempts_left(3) is False

    def test_unbounded_attempts(self):
        policy = fixed_backoff(20)
        assert policy.max_attempts is None
        assert policy.has_attempts_left(10_000) is True

    def test_retryable_predicate(self):
        policy = RetryPolicy(max_attempts=3, retryable=lambda e: isinstance(e, ConnectionError))
        assert policy.should_retry(ConnectionError(), 1) is True
        assert policy.should_retry(ValueError(), 1) is False

    @pytest.mark.asyncio
    async def test_wait_uses_injected_sleep(self):
        sleep = recorded_sleep()
        await RetryPolicy(delay=1.5, multiplier=2.0).wait(2, sleep=sleep)
        assert sleep_delays(sleep) == [3.0]


class TestAsyncRetry:

    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        sleep = recorded_sleep()
        monkeypatch.setattr("raydium_sniper.utils.retry.asyncio.sleep", sleep)
        return sleep

    @pytest.mark.asyncio
    async def test_succeeds_after_failures(self, no_sleep):
        calls = []

        @async_retry(RetryPolicy(max_attempts=3, delay=0.5, multiplier=2.0))
        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("reset")
            return "done"

        assert await flaky() == "done"
        assert len(calls) == 3
        assert sleep_delays(no_sleep) == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_reraises_when_exhausted(self):
        @async_retry(RetryPolicy(max_attempts=2, delay=0.1))
        async def broken():
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            await broken()

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self, no_sleep):
        calls = []

        @async_retry(RetryPolicy(max_attempts=5, retryable=lambda e: not isinstance(e, KeyError)))
        async def bad():
            calls.append(1)
            raise KeyError("data")

        with pytest.raises(KeyError):
            await bad()
        assert len(calls) == 1
        no_sleep.assert_not_awaited()


class TestFetchResult:

    @pytest.mark.parametrize("status,outcome", [
        (200, Outcome.OK),
        (204, Outcome.OK),
        (429, Outcome.TRANSIENT),
        (500, Outcome.TRANSIENT),
        (503, Outcome.TRANSIENT),
        (400, Outcome.FATAL),
        (404, Outcome.FATAL),
    ])
    def test_classify_status(self, status, outcome):
        assert classify_status(status) is outcome

    def test_failure_carries_reason_without_value(self):
        result = FetchResult.fatal("HTTP 404")
        assert not result.is_ok
        assert result.outcome is Outcome.FATAL
        assert result.value is None
        assert result.reason == "HTTP 404"
