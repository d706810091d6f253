"""
Unit tests for Monitor

Tests:
1. Sell triggers exactly when the target multiple is reached
2. Price fetch failures back off 15s
3. Zero balance aborts, sell quote failure keeps watching
"""

from unittest.mock import AsyncMock

import pytest

from conftest import TOKEN, make_quote, recorded_sleep, sleep_delays
from raydium_sniper.core.models import BatchResult, MonitorState, PositionState, TxOutcome
from raydium_sniper.core.monitor import Monitor
from raydium_sniper.utils.result import FetchResult


def oracle_with_prices(*prices):
    oracle = AsyncMock()
    oracle.get_token_price.side_effect = [
        p if isinstance(p, FetchResult) else FetchResult.ok(p) for p in prices
    ]
    return oracle


def build_monitor(settings, wallet, oracle, quotes=None, pipeline=None, sleep=None):
    if quotes is None:
        quotes = AsyncMock()
        quotes.get_sell_quote.return_value = make_quote(buy=False)
    if pipeline is None:
        pipeline = AsyncMock()
        pipeline.execute.return_value = BatchResult([TxOutcome(1, "sig", True, 1)])
    monitor = Monitor(settings, oracle, quotes, pipeline, wallet, sleep=sleep or recorded_sleep())
    return monitor, quotes, pipeline


@pytest.fixture
def position():
    return PositionState.opened(TOKEN, 1_000_000, entry_price_usd=1.00)


class TestMonitor:

    def test_target_price(self, settings, wallet):
        monitor, _, _ = build_monitor(settings, wallet, AsyncMock())
        assert monitor.target_price(1.00) == pytest.approx(1.01)

    @pytest.mark.asyncio
    async def test_sells_at_first_price_above_target(self, settings, wallet, position):
        oracle = oracle_with_prices(0.99, 1.005, 1.02)
        sleep = recorded_sleep()
        monitor, quotes, pipeline = build_monitor(settings, wallet, oracle, sleep=sleep)

        state = await monitor.run(position)

        assert state is MonitorState.SOLD
        assert oracle.get_token_price.await_count == 3
        quotes.get_sell_quote.assert_awaited_once_with(TOKEN, 1_000_000)
        pipeline.execute.assert_awaited_once()
        assert sleep_delays(sleep) == [10.0, 10.0]

    @pytest.mark.asyncio
    async def test_price_failure_waits_fifteen_seconds(self, settings, wallet, position):
        oracle = oracle_with_prices(FetchResult.transient("HTTP 503"), 1.05)
        sleep = recorded_sleep()
        monitor, _, _ = build_monitor(settings, wallet, oracle, sleep=sleep)

        assert await monitor.run(position) is MonitorState.SOLD
        assert sleep_delays(sleep) == [15.0]

    @pytest.mark.asyncio
    async def test_zero_balance_fails(self, settings, wallet, position):
        wallet.get_token_balance.return_value = 0
        monitor, quotes, pipeline = build_monitor(settings, wallet, oracle_with_prices(2.0))

        assert await monitor.run(position) is MonitorState.FAILED
        quotes.get_sell_quote.assert_not_awaited()
        pipeline.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sell_quote_failure_keeps_watching(self, settings, wallet, position):
        quotes = AsyncMock()
        quotes.get_sell_quote.side_effect = [None, make_quote(buy=False)]
        sleep = recorded_sleep()
        monitor, _, pipeline = build_monitor(
            settings, wallet, oracle_with_prices(1.5, 1.5), quotes=quotes, sleep=sleep
        )

        assert await monitor.run(position) is MonitorState.SOLD
        assert quotes.get_sell_quote.await_count == 2
        pipeline.execute.assert_awaited_once()
        assert sleep_delays(sleep) == [10.0]

    @pytest.mark.asyncio
    async def test_unknown_entry_price_uses_first_observation(self, settings, wallet):
        position = PositionState.opened(TOKEN, 1_000_000)
        oracle = oracle_with_prices(2.00, 2.01, 2.03)
        monitor, _, pipeline = build_monitor(settings, wallet, oracle)

        assert await monitor.run(position) is MonitorState.SOLD
        # 2.01 < 2.02 target, so only the third price sells
        assert oracle.get_token_price.await_count == 3
        pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pipeline_error_keeps_watching(self, settings, wallet, position):
        pipeline = AsyncMock()
        pipeline.execute.side_effect = [RuntimeError("build failed"), BatchResult()]
        monitor, _, _ = build_monitor(
            settings, wallet, oracle_with_prices(1.5, 1.5), pipeline=pipeline
        )

        assert await monitor.run(position) is MonitorState.SOLD
        assert pipeline.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_closed_position_fails_immediately(self, settings, wallet):
        oracle = AsyncMock()
        monitor, _, _ = build_monitor(settings, wallet, oracle)

        assert await monitor.run(PositionState.closed()) is MonitorState.FAILED
        oracle.get_token_price.assert_not_awaited()
