from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from raydium_sniper.config import Settings
from raydium_sniper.core.discovery import Discovery
from raydium_sniper.core.models import MonitorState, PositionState
from raydium_sniper.core.monitor import Monitor
from raydium_sniper.core.price_oracle import PriceOracle
from raydium_sniper.core.quote_service import QuoteService
from raydium_sniper.core.tx_pipeline import TxPipeline
from raydium_sniper.exceptions import SwapException
from raydium_sniper.utils.retry import Sleeper, fixed_backoff


class Orchestrator:
    """Top-level loop: find and buy one token, then monitor and sell it."""

    def __init__(
        self,
        settings: Settings,
        discovery: Discovery,
        quotes: QuoteService,
        pipeline: TxPipeline,
        monitor: Monitor,
        oracle: PriceOracle,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.discovery = discovery
        self.quotes = quotes
        self.pipeline = pipeline
        self.monitor = monitor
        self.oracle = oracle
        self.sleep = sleep
        self.position = PositionState.closed()
        self.discovery_backoff = fixed_backoff(settings.DISCOVERY_BACKOFF_SEC)
        self.failure_backoff = fixed_backoff(settings.FAILURE_BACKOFF_SEC)
        self.logger = logging.getLogger("raydium_sniper.orchestrator")

    async def run_forever(self) -> None:
        while True:
            await self.run_once()

    async def run_once(self) -> None:
        try:
            if not self.position.token_purchased:
                await self._find_and_buy()
            else:
                await self._monitor_and_sell()
        except Exception:
            self.logger.exception(
                "Unexpected error. Retrying in %.0fs...", self.failure_backoff.delay
            )
            await self.failure_backoff.wait(sleep=self.sleep)

    async def _find_and_buy(self) -> None:
        candidate = await self.discovery.find_candidate()
        if candidate is None:
            self.logger.info(
                "No valid token passed validation checks. Retrying in %.0fs...",
                self.discovery_backoff.delay,
            )
            await self.discovery_backoff.wait(sleep=self.sleep)
            return

        self.logger.info("Valid token found: %s (%s)", candidate.label, candidate.address)
        quote = await self.quotes.get_buy_quote(candidate.address)
        if quote is None:
            self.logger.error(
                "Failed to fetch swap quote. Retrying in %.0fs...", self.failure_backoff.delay
            )
            await self.failure_backoff.wait(sleep=self.sleep)
            return

        try:
            result = await self.pipeline.execute(quote)
        except SwapException as e:
            self.logger.error(
                "BUY of %s failed: %s. Retrying in %.0fs...",
                candidate.address, e, self.failure_backoff.delay,
            )
            await self.failure_backoff.wait(sleep=self.sleep)
            return

        if not result.all_succeeded:
            self.logger.warning(
                "BUY batch for %s only partly confirmed (%d/%d)",
                candidate.address, result.succeeded, len(result.outcomes),
            )

        self.position = PositionState.opened(candidate.address, quote.output_amount)
        self.logger.info(
            "BUY complete: %s, spent %d lamports, expected output %d. Starting monitoring...",
            candidate.address, quote.input_amount, quote.output_amount,
        )

        entry = await self.oracle.get_token_price(candidate.address)
        if entry.is_ok:
            self.position = replace(self.position, entry_price_usd=entry.value)

    async def _monitor_and_sell(self) -> None:
        state = await self.monitor.run(self.position)
        token = self.position.purchased_token_address
        self.position = PositionState.closed()

        if state is MonitorState.SOLD:
            self.logger.info("Position in %s closed", token)
            return

        self.logger.error(
            "Monitoring of %s aborted (%s). Retrying in %.0fs...",
            token, state.value, self.failure_backoff.delay,
        )
        await self.failure_backoff.wait(sleep=self.sleep)
