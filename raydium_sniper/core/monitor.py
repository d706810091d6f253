from __future__ import annotations

import asyncio
import logging

from raydium_sniper.config import Settings
from raydium_sniper.core.models import MonitorState, PositionState
from raydium_sniper.core.price_oracle import PriceOracle
from raydium_sniper.core.quote_service import QuoteService
from raydium_sniper.core.tx_pipeline import TxPipeline
from raydium_sniper.core.wallet import WalletManager
from raydium_sniper.utils.retry import Sleeper, fixed_backoff


class Monitor:
    """Watches an open position and sells it once the price target is hit."""

    def __init__(
        self,
        settings: Settings,
        oracle: PriceOracle,
        quotes: QuoteService,
        pipeline: TxPipeline,
        wallet: WalletManager,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.oracle = oracle
        self.quotes = quotes
        self.pipeline = pipeline
        self.wallet = wallet
        self.sleep = sleep
        self.price_retry = fixed_backoff(settings.PRICE_RETRY_SEC)
        self.poll = fixed_backoff(settings.POLL_INTERVAL_SEC)
        self.logger = logging.getLogger("raydium_sniper.monitor")

    def target_price(self, entry_price: float) -> float:
        return round(entry_price * self.settings.SELL_TARGET_MULTIPLIER, 8)

    async def run(self, position: PositionState) -> MonitorState:
        token = position.purchased_token_address
        if not position.token_purchased or not token:
            self.logger.error("Monitor started without an open position")
            return MonitorState.FAILED

        entry_price = position.entry_price_usd
        target: float | None = self.target_price(entry_price) if entry_price else None
        if target is not None:
            self._log_target(token, entry_price, target)

        while True:
            try:
                price = await self.oracle.get_token_price(token)
                if not price.is_ok:
                    self.logger.warning(
                        "Failed to fetch current price (%s). Retrying in %.0fs...",
                        price.reason, self.price_retry.delay,
                    )
                    await self.price_retry.wait(sleep=self.sleep)
                    continue

                if target is None:
                    entry_price = price.value
                    target = self.target_price(entry_price)
                    self._log_target(token, entry_price, target)
                else:
                    self.logger.info("Current price: $%s. Target price: $%s", price.value, target)
                    if price.value >= target:
                        state = await self._sell(token, price.value)
                        if state is not MonitorState.WATCHING:
                            return state
            except Exception:
                self.logger.exception("Unexpected error while monitoring %s", token)

            await self.poll.wait(sleep=self.sleep)

    async def _sell(self, token: str, price: float) -> MonitorState:
        self.logger.info("TARGET reached at $%s. Initiating SELL of %s...", price, token)

        balance = await self.wallet.get_token_balance(token)
        if balance <= 0:
            self.logger.error("No token balance available for selling %s", token)
            return MonitorState.FAILED
        self.logger.info("Token balance available: %d", balance)

        quote = await self.quotes.get_sell_quote(token, balance)
        if quote is None:
            self.logger.error("Failed to fetch sell quote. Retrying...")
            return MonitorState.WATCHING

        result = await self.pipeline.execute(quote)
        self.logger.info(
            "SELL of %s completed (%d/%d transaction(s) confirmed)",
            token, result.succeeded, len(result.outcomes),
        )
        return MonitorState.SOLD

    def _log_target(self, token: str, entry_price: float, target: float) -> None:
        self.logger.info(
            "Monitoring %s for a %.2f%% increase: entry $%s, target $%s",
            token, self.settings.target_gain_pct, entry_price, target,
        )
