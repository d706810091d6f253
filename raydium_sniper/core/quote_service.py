from __future__ import annotations

import logging
import math

from raydium_sniper.config import Settings
from raydium_sniper.constants import LAMPORTS_PER_SOL, WSOL_MINT_STR
from raydium_sniper.core.models import Quote
from raydium_sniper.core.price_oracle import PriceOracle
from raydium_sniper.core.raydium_client import RaydiumClient


def usd_to_lamports(usd_amount: float, sol_price_usd: float) -> int:
    return math.floor(usd_amount / sol_price_usd * LAMPORTS_PER_SOL)


class QuoteService:
    """Buy and sell quotes against wrapped SOL. Returns None on any failure."""

    def __init__(self, settings: Settings, raydium: RaydiumClient, oracle: PriceOracle) -> None:
        self.settings = settings
        self.raydium = raydium
        self.oracle = oracle
        self.logger = logging.getLogger("raydium_sniper.quotes")

    async def get_buy_quote(self, output_mint: str) -> Quote | None:
        price = await self.oracle.get_native_price()
        if not price.is_ok:
            self.logger.error("Cannot quote buy, SOL price unavailable: %s", price.reason)
            return None

        lamports = usd_to_lamports(self.settings.BUY_AMOUNT_USD, price.value)
        if lamports <= 0:
            self.logger.error("Buy budget $%s is below one lamport", self.settings.BUY_AMOUNT_USD)
            return None

        self.logger.info(
            "Quoting BUY of $%s (%.9f SOL, %d lamports) for %s",
            self.settings.BUY_AMOUNT_USD, lamports / LAMPORTS_PER_SOL, lamports, output_mint,
        )
        return await self._quote(WSOL_MINT_STR, output_mint, lamports, is_input_native=True)

    async def get_sell_quote(self, input_mint: str, amount: int) -> Quote | None:
        if amount <= 0:
            self.logger.error("Cannot quote sell of %s with amount %s", input_mint, amount)
            return None
        self.logger.info("Quoting SELL of %d raw units of %s", amount, input_mint)
        return await self._quote(input_mint, WSOL_MINT_STR, amount, is_input_native=False)

    async def _quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        is_input_native: bool,
    ) -> Quote | None:
        result = await self.raydium.compute_swap_base_in(
            input_mint,
            output_mint,
            amount,
            self.settings.SLIPPAGE_BPS,
            self.settings.TX_VERSION,
        )
        if not result.is_ok:
            self.logger.error("Failed to fetch swap quote (%s): %s", result.outcome.value, result.reason)
            return None

        return Quote(
            raw_response=result.value,
            tx_version=self.settings.TX_VERSION,
            is_input_native=is_input_native,
            is_output_native=not is_input_native,
            input_mint=input_mint,
            output_mint=output_mint,
        )
