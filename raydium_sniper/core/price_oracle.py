from __future__ import annotations

import logging

from raydium_sniper.config import Settings
from raydium_sniper.core.coingecko_client import CoinGeckoClient
from raydium_sniper.core.dexscreener_client import DexScreenerClient
from raydium_sniper.utils.result import FetchResult


class PriceOracle:
    """USD spot prices: SOL from CoinGecko, tokens from their DexScreener pair."""

    def __init__(
        self,
        settings: Settings,
        coingecko: CoinGeckoClient,
        dexscreener: DexScreenerClient,
    ) -> None:
        self.settings = settings
        self.coingecko = coingecko
        self.dexscreener = dexscreener
        self.logger = logging.getLogger("raydium_sniper.prices")

    async def get_native_price(self) -> FetchResult[float]:
        return await self.coingecko.get_usd_price()

    async def get_token_price(self, token_address: str) -> FetchResult[float]:
        result = await self.dexscreener.get_token_pairs(token_address)
        if not result.is_ok:
            return result

        pair = next(
            (
                p for p in result.value or []
                if p.get("chainId") == self.settings.TARGET_CHAIN_ID
                and p.get("dexId") == self.settings.TARGET_DEX_ID
            ),
            None,
        )
        if pair is None:
            self.logger.warning("No %s pair found for token %s", self.settings.TARGET_DEX_ID, token_address)
            return FetchResult.fatal("no matching pair")

        try:
            price = float(pair.get("priceUsd") or 0)
        except (TypeError, ValueError):
            price = 0.0
        if price <= 0:
            self.logger.warning("Invalid USD price for token %s: %r", token_address, pair.get("priceUsd"))
            return FetchResult.fatal("invalid priceUsd")

        self.logger.debug("Current price for %s: $%s", token_address, price)
        return FetchResult.ok(price)
