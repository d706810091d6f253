from __future__ import annotations

import logging

from raydium_sniper.config import Settings
from raydium_sniper.core.dexscreener_client import DexScreenerClient
from raydium_sniper.core.models import TokenCandidate
from raydium_sniper.core.validator import TokenValidator


class Discovery:
    """Polls the latest-profiles feed once and returns the first valid token."""

    def __init__(
        self,
        settings: Settings,
        dexscreener: DexScreenerClient,
        validator: TokenValidator,
    ) -> None:
        self.settings = settings
        self.dexscreener = dexscreener
        self.validator = validator
        self.logger = logging.getLogger("raydium_sniper.discovery")

    async def find_candidate(self) -> TokenCandidate | None:
        result = await self.dexscreener.get_token_profiles()
        if not result.is_ok:
            self.logger.error("Error fetching latest token profiles: %s", result.reason)
            return None

        for profile in result.value or []:
            if profile.get("chainId") != self.settings.TARGET_CHAIN_ID:
                continue
            if not profile.get("tokenAddress"):
                continue

            candidate = TokenCandidate.from_profile(profile)
            self.logger.info("NEW TOKEN %s (%s)", candidate.label, candidate.address)
            if await self.validator.validate(candidate):
                return candidate

        self.logger.info("No valid %s token found in latest profiles", self.settings.TARGET_CHAIN_ID)
        return None
