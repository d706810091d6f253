"""
Token validation checklist.

Every gate is a hard gate: the first failure rejects the token. Any
unexpected error also rejects it, so a broken data source can never
let a token through.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from raydium_sniper.config import Settings, ValidationThresholds
from raydium_sniper.core.dexscreener_client import DexScreenerClient
from raydium_sniper.core.models import TokenCandidate
from raydium_sniper.core.rugcheck_client import RugCheckClient, RugCheckReport


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class TokenValidator:
    def __init__(
        self,
        settings: Settings,
        dexscreener: DexScreenerClient,
        rugcheck: RugCheckClient,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.dexscreener = dexscreener
        self.rugcheck = rugcheck
        self.clock = clock
        self.logger = logging.getLogger("raydium_sniper.validator")

    async def validate(
        self,
        candidate: TokenCandidate,
        thresholds: ValidationThresholds | None = None,
    ) -> bool:
        thresholds = thresholds or self.settings.THRESHOLDS
        try:
            return await self._validate(candidate, thresholds)
        except Exception as e:
            self.logger.error(f"Error validating token {candidate.address}: {e}")
            return False

    async def _validate(self, candidate: TokenCandidate, t: ValidationThresholds) -> bool:
        address = candidate.address
        pairs_result, report = await asyncio.gather(
            self.dexscreener.get_token_pairs(address),
            self.rugcheck.get_report(address),
            return_exceptions=True,
        )

        if isinstance(pairs_result, BaseException):
            raise pairs_result
        if not pairs_result.is_ok:
            return self._reject(candidate, f"pair data unavailable ({pairs_result.reason})")

        if isinstance(report, BaseException):
            self.logger.debug(f"RugCheck failed for {address}: {report}")
            report = None

        pair = next(
            (p for p in pairs_result.value or [] if p.get("dexId") == self.settings.TARGET_DEX_ID),
            None,
        )
        if pair is None:
            return self._reject(candidate, f"no {self.settings.TARGET_DEX_ID} pair")

        created_at = pair.get("pairCreatedAt")
        if not created_at:
            return self._reject(candidate, "pair creation time unknown")
        age_minutes = (self.clock() * 1000 - float(created_at)) / (1000 * 60)
        if age_minutes < t.min_age_minutes:
            return self._reject(candidate, f"too new ({age_minutes:.1f} < {t.min_age_minutes} min)")
        if age_minutes > t.max_age_minutes:
            return self._reject(candidate, f"too old ({age_minutes:.1f} > {t.max_age_minutes} min)")

        liquidity = _as_float((pair.get("liquidity") or {}).get("usd"))
        if liquidity < t.min_liquidity_usd:
            return self._reject(candidate, f"liquidity ${liquidity:,.0f} < ${t.min_liquidity_usd:,.0f}")

        market_cap = _as_float(pair.get("marketCap"))
        fdv = _as_float(pair.get("fdv"))
        if market_cap < t.min_market_cap:
            return self._reject(candidate, f"market cap ${market_cap:,.0f} < ${t.min_market_cap:,.0f}")
        if fdv <= 0:
            return self._reject(candidate, "FDV missing")
        ratio = market_cap / fdv
        if ratio < t.min_market_cap_to_fdv_ratio:
            return self._reject(candidate, f"mcap/FDV {ratio:.2f} < {t.min_market_cap_to_fdv_ratio}")

        if isinstance(report, RugCheckReport):
            if report.score > t.max_risk_score:
                return self._reject(candidate, f"risk score {report.score} > {t.max_risk_score}")
        else:
            self.logger.debug(f"No risk data for {address}, skipping risk gate")

        self.logger.info(f"PASS {candidate.label} ({address}) passed validation")
        return True

    def _reject(self, candidate: TokenCandidate, reason: str) -> bool:
        self.logger.info(f"REJECT {candidate.label} ({candidate.address}): {reason}")
        return False
