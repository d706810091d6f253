from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from raydium_sniper.config import Settings
from raydium_sniper.utils.result import FetchResult, Outcome, classify_status
from raydium_sniper.utils.retry import RetryPolicy

# Longer server-requested waits are capped
MAX_RETRY_AFTER_SEC = 30.0


class DexScreenerClient:
    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self.base_url = settings.DEXSCREENER_API_BASE.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=settings.API_TIMEOUT_SEC)
        self.logger = logging.getLogger("raydium_sniper.dexscreener")
        self.retry_policy = RetryPolicy(
            max_attempts=max(1, settings.DEXSCREENER_MAX_RETRIES),
            delay=max(0.5, settings.DEXSCREENER_RETRY_BACKOFF_SEC),
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def get_token_profiles(self) -> FetchResult[list[dict[str, Any]]]:
        url = f"{self.base_url}/token-profiles/latest/v1"
        result = await self._request(url)
        if not result.is_ok:
            return result
        if not isinstance(result.value, list):
            return FetchResult.fatal("token profiles payload is not a list")
        return FetchResult.ok(result.value)

    async def get_token_pairs(self, token_address: str) -> FetchResult[list[dict[str, Any]]]:
        url = f"{self.base_url}/latest/dex/tokens/{token_address}"
        result = await self._request(url, log_level="debug")
        if not result.is_ok:
            return result
        payload = result.value
        pairs = payload.get("pairs") if isinstance(payload, dict) else None
        return FetchResult.ok(pairs or [])

    async def _request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        log_level: str = "warning",
    ) -> FetchResult[Any]:
        attempt = 1
        while True:
            try:
                response = await self.client.get(url, params=params)
            except httpx.HTTPError as exc:
                reason = f"{type(exc).__name__}: {exc}"
                delay = self.retry_policy.delay_for(attempt)
            else:
                outcome = classify_status(response.status_code)
                if outcome is Outcome.OK:
                    try:
                        return FetchResult.ok(response.json())
                    except ValueError as exc:
                        self.logger.warning("DexScreener returned invalid JSON for %s: %s", url, exc)
                        return FetchResult.fatal("invalid JSON")
                reason = f"HTTP {response.status_code}"
                if outcome is Outcome.FATAL:
                    getattr(self.logger, log_level)("DexScreener %s for %s", reason, url)
                    return FetchResult.fatal(reason)
                if response.status_code == 429:
                    delay = self._retry_after(response, attempt)
                    self.logger.warning("DexScreener rate limited, retrying in %.1fs", delay)
                else:
                    delay = self.retry_policy.delay_for(attempt)

            if not self.retry_policy.has_attempts_left(attempt):
                getattr(self.logger, log_level)(
                    "DexScreener request failed for %s: %s", url, reason
                )
                return FetchResult.transient(reason)
            await asyncio.sleep(delay)
            attempt += 1

    def _retry_after(self, response: httpx.Response, attempt: int) -> float:
        """Seconds from a numeric Retry-After header, else the policy delay."""
        fallback = self.retry_policy.delay_for(attempt)
        try:
            delay = float(response.headers.get("Retry-After", ""))
        except ValueError:
            # HTTP-date form or garbage
            return fallback
        if not delay >= 0:
            return fallback
        return min(delay, MAX_RETRY_AFTER_SEC)
