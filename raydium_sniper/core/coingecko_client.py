from __future__ import annotations

import logging
from typing import Any

import httpx

from raydium_sniper.config import Settings
from raydium_sniper.constants import COINGECKO_NATIVE_ID
from raydium_sniper.exceptions import NetworkException
from raydium_sniper.utils.result import FetchResult
from raydium_sniper.utils.retry import RetryPolicy, async_retry


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


class CoinGeckoClient:
    """Client for the CoinGecko simple price endpoint."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self.logger = logging.getLogger("raydium_sniper.coingecko")

        api_key = settings.COINGECKO_API_KEY
        if api_key:
            # Demo keys start with "CG-", Pro keys don't
            header = "x-cg-demo-api-key" if api_key.startswith("CG-") else "x-cg-pro-api-key"
            self.headers = {header: api_key}
        else:
            self.headers = {}
        self.base_url = settings.COINGECKO_API_BASE.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=settings.API_TIMEOUT_SEC, headers=self.headers)

    async def close(self) -> None:
        await self.client.aclose()

    async def get_usd_price(self, coin_id: str = COINGECKO_NATIVE_ID) -> FetchResult[float]:
        """Get a coin's spot price in USD."""
        try:
            data = await self._get_json(
                f"{self.base_url}/simple/price",
                {"ids": coin_id, "vs_currencies": "usd"},
            )
        except httpx.HTTPStatusError as exc:
            reason = f"HTTP {exc.response.status_code}"
            self.logger.error("CoinGecko price request failed: %s", reason)
            if _is_transient(exc):
                return FetchResult.transient(reason)
            return FetchResult.fatal(reason)
        except httpx.HTTPError as exc:
            self.logger.error("CoinGecko price request failed: %s", exc)
            return FetchResult.transient(str(exc))
        except NetworkException as exc:
            self.logger.error("CoinGecko price request failed: %s", exc)
            return FetchResult.fatal(str(exc))

        try:
            price = float(data[coin_id]["usd"])
        except (KeyError, TypeError, ValueError) as exc:
            self.logger.error(f"CoinGecko payload has no usable {coin_id} price: {exc!r}")
            return FetchResult.fatal(f"no USD price for {coin_id}")
        if not price > 0:
            return FetchResult.fatal(f"no USD price for {coin_id}")
        self.logger.info(f"Current {coin_id} price: ${price:.2f}")
        return FetchResult.ok(price)

    @async_retry(RetryPolicy(max_attempts=3, delay=1.0, multiplier=2.0, retryable=_is_transient))
    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise NetworkException("CoinGecko returned invalid JSON", url=url) from e
