"""
Raydium Trade API Client

Thin wrapper over the Raydium swap endpoints:
- compute/swap-base-in  (quote)
- auto-fee              (priority fee estimate)
- transaction/swap-base-in (serialized transaction batch)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import Settings
from ..utils.result import FetchResult, Outcome, classify_status

logger = logging.getLogger(__name__)


class RaydiumClient:
    """
    Client for the Raydium trade API.

    Every call returns a FetchResult; nothing here raises for HTTP or
    network failures.
    """

    def __init__(self, settings: Settings, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize Raydium client.

        Args:
            settings: Bot settings (hosts, timeout)
            session: aiohttp session for API calls, created lazily if omitted
        """
        self.settings = settings
        self.swap_host = settings.RAYDIUM_SWAP_HOST.rstrip("/")
        self.base_host = settings.RAYDIUM_BASE_HOST.rstrip("/")
        self.session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.API_TIMEOUT_SEC)
            )
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def compute_swap_base_in(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        tx_version: str
    ) -> FetchResult[Dict[str, Any]]:
        """
        Get swap quote from Raydium.

        Args:
            input_mint: Input token mint address
            output_mint: Output token mint address
            amount: Amount in smallest units (lamports for SOL)
            slippage_bps: Slippage tolerance in basis points (50 = 0.5%)
            tx_version: "V0" or "LEGACY"

        Returns:
            The full response body ({success, data, ...}) on success
        """
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
            "txVersion": tx_version,
        }
        logger.info(f"Getting Raydium quote: {amount} {input_mint[:8]}... → {output_mint[:8]}...")

        result = await self._request("GET", f"{self.swap_host}/compute/swap-base-in", params=params)
        if not result.is_ok:
            return result

        body = result.value
        if not isinstance(body, dict) or not body.get("success"):
            msg = body.get("msg") if isinstance(body, dict) else "malformed response"
            logger.error(f"Quote failed: {msg}")
            return FetchResult.fatal(str(msg))

        data = body.get("data") or {}
        logger.info(
            f"Quote: {data.get('inputAmount')} → {data.get('outputAmount')} "
            f"(impact: {data.get('priceImpactPct', 0)}%)"
        )
        return FetchResult.ok(body)

    async def get_priority_fee(self, tier: str) -> FetchResult[str]:
        """Get the recommended compute unit price (micro-lamports) for a tier."""
        url = f"{self.base_host}{self.settings.RAYDIUM_PRIORITY_FEE_PATH}"
        result = await self._request("GET", url)
        if not result.is_ok:
            return result

        try:
            fee = result.value["data"]["default"][tier]
        except (KeyError, TypeError):
            return FetchResult.fatal(f"priority fee tier '{tier}' missing")
        return FetchResult.ok(str(fee))

    async def build_swap_transactions(self, payload: Dict[str, Any]) -> FetchResult[List[str]]:
        """Get the base64-encoded transactions for a quoted swap."""
        result = await self._request(
            "POST",
            f"{self.swap_host}/transaction/swap-base-in",
            json=payload,
        )
        if not result.is_ok:
            return result

        body = result.value
        items = body.get("data") if isinstance(body, dict) else None
        if not items:
            msg = body.get("msg") if isinstance(body, dict) else "malformed response"
            logger.error(f"Swap transaction build failed: {msg}")
            return FetchResult.fatal(str(msg or "no transactions returned"))

        try:
            return FetchResult.ok([item["transaction"] for item in items])
        except (KeyError, TypeError):
            return FetchResult.fatal("transaction entry missing")

    async def _request(self, method: str, url: str, **kwargs) -> FetchResult[Any]:
        try:
            session = await self._get_session()
            async with session.request(method, url, **kwargs) as resp:
                outcome = classify_status(resp.status)
                if outcome is not Outcome.OK:
                    error = await resp.text()
                    logger.error(f"Raydium {method} {url} failed: {resp.status} - {error}")
                    reason = f"HTTP {resp.status}"
                    if outcome is Outcome.TRANSIENT:
                        return FetchResult.transient(reason)
                    return FetchResult.fatal(reason)
                return FetchResult.ok(await resp.json(content_type=None))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Raydium API error: {e}")
            return FetchResult.transient(str(e))
        except ValueError as e:
            logger.error(f"Raydium returned invalid JSON: {e}")
            return FetchResult.fatal("invalid JSON")
