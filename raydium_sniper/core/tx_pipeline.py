"""
Quote -> signed, submitted, confirmed transactions.

Transactions in a batch are submitted strictly in order, each with its own
bounded retry. A transaction that exhausts its attempts is abandoned and
the batch moves on, so a multi-transaction swap is best-effort, not atomic.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import Any

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Processed
from solana.rpc.types import TxOpts
from solders.transaction import Transaction, VersionedTransaction # type: ignore

from raydium_sniper.config import Settings
from raydium_sniper.constants import TX_VERSION_LEGACY, TX_VERSION_V0
from raydium_sniper.core.models import BatchResult, Quote, TxOutcome
from raydium_sniper.core.raydium_client import RaydiumClient
from raydium_sniper.core.tx_confirmer import TransactionConfirmer
from raydium_sniper.core.wallet import AnyTransaction, WalletManager
from raydium_sniper.exceptions import SwapException, TransactionTimeoutError
from raydium_sniper.utils.retry import RetryPolicy, Sleeper


def deserialize_transaction(encoded: str, tx_version: str) -> AnyTransaction:
    try:
        raw = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise SwapException("Transaction is not valid base64") from e

    try:
        if tx_version == TX_VERSION_V0:
            return VersionedTransaction.from_bytes(raw)
        if tx_version == TX_VERSION_LEGACY:
            return Transaction.from_bytes(raw)
    except ValueError as e:
        raise SwapException("Could not deserialize transaction", tx_version=tx_version) from e
    raise SwapException("Unsupported transaction version", tx_version=tx_version)


class TxPipeline:
    def __init__(
        self,
        settings: Settings,
        raydium: RaydiumClient,
        wallet: WalletManager,
        rpc: AsyncClient,
        confirmer: TransactionConfirmer | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.raydium = raydium
        self.wallet = wallet
        self.rpc = rpc
        self.confirmer = confirmer or TransactionConfirmer(rpc)
        self.sleep = sleep
        self.retry_policy = RetryPolicy(
            max_attempts=settings.TX_MAX_ATTEMPTS,
            delay=settings.TX_RETRY_DELAY_SEC,
        )
        self.logger = logging.getLogger("raydium_sniper.tx")

    async def execute(self, quote: Quote) -> BatchResult:
        """
        Build, sign and submit the transactions for a quote.

        Raises SwapException if the batch cannot be built. Individual
        transaction failures are reported in the returned BatchResult.
        """
        transactions = await self.build(quote)
        return await self.submit_batch(transactions)

    async def build(self, quote: Quote) -> list[AnyTransaction]:
        fee = await self.raydium.get_priority_fee(self.settings.PRIORITY_FEE_TIER)
        if not fee.is_ok:
            raise SwapException("Priority fee unavailable", reason=fee.reason)

        payload = await self._build_payload(quote, fee.value)
        encoded = await self.raydium.build_swap_transactions(payload)
        if not encoded.is_ok:
            raise SwapException("Swap transaction build failed", reason=encoded.reason)

        transactions = [deserialize_transaction(tx, quote.tx_version) for tx in encoded.value]
        self.logger.info("Deserialized %d %s transaction(s)", len(transactions), quote.tx_version)
        return transactions

    async def _build_payload(self, quote: Quote, compute_unit_price: str) -> dict[str, Any]:
        # The native side is wrapped/unwrapped by the API, so only the token
        # side needs an existing account.
        token_account = await self.wallet.find_token_account(quote.token_mint)
        payload: dict[str, Any] = {
            "computeUnitPriceMicroLamports": compute_unit_price,
            "swapResponse": quote.raw_response,
            "txVersion": quote.tx_version,
            "wallet": self.wallet.address,
            "wrapSol": quote.is_input_native,
            "unwrapSol": quote.is_output_native,
        }
        if token_account is not None:
            key = "outputAccount" if quote.is_input_native else "inputAccount"
            payload[key] = str(token_account)
        return payload

    async def submit_batch(self, transactions: list[AnyTransaction]) -> BatchResult:
        result = BatchResult()
        for index, tx in enumerate(transactions, start=1):
            result.outcomes.append(await self._submit_with_retry(index, tx))
        self.logger.info(
            "Batch finished: %d/%d transaction(s) succeeded",
            result.succeeded, len(result.outcomes),
        )
        return result

    async def _submit_with_retry(self, index: int, tx: AnyTransaction) -> TxOutcome:
        signature: str | None = None
        attempt = 1
        while True:
            try:
                self.logger.info("Signing and sending transaction %d (attempt %d)", index, attempt)
                signature = await self._send(self.wallet.sign(tx))
                self.logger.info("Transaction %d sent, txId: %s", index, signature)

                confirmation = await self.confirmer.confirm(
                    signature, timeout=self.settings.CONFIRM_TIMEOUT_SEC
                )
                confirmation.raise_for_status()
                self.logger.info("Transaction %d confirmed, txId: %s", index, signature)
                return TxOutcome(index, signature, True, attempt)

            except Exception as e:
                if not self.retry_policy.should_retry(e, attempt):
                    self.logger.error(
                        "Transaction %d failed after %d attempts. txId: %s (%s)",
                        index, attempt, signature, e,
                    )
                    return TxOutcome(index, signature, False, attempt, error=str(e))

                if isinstance(e, TransactionTimeoutError) and signature:
                    self.logger.warning(
                        "Transaction %d timed out on attempt %d. txId: %s", index, attempt, signature
                    )
                    if await self._landed(signature):
                        self.logger.info(
                            "Transaction %d succeeded after timeout on attempt %d. txId: %s",
                            index, attempt, signature,
                        )
                        return TxOutcome(index, signature, True, attempt)
                else:
                    self.logger.error("Error with transaction %d on attempt %d: %s", index, attempt, e)

                await self.retry_policy.wait(attempt, sleep=self.sleep)
                attempt += 1

    async def _send(self, signed: AnyTransaction) -> str:
        response = await self.rpc.send_raw_transaction(
            bytes(signed),
            opts=TxOpts(skip_preflight=True, preflight_commitment=Processed),
        )
        return str(response.value)

    async def _landed(self, signature: str) -> bool:
        try:
            return await self.confirmer.landed_without_error(signature)
        except Exception as e:
            self.logger.error("Failed to fetch transaction status for %s: %s", signature, e)
            return False
