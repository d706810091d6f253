"""
Transaction confirmation.

Polls signature status until a transaction reaches "confirmed", fails on
chain, or the timeout passes. A timed-out transaction may still have
landed, so ``landed_without_error`` looks it up on the ledger by id.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from solana.rpc.async_api import AsyncClient
from solders.signature import Signature # type: ignore

from ..exceptions import TransactionFailedError, TransactionTimeoutError

logger = logging.getLogger(__name__)


class TxStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"
    FAILED = "failed"
    EXPIRED = "expired"


@dataclass
class TxResult:
    """Final state of one confirmation wait"""
    signature: str
    status: TxStatus
    slot: Optional[int] = None
    error: Optional[str] = None
    elapsed_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status in (TxStatus.CONFIRMED, TxStatus.FINALIZED)

    def raise_for_status(self) -> None:
        """Raise TransactionTimeoutError or TransactionFailedError unless successful."""
        if self.status is TxStatus.EXPIRED:
            raise TransactionTimeoutError(
                "Transaction not confirmed in time",
                signature=self.signature,
                elapsed=f"{self.elapsed_seconds:.1f}s",
            )
        if self.status is TxStatus.FAILED:
            raise TransactionFailedError(
                "Transaction failed on-chain",
                signature=self.signature,
                error=self.error,
            )


def _status_from_rpc(confirmation_status: Any) -> TxStatus:
    # solders returns an enum whose str() ends in the level name
    level = str(confirmation_status or "").lower()
    if level.endswith("finalized"):
        return TxStatus.FINALIZED
    if level.endswith("confirmed"):
        return TxStatus.CONFIRMED
    return TxStatus.PENDING


class TransactionConfirmer:
    """
    Usage:
        confirmer = TransactionConfirmer(client)
        result = await confirmer.confirm(signature, timeout=60)
        result.raise_for_status()
    """

    DEFAULT_TIMEOUT = 60.0
    MIN_POLL_INTERVAL = 0.5
    MAX_POLL_INTERVAL = 2.0

    def __init__(
        self,
        client: AsyncClient,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.sleep = sleep
        self.clock = clock

    async def confirm(self, signature: str, timeout: float = DEFAULT_TIMEOUT) -> TxResult:
        started = self.clock()
        deadline = started + timeout
        interval = self.MIN_POLL_INTERVAL
        short_sig = signature[:20]

        while self.clock() < deadline:
            status = await self._fetch_status(signature)
            if status is not None:
                elapsed = self.clock() - started
                if status.err:
                    logger.error(f"Transaction {short_sig}... failed: {status.err}")
                    return TxResult(signature, TxStatus.FAILED, status.slot, str(status.err), elapsed)

                result = TxResult(signature, _status_from_rpc(status.confirmation_status), status.slot)
                if result.is_success:
                    result.elapsed_seconds = elapsed
                    logger.info(f"Transaction {short_sig}... {result.status.value} in {elapsed:.1f}s")
                    return result

            await self.sleep(interval)
            interval = min(interval * 1.5, self.MAX_POLL_INTERVAL)

        elapsed = self.clock() - started
        logger.warning(f"Transaction {short_sig}... expired after {elapsed:.1f}s")
        return TxResult(
            signature, TxStatus.EXPIRED, error=f"Timeout after {timeout}s", elapsed_seconds=elapsed
        )

    async def _fetch_status(self, signature: str) -> Optional[Any]:
        """Signature status from RPC, or None when unknown or unreachable."""
        try:
            response = await self.client.get_signature_statuses([Signature.from_string(signature)])
        except Exception as e:
            logger.debug(f"Status check error for {signature[:20]}...: {e}")
            return None
        if not response or not response.value:
            return None
        return response.value[0]

    async def landed_without_error(self, signature: str) -> bool:
        """True only when the transaction is on the ledger and its meta reports no error."""
        response = await self.client.get_transaction(
            Signature.from_string(signature),
            max_supported_transaction_version=0,
        )
        tx = response.value if response else None
        if tx is None or tx.transaction.meta is None:
            return False
        return tx.transaction.meta.err is None
