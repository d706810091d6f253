import logging
from typing import Optional, Union

import base58

from solders.keypair import Keypair # type: ignore
from solders.pubkey import Pubkey # type: ignore
from solders.transaction import Transaction, VersionedTransaction # type: ignore
from solana.rpc.async_api import AsyncClient
from solana.rpc.types import TokenAccountOpts

from ..constants import LAMPORTS_PER_SOL
from ..exceptions import WalletException
from ..utils.retry import RetryPolicy, async_retry

logger = logging.getLogger(__name__)

AnyTransaction = Union[VersionedTransaction, Transaction]

RPC_READ_POLICY = RetryPolicy(max_attempts=3, delay=0.5, multiplier=2.0)


def load_keypair(secret: str) -> Keypair:
    """Load a keypair from a hex-encoded 64-byte secret, or a base58 string."""
    secret = (secret or "").strip()
    if not secret:
        raise WalletException("WALLET_PRIVATE_KEY is not set in the environment")
    try:
        return Keypair.from_bytes(bytes.fromhex(secret))
    except ValueError:
        pass
    try:
        return Keypair.from_bytes(base58.b58decode(secret))
    except ValueError as e:
        raise WalletException("WALLET_PRIVATE_KEY is neither hex nor base58") from e


class WalletManager:
    def __init__(self, client: AsyncClient, keypair: Keypair):
        self.client = client
        self.payer = keypair
        self.pubkey = keypair.pubkey()

    @property
    def address(self) -> str:
        return str(self.pubkey)

    def sign(self, tx: AnyTransaction) -> AnyTransaction:
        """Sign a transaction built by the swap API with the wallet key."""
        if isinstance(tx, VersionedTransaction):
            return VersionedTransaction(tx.message, [self.payer])
        tx.sign([self.payer], tx.message.recent_blockhash)
        return tx

    @async_retry(RPC_READ_POLICY)
    async def get_sol_balance(self) -> float:
        """Returns available SOL balance."""
        resp = await self.client.get_balance(self.pubkey)
        return (resp.value or 0) / LAMPORTS_PER_SOL

    @async_retry(RPC_READ_POLICY)
    async def _token_accounts(self, mint_str: str) -> list:
        resp = await self.client.get_token_accounts_by_owner_json_parsed(
            self.pubkey,
            TokenAccountOpts(mint=Pubkey.from_string(mint_str))
        )
        return list(resp.value or [])

    async def get_token_balance(self, mint_str: str) -> int:
        """
        Returns token balance (raw amount) summed over all of the wallet's
        token accounts for this mint.
        """
        total_balance = 0
        for acc in await self._token_accounts(mint_str):
            try:
                total_balance += int(acc.account.data.parsed['info']['tokenAmount']['amount'])
            except (KeyError, TypeError, AttributeError):
                continue
        return total_balance

    async def find_token_account(self, mint_str: str) -> Optional[Pubkey]:
        """First existing token account holding this mint, if any."""
        accounts = await self._token_accounts(mint_str)
        if not accounts:
            return None
        return accounts[0].pubkey
