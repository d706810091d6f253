import asyncio
import logging
import platform
import signal
import sys

import aiohttp
import httpx
from solana.rpc.async_api import AsyncClient

from raydium_sniper.config import Settings
from raydium_sniper.core.coingecko_client import CoinGeckoClient
from raydium_sniper.core.dexscreener_client import DexScreenerClient
from raydium_sniper.core.discovery import Discovery
from raydium_sniper.core.monitor import Monitor
from raydium_sniper.core.orchestrator import Orchestrator
from raydium_sniper.core.price_oracle import PriceOracle
from raydium_sniper.core.quote_service import QuoteService
from raydium_sniper.core.raydium_client import RaydiumClient
from raydium_sniper.core.rugcheck_client import RugCheckClient
from raydium_sniper.core.tx_pipeline import TxPipeline
from raydium_sniper.core.validator import TokenValidator
from raydium_sniper.core.wallet import WalletManager, load_keypair
from raydium_sniper.exceptions import BotException
from raydium_sniper.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    if settings.uses_default_rpc:
        logger.warning(
            "Using free RPC node might cause unexpected errors. "
            "It is strongly recommended to use a paid RPC node."
        )
    logger.info(f"Connecting to RPC {settings.RPC_URL}")

    keypair = load_keypair(settings.WALLET_PRIVATE_KEY)
    rpc = AsyncClient(settings.RPC_URL)
    http = httpx.AsyncClient(timeout=settings.API_TIMEOUT_SEC)
    session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=settings.API_TIMEOUT_SEC))

    wallet = WalletManager(rpc, keypair)
    dexscreener = DexScreenerClient(settings, http)
    coingecko = CoinGeckoClient(settings)
    rugcheck = RugCheckClient(settings, session)
    raydium = RaydiumClient(settings, session)

    oracle = PriceOracle(settings, coingecko, dexscreener)
    validator = TokenValidator(settings, dexscreener, rugcheck)
    discovery = Discovery(settings, dexscreener, validator)
    quotes = QuoteService(settings, raydium, oracle)
    pipeline = TxPipeline(settings, raydium, wallet, rpc)
    monitor = Monitor(settings, oracle, quotes, pipeline, wallet)
    orchestrator = Orchestrator(settings, discovery, quotes, pipeline, monitor, oracle)

    try:
        sol_balance = await wallet.get_sol_balance()
        logger.info(f"Wallet: {wallet.address} | SOL Balance: {sol_balance:.4f}")
    except Exception as e:
        logger.warning(f"Could not read SOL balance: {e}")

    try:
        await orchestrator.run_forever()
    finally:
        await coingecko.close()
        await http.aclose()
        await session.close()
        await rpc.close()
        logger.info("Shutdown complete")


async def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings)

    task = asyncio.create_task(run(settings))

    def handle_shutdown(sig):
        """Handle shutdown signals."""
        print(f"\n🛑 [SHUTDOWN] Received signal {sig}...")
        task.cancel()

    # Add signal handlers (not supported on Windows)
    if platform.system() != "Windows":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

    try:
        await task
    except asyncio.CancelledError:
        logger.info("Bot stopped")


def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Keyboard interrupt - shutting down...")
    except BotException as e:
        print(f"❌ Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
