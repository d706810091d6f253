"""Shared fixtures and builders for the bot's tests."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from raydium_sniper.config import Settings
from raydium_sniper.core.models import Quote, TokenCandidate
from raydium_sniper.core.rugcheck_client import RugCheckReport
from raydium_sniper.utils.result import FetchResult

NOW = 1_700_000_000.0
TOKEN = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"


def make_pair(
    age_minutes=60.0,
    liquidity=5_000.0,
    market_cap=50_000.0,
    fdv=60_000.0,
    price="1.0",
    dex_id="raydium",
    chain_id="solana",
):
    return {
        "chainId": chain_id,
        "dexId": dex_id,
        "pairCreatedAt": int((NOW - age_minutes * 60) * 1000),
        "liquidity": {"usd": liquidity},
        "marketCap": market_cap,
        "fdv": fdv,
        "priceUsd": price,
    }


def make_quote(output_amount=123_456_789, buy=True):
    native = "So11111111111111111111111111111111111111112"
    return Quote(
        raw_response={"success": True, "data": {"inputAmount": "1000", "outputAmount": str(output_amount)}},
        tx_version="V0",
        is_input_native=buy,
        is_output_native=not buy,
        input_mint=native if buy else TOKEN,
        output_mint=TOKEN if buy else native,
    )


def stub_dexscreener(pairs=None, profiles=None):
    client = AsyncMock()
    client.get_token_pairs.return_value = FetchResult.ok(pairs if pairs is not None else [make_pair()])
    client.get_token_profiles.return_value = FetchResult.ok(profiles or [])
    return client


def stub_rugcheck(score=0.0):
    client = AsyncMock()
    client.get_report.return_value = RugCheckReport(score=score, risks=[], mint=TOKEN)
    return client


def recorded_sleep():
    return AsyncMock(return_value=None)


def sleep_delays(sleep_mock):
    return [c.args[0] for c in sleep_mock.await_args_list]


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def candidate():
    return TokenCandidate(address=TOKEN, chain_id="solana", name="Test", symbol="TEST")


@pytest.fixture
def wallet():
    w = SimpleNamespace()
    w.address = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
    w.sign = lambda tx: tx
    w.find_token_account = AsyncMock(return_value=None)
    w.get_token_balance = AsyncMock(return_value=1_000_000)
    return w
