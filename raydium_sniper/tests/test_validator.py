"""
Unit tests for TokenValidator and Discovery

Tests:
1. Each validation gate rejects on its own
2. Missing risk data skips the risk gate
3. Fetch errors fail closed
4. Discovery returns the first valid token on the target chain
"""

from unittest.mock import AsyncMock

import pytest

from conftest import NOW, TOKEN, make_pair, stub_dexscreener, stub_rugcheck
from raydium_sniper.config import ValidationThresholds
from raydium_sniper.core.discovery import Discovery
from raydium_sniper.core.validator import TokenValidator
from raydium_sniper.utils.result import FetchResult


def build_validator(settings, dexscreener=None, rugcheck=None):
    return TokenValidator(
        settings,
        dexscreener or stub_dexscreener(),
        rugcheck or stub_rugcheck(),
        clock=lambda: NOW,
    )


class TestValidationGates:
    """Each gate on its own"""

    @pytest.mark.asyncio
    async def test_healthy_token_passes(self, settings, candidate):
        validator = build_validator(settings)
        assert await validator.validate(candidate) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("age", [0.0, 5.0, 9.9])
    async def test_too_young_is_rejected(self, settings, candidate, age):
        validator = build_validator(settings, stub_dexscreener([make_pair(age_minutes=age)]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_too_old_is_rejected(self, settings, candidate):
        validator = build_validator(settings, stub_dexscreener([make_pair(age_minutes=6001)]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_custom_thresholds_override_settings(self, settings, candidate):
        validator = build_validator(settings, stub_dexscreener([make_pair(age_minutes=30)]))
        strict = ValidationThresholds(min_age_minutes=45)
        assert await validator.validate(candidate, strict) is False
        assert await validator.validate(candidate) is True

    @pytest.mark.asyncio
    async def test_low_liquidity_is_rejected(self, settings, candidate):
        validator = build_validator(settings, stub_dexscreener([make_pair(liquidity=99.0)]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_missing_liquidity_counts_as_zero(self, settings, candidate):
        pair = make_pair()
        del pair["liquidity"]
        validator = build_validator(settings, stub_dexscreener([pair]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_low_market_cap_is_rejected(self, settings, candidate):
        validator = build_validator(settings, stub_dexscreener([make_pair(market_cap=50.0, fdv=60.0)]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_low_mcap_to_fdv_ratio_is_rejected(self, settings, candidate):
        """Ratio 0.4 < 0.5 fails even though every other gate passes"""
        validator = build_validator(
            settings, stub_dexscreener([make_pair(market_cap=40_000.0, fdv=100_000.0)])
        )
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_ratio_exactly_at_threshold_passes(self, settings, candidate):
        validator = build_validator(
            settings, stub_dexscreener([make_pair(market_cap=50_000.0, fdv=100_000.0)])
        )
        assert await validator.validate(candidate) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fdv", [0, None])
    async def test_zero_fdv_fails_without_crashing(self, settings, candidate, fdv):
        validator = build_validator(settings, stub_dexscreener([make_pair(fdv=fdv)]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_no_raydium_pair_is_rejected(self, settings, candidate):
        validator = build_validator(settings, stub_dexscreener([make_pair(dex_id="orca")]))
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_uses_the_raydium_pair_among_several(self, settings, candidate):
        pairs = [make_pair(dex_id="orca", liquidity=1.0), make_pair(dex_id="raydium")]
        validator = build_validator(settings, stub_dexscreener(pairs))
        assert await validator.validate(candidate) is True

    @pytest.mark.asyncio
    async def test_high_risk_score_is_rejected(self, settings, candidate):
        validator = build_validator(settings, rugcheck=stub_rugcheck(score=5))
        assert await validator.validate(candidate) is False


class TestRiskDataAndErrors:
    """Risk data is optional; everything else fails closed"""

    @pytest.mark.asyncio
    async def test_risk_api_exception_skips_risk_gate(self, settings, candidate):
        rugcheck = AsyncMock()
        rugcheck.get_report.side_effect = RuntimeError("rugcheck down")
        validator = build_validator(settings, rugcheck=rugcheck)
        assert await validator.validate(candidate) is True

    @pytest.mark.asyncio
    async def test_missing_risk_report_skips_risk_gate(self, settings, candidate):
        rugcheck = AsyncMock()
        rugcheck.get_report.return_value = None
        validator = build_validator(settings, rugcheck=rugcheck)
        assert await validator.validate(candidate) is True

    @pytest.mark.asyncio
    async def test_pair_fetch_failure_rejects(self, settings, candidate):
        dexscreener = stub_dexscreener()
        dexscreener.get_token_pairs.return_value = FetchResult.transient("HTTP 503")
        validator = build_validator(settings, dexscreener)
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_pair_fetch_exception_rejects(self, settings, candidate):
        dexscreener = stub_dexscreener()
        dexscreener.get_token_pairs.side_effect = RuntimeError("boom")
        validator = build_validator(settings, dexscreener)
        assert await validator.validate(candidate) is False

    @pytest.mark.asyncio
    async def test_both_sources_are_queried(self, settings, candidate):
        dexscreener = stub_dexscreener()
        rugcheck = stub_rugcheck()
        validator = build_validator(settings, dexscreener, rugcheck)
        await validator.validate(candidate)
        dexscreener.get_token_pairs.assert_awaited_once_with(TOKEN)
        rugcheck.get_report.assert_awaited_once_with(TOKEN)


class TestDiscovery:
    """Discovery over the latest-profiles feed"""

    @pytest.mark.asyncio
    async def test_returns_first_valid_solana_token(self, settings):
        profiles = [
            {"chainId": "ethereum", "tokenAddress": "0xabc"},
            {"chainId": "solana", "tokenAddress": "bad111"},
            {"chainId": "solana", "tokenAddress": TOKEN, "symbol": "GOOD"},
            {"chainId": "solana", "tokenAddress": "late222"},
        ]
        validator = AsyncMock()
        validator.validate.side_effect = lambda c: c.address == TOKEN
        discovery = Discovery(settings, stub_dexscreener(profiles=profiles), validator)

        found = await discovery.find_candidate()

        assert found is not None
        assert found.address == TOKEN
        assert found.symbol == "GOOD"
        checked = [c.args[0].address for c in validator.validate.await_args_list]
        assert checked == ["bad111", TOKEN]

    @pytest.mark.asyncio
    async def test_none_when_nothing_passes(self, settings):
        profiles = [{"chainId": "solana", "tokenAddress": "bad111"}]
        validator = AsyncMock()
        validator.validate.return_value = False
        discovery = Discovery(settings, stub_dexscreener(profiles=profiles), validator)
        assert await discovery.find_candidate() is None

    @pytest.mark.asyncio
    async def test_none_when_feed_fails(self, settings):
        dexscreener = stub_dexscreener()
        dexscreener.get_token_profiles.return_value = FetchResult.transient("timeout")
        validator = AsyncMock()
        discovery = Discovery(settings, dexscreener, validator)

        assert await discovery.find_candidate() is None
        validator.validate.assert_not_awaited()
