from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from .. import constants
from ..exceptions import ConfigurationException
from .strategy_config import ValidationThresholds, load_strategy_file

# Trade settings a strategy file may override (lower-case keys in the file)
TRADE_OVERRIDABLE = (
    "BUY_AMOUNT_USD",
    "SLIPPAGE_BPS",
    "TX_VERSION",
    "PRIORITY_FEE_TIER",
    "SELL_TARGET_MULTIPLIER",
    "TX_MAX_ATTEMPTS",
    "TX_RETRY_DELAY_SEC",
    "CONFIRM_TIMEOUT_SEC",
    "DISCOVERY_BACKOFF_SEC",
    "FAILURE_BACKOFF_SEC",
    "PRICE_RETRY_SEC",
    "POLL_INTERVAL_SEC",
)


@dataclass(frozen=True)
class Settings:
    # ============================================
    # CREDENTIALS & ENDPOINTS
    # ============================================
    WALLET_PRIVATE_KEY: str = ""
    RPC_URL: str = constants.DEFAULT_RPC_URL
    # Messaging gateway, carried for deployments that use it
    GRPC_URL: str = ""
    GRPC_TOKEN: str = ""

    DEXSCREENER_API_BASE: str = constants.DEXSCREENER_API_BASE
    DEXSCREENER_MAX_RETRIES: int = 2
    DEXSCREENER_RETRY_BACKOFF_SEC: float = 1.0
    RUGCHECK_API_BASE: str = constants.RUGCHECK_API_BASE
    COINGECKO_API_BASE: str = constants.COINGECKO_API_BASE
    COINGECKO_API_KEY: str = ""
    RAYDIUM_SWAP_HOST: str = constants.RAYDIUM_SWAP_HOST
    RAYDIUM_BASE_HOST: str = constants.RAYDIUM_BASE_HOST
    RAYDIUM_PRIORITY_FEE_PATH: str = constants.RAYDIUM_PRIORITY_FEE_PATH
    API_TIMEOUT_SEC: float = 15.0

    TARGET_CHAIN_ID: str = constants.TARGET_CHAIN_ID
    TARGET_DEX_ID: str = constants.TARGET_DEX_ID

    # ============================================
    # TRADE SETTINGS
    # ============================================
    BUY_AMOUNT_USD: float = 0.1
    SLIPPAGE_BPS: int = 50           # 0.5%
    TX_VERSION: str = constants.TX_VERSION_V0
    PRIORITY_FEE_TIER: str = "h"     # vh / h / m
    SELL_TARGET_MULTIPLIER: float = 1.01

    # ============================================
    # TIMING
    # ============================================
    TX_MAX_ATTEMPTS: int = 5
    TX_RETRY_DELAY_SEC: float = 2.0
    CONFIRM_TIMEOUT_SEC: float = 60.0
    DISCOVERY_BACKOFF_SEC: float = 20.0
    FAILURE_BACKOFF_SEC: float = 30.0
    PRICE_RETRY_SEC: float = 15.0
    POLL_INTERVAL_SEC: float = 10.0

    STRATEGY_CONFIG_PATH: str = ""
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    THRESHOLDS: ValidationThresholds = field(default_factory=ValidationThresholds)

    @property
    def uses_default_rpc(self) -> bool:
        return self.RPC_URL.rstrip("/") == constants.DEFAULT_RPC_URL

    @property
    def target_gain_pct(self) -> float:
        return (self.SELL_TARGET_MULTIPLIER - 1.0) * 100.0

    def __post_init__(self):
        if self.SELL_TARGET_MULTIPLIER <= 1.0:
            raise ConfigurationException(
                "SELL_TARGET_MULTIPLIER must be greater than 1",
                value=self.SELL_TARGET_MULTIPLIER,
            )
        if self.TX_MAX_ATTEMPTS < 1:
            raise ConfigurationException("TX_MAX_ATTEMPTS must be at least 1")
        if self.TX_VERSION not in (constants.TX_VERSION_V0, constants.TX_VERSION_LEGACY):
            raise ConfigurationException("Unsupported TX_VERSION", value=self.TX_VERSION)
        if not isinstance(logging.getLevelName(self.LOG_LEVEL.upper()), int):
            raise ConfigurationException("Unknown LOG_LEVEL", value=self.LOG_LEVEL)
        object.__setattr__(self, "LOG_LEVEL", self.LOG_LEVEL.upper())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables and the optional strategy file."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "THRESHOLDS" or f.name not in env:
                continue
            values[f.name] = _coerce(f.name, env[f.name], f.default)

        settings = cls(**values)
        if settings.STRATEGY_CONFIG_PATH:
            settings = settings.with_overrides(load_strategy_file(settings.STRATEGY_CONFIG_PATH))
        return settings

    def with_overrides(self, data: Mapping[str, Any]) -> "Settings":
        """Apply the "thresholds" and "trade" sections of a strategy file."""
        changes: dict[str, Any] = {}
        thresholds = data.get("thresholds") or {}
        if thresholds:
            merged = {**self.THRESHOLDS.to_dict(), **thresholds}
            changes["THRESHOLDS"] = ValidationThresholds.from_dict(merged)

        for key, raw in (data.get("trade") or {}).items():
            name = key.upper()
            if name not in TRADE_OVERRIDABLE:
                raise ConfigurationException("Unknown trade setting", key=key)
            changes[name] = _coerce(name, raw, getattr(self, name))

        return replace(self, **changes) if changes else self


def _coerce(name: str, raw: Any, default: Any) -> Any:
    try:
        if isinstance(default, bool):
            return str(raw).lower() == "true"
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationException(f"Invalid value for {name}", value=raw) from e
    return str(raw)
