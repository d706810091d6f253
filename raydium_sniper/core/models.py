from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MonitorState(str, Enum):
    WATCHING = "WATCHING"
    SOLD = "SOLD"
    FAILED = "FAILED"


@dataclass(frozen=True)
class TokenCandidate:
    address: str
    chain_id: str
    name: str = ""
    symbol: str = ""

    @classmethod
    def from_profile(cls, profile: dict[str, Any]) -> "TokenCandidate":
        return cls(
            address=profile["tokenAddress"],
            chain_id=profile.get("chainId", ""),
            name=profile.get("name") or "",
            symbol=profile.get("symbol") or "",
        )

    @property
    def label(self) -> str:
        return self.symbol or self.address[:8]


@dataclass(frozen=True)
class Quote:
    raw_response: dict[str, Any]
    tx_version: str
    is_input_native: bool
    is_output_native: bool
    input_mint: str
    output_mint: str

    @property
    def output_amount(self) -> int:
        data = self.raw_response.get("data") or {}
        return int(data.get("outputAmount") or 0)

    @property
    def input_amount(self) -> int:
        data = self.raw_response.get("data") or {}
        return int(data.get("inputAmount") or 0)

    @property
    def token_mint(self) -> str:
        """The non-native side of the swap."""
        return self.output_mint if self.is_input_native else self.input_mint


@dataclass
class TxOutcome:
    index: int
    signature: str | None
    success: bool
    attempts: int
    error: str = ""


@dataclass
class BatchResult:
    outcomes: list[TxOutcome] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return all(o.success for o in self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)


@dataclass(frozen=True)
class PositionState:
    token_purchased: bool = False
    purchased_token_address: str | None = None
    output_amount_lamports: int = 0
    entry_price_usd: float | None = None

    @classmethod
    def closed(cls) -> "PositionState":
        return cls()

    @classmethod
    def opened(
        cls,
        address: str,
        output_amount: int,
        entry_price_usd: float | None = None,
    ) -> "PositionState":
        return cls(
            token_purchased=True,
            purchased_token_address=address,
            output_amount_lamports=output_amount,
            entry_price_usd=entry_price_usd,
        )
