"""Client for the RugCheck.xyz report summary endpoint."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from raydium_sniper.config import Settings


@dataclass
class RugCheckReport:
    score: float
    mint: str
    risks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def risk_names(self) -> List[str]:
        return [r.get("name", "?") for r in self.risks]

    @classmethod
    def from_summary(cls, mint: str, data: Dict[str, Any]) -> Optional["RugCheckReport"]:
        try:
            score = float(data["score"])
        except (KeyError, TypeError, ValueError):
            return None
        return cls(score=score, mint=mint, risks=data.get("risks") or [])


class RugCheckClient:
    """
    Risk data is optional for validation, so this client never raises:
    a missing, failed or malformed report comes back as None.
    """

    def __init__(self, settings: Settings, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.settings = settings
        self.base_url = settings.RUGCHECK_API_BASE.rstrip("/")
        self.logger = logging.getLogger("raydium_sniper.rugcheck")
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

    async def get_report(self, mint: str) -> Optional[RugCheckReport]:
        url = f"{self.base_url}/tokens/{mint}/report/summary"
        try:
            session = await self._get_session()
            async with session.get(url, headers={"Accept": "application/json"}) as resp:
                if resp.status != 200:
                    log = self.logger.debug if resp.status == 404 else self.logger.warning
                    log(f"RugCheck {resp.status} for {mint[:8]}...")
                    return None
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.warning(f"RugCheck request for {mint[:8]}... failed: {e}")
            return None

        if not isinstance(data, dict):
            return None
        report = RugCheckReport.from_summary(mint, data)
        if report is None:
            self.logger.debug(f"RugCheck {mint[:8]}: no score in report")
        elif report.risks:
            self.logger.debug(f"RugCheck {mint[:8]}: score {report.score}, risks {report.risk_names}")
        return report
