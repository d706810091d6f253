"""
Strategy configuration.

Validation thresholds are a fixed record read once at startup. An optional
YAML or JSON file can override them together with the trade settings.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from ..exceptions import ConfigurationException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationThresholds:
    """Token validation gates"""
    min_age_minutes: float = 10.0
    max_age_minutes: float = 6000.0
    min_liquidity_usd: float = 100.0
    min_market_cap: float = 100.0
    min_market_cap_to_fdv_ratio: float = 0.5
    max_risk_score: float = 1.0

    def __post_init__(self):
        if self.min_age_minutes > self.max_age_minutes:
            raise ConfigurationException(
                "min_age_minutes must not exceed max_age_minutes",
                min_age_minutes=self.min_age_minutes,
                max_age_minutes=self.max_age_minutes,
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationThresholds":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationException(
                "Unknown threshold keys", keys=",".join(sorted(unknown))
            )
        try:
            return cls(**{k: float(v) for k, v in data.items()})
        except (TypeError, ValueError) as e:
            raise ConfigurationException(f"Invalid threshold value: {e}") from e


def load_strategy_file(path: str) -> Dict[str, Any]:
    """
    Load a strategy override file.
    
    Args:
        path: Path to a .yaml/.yml or .json file
    
    Returns:
        Dict with optional "thresholds" and "trade" sections
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationException("Strategy config file not found", path=path)

    with open(config_path, "r", encoding="utf-8") as f:
        if config_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ConfigurationException("Strategy config must be a mapping", path=path)

    logger.info(f"Loaded strategy config from {config_path}")
    return data
