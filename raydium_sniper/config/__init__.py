"""Config package"""
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from .strategy_config import (
    ValidationThresholds,
    load_strategy_file,
)
from .settings import Settings

__all__ = [
    "Settings",
    "ValidationThresholds",
    "load_strategy_file",
]
