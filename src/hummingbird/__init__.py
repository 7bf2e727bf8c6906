"""
Hummingbird - Staking and risk-management decision engine

Sizes stakes and vetoes trades for short-duration binary-style contracts.
"""

__version__ = "1.0.0"
__author__ = "Hummingbird Team"

from .staking import (
    StakingStrategy,
    StakingConfig,
    ConfigValidationError,
    InvalidOutcomeError,
    TradeDecision,
    TradeResult,
)

__all__ = [
    "StakingStrategy",
    "StakingConfig",
    "ConfigValidationError",
    "InvalidOutcomeError",
    "TradeDecision",
    "TradeResult",
]
