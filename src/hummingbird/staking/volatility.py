"""Volatility adjuster module.

Reads the recent outcome window and shrinks proposed stakes when results
have been turbulent. The hard veto lives in the risk gate pipeline; this
module only provides the measurement and the advisory shrinkage.
"""

import math
import statistics
from typing import Optional, Sequence

from .config import StakingConfig

# Share of max_volatility above which stakes start shrinking
SOFT_VOLATILITY_FRACTION = 0.5
# Largest proportional cut applied to a stake
MAX_STAKE_REDUCTION = 0.5


def outcome_volatility(profits: Sequence[float]) -> float:
    """Downside share of the window's second moment.

    sqrt(sum(min(p, 0)^2) / sum(p^2)), bounded to [0, 1]. A window of only
    losses scores 1.0, a window of only wins scores 0.0.

    Args:
        profits: Realized profits, oldest first

    Returns:
        Volatility score, 0.0 for fewer than two entries
    """
    if len(profits) < 2:
        return 0.0

    total = sum(p * p for p in profits)
    if total == 0:
        return 0.0

    downside = sum(p * p for p in profits if p < 0)
    return min(1.0, math.sqrt(downside / total))


def profit_variance(profits: Sequence[float]) -> float:
    """Sample variance of realized profits (0.0 for fewer than two)."""
    if len(profits) < 2:
        return 0.0
    return statistics.variance(profits)


class VolatilityAdjuster:
    """Scales stakes down when recent outcomes are volatile.

    - volatility <= soft midpoint: stake unchanged
    - soft midpoint < volatility: stake cut proportionally, up to 50%
    - result never drops below the initial stake
    """

    def __init__(self, config: Optional[StakingConfig] = None):
        """Initialize volatility adjuster.

        Args:
            config: Staking configuration. Uses defaults if None.
        """
        self.config = config or StakingConfig()

    @property
    def soft_threshold(self) -> float:
        """Volatility at which shrinking starts."""
        return self.config.max_volatility * SOFT_VOLATILITY_FRACTION

    def measure(self, profits: Sequence[float]) -> float:
        """Volatility of the given window."""
        return outcome_volatility(profits)

    def is_too_volatile(self, profits: Sequence[float]) -> bool:
        """Check whether the window breaches the hard volatility ceiling."""
        return self.measure(profits) > self.config.max_volatility

    def reduction_factor(self, volatility: float) -> float:
        """Multiplier in [0.5, 1.0] for a given volatility score."""
        soft = self.soft_threshold
        if volatility <= soft:
            return 1.0

        span = self.config.max_volatility - soft
        if span <= 0:
            return 1.0 - MAX_STAKE_REDUCTION

        reduction = min(MAX_STAKE_REDUCTION, (volatility - soft) / span * MAX_STAKE_REDUCTION)
        return 1.0 - reduction

    def adjust(self, stake: float, profits: Sequence[float]) -> float:
        """Shrink a candidate stake according to recent volatility.

        Args:
            stake: Candidate stake from the stake policy
            profits: Realized profits of the outcome window

        Returns:
            Adjusted stake, unchanged when auto adjust is disabled
        """
        if not self.config.enable_auto_adjust:
            return stake

        factor = self.reduction_factor(self.measure(profits))
        if factor >= 1.0:
            return stake

        return max(self.config.initial_stake, stake * factor)
