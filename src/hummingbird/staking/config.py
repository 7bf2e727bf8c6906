"""Staking engine configuration module.

Centralized, eagerly validated configuration for the staking engine.
"""

import math
from dataclasses import dataclass, fields
from typing import Any

from .models import RecoveryMode, StakePolicyType


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class StakingConfig:
    """Complete configuration for one staking session.

    Values normally arrive from the conversational front end and are
    validated once, before the strategy is built.
    """

    # Stake and session limits
    initial_stake: float = 5.0
    profit_threshold: float = 1000.0
    loss_threshold: float = 500.0
    max_recovery_attempts: int = 3
    max_daily_trades: int = 50
    max_stake_multiplier: float = 10.0      # Ceiling = initial_stake * this

    # Policy selection
    policy: StakePolicyType = StakePolicyType.PROGRESSION
    recovery_mode: RecoveryMode = RecoveryMode.NEUTRAL
    enable_recovery: bool = True

    # Risk tuning
    enable_auto_adjust: bool = False
    max_volatility: float = 0.6             # Hard veto above this
    min_win_rate: float = 0.4
    min_trend_strength: float = 0.4
    profit_lock_fraction: float = 0.5       # Lock once 50% of target is banked
    payout_rate: float = 0.95               # Net payout per unit staked on a win
    history_window: int = 10
    enable_dynamic_loss_threshold: bool = False
    enable_sequence_protection: bool = True  # Stop once a sequence banks enough
    sequence_lock_multiple: float = 10.0     # ...initial_stake * this

    market: str = "R_100"

    @property
    def max_stake(self) -> float:
        """Hard ceiling on any stake."""
        return self.initial_stake * self.max_stake_multiplier

    @property
    def profit_lock_level(self) -> float:
        """Cumulative profit at which the profit lock engages."""
        return self.profit_threshold * self.profit_lock_fraction

    @property
    def sequence_lock_level(self) -> float:
        """Sequence profit at which the sequence lock engages."""
        return self.initial_stake * self.sequence_lock_multiple

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigValidationError: If validation fails.
        """
        errors = []

        for name in ("initial_stake", "profit_threshold", "loss_threshold",
                     "max_stake_multiplier", "max_volatility", "min_win_rate",
                     "min_trend_strength", "profit_lock_fraction", "payout_rate",
                     "sequence_lock_multiple"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                errors.append(f"{name} must be a finite number, got {value!r}")

        if errors:
            raise ConfigValidationError("\n".join(errors))

        if self.initial_stake <= 0:
            errors.append("initial_stake must be > 0")
        if self.profit_threshold <= 0:
            errors.append("profit_threshold must be > 0")
        if self.loss_threshold <= 0:
            errors.append("loss_threshold must be > 0")
        if self.max_stake_multiplier < 1:
            errors.append("max_stake_multiplier must be >= 1")

        if self.sequence_lock_multiple <= 0:
            errors.append("sequence_lock_multiple must be > 0")

        for name, minimum in (("max_recovery_attempts", 0), ("max_daily_trades", 0), ("history_window", 2)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                errors.append(f"{name} must be an integer >= {minimum}")

        for name in ("max_volatility", "min_win_rate", "min_trend_strength"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                errors.append(f"{name} must be between 0 and 1")
        if not 0.0 < self.profit_lock_fraction <= 1.0:
            errors.append("profit_lock_fraction must be in (0, 1]")
        if self.payout_rate <= 0:
            errors.append("payout_rate must be > 0")

        if not isinstance(self.policy, StakePolicyType):
            errors.append(f"policy must be one of {[p.value for p in StakePolicyType]}")
        if not isinstance(self.recovery_mode, RecoveryMode):
            errors.append(f"recovery_mode must be one of {[m.value for m in RecoveryMode]}")
        if not self.market:
            errors.append("market must not be empty")

        if errors:
            raise ConfigValidationError("\n".join(errors))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StakingConfig":
        """Build a configuration from a plain mapping.

        Unknown keys are ignored; enum fields accept their string values.

        Raises:
            ConfigValidationError: If an enum value is not recognised.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        try:
            if isinstance(values.get("policy"), str):
                values["policy"] = StakePolicyType(values["policy"].lower())
            if isinstance(values.get("recovery_mode"), str):
                values["recovery_mode"] = RecoveryMode(values["recovery_mode"].lower())
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        return cls(**values)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["policy"] = self.policy.value
        data["recovery_mode"] = self.recovery_mode.value
        return data


# Default configuration instance
DEFAULT_CONFIG = StakingConfig()
