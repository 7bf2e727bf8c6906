"""Tests for staking configuration validation and loading."""

import math

import pytest
from hypothesis import given, strategies as st, settings

from hummingbird.staking.config import StakingConfig, ConfigValidationError, DEFAULT_CONFIG
from hummingbird.staking.models import RecoveryMode, StakePolicyType


class TestStakingConfigDefaults:
    """Tests for default configuration values."""

    def test_defaults_are_valid(self):
        DEFAULT_CONFIG.validate()

    def test_default_values(self):
        config = StakingConfig()
        assert config.initial_stake == 5.0
        assert config.profit_threshold == 1000.0
        assert config.loss_threshold == 500.0
        assert config.policy is StakePolicyType.PROGRESSION
        assert config.recovery_mode is RecoveryMode.NEUTRAL
        assert config.market == "R_100"

    def test_derived_levels(self):
        config = StakingConfig(initial_stake=2.0, max_stake_multiplier=8.0, profit_threshold=100.0)
        assert config.max_stake == 16.0
        assert config.profit_lock_level == 50.0
        assert config.sequence_lock_level == 20.0


class TestStakingConfigValidation:
    """Tests for eager, aggregated validation."""

    @pytest.mark.parametrize("overrides", [
        {"initial_stake": -1},
        {"initial_stake": 0},
        {"profit_threshold": 0},
        {"loss_threshold": -10},
        {"max_stake_multiplier": 0.5},
        {"max_recovery_attempts": -1},
        {"max_daily_trades": -1},
        {"history_window": 1},
        {"max_volatility": 1.5},
        {"min_win_rate": -0.1},
        {"profit_lock_fraction": 0},
        {"payout_rate": 0},
        {"market": ""},
        {"sequence_lock_multiple": 0},
    ])
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ConfigValidationError):
            StakingConfig(**overrides).validate()

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, "5", None, True])
    def test_rejects_non_finite_stake(self, value):
        with pytest.raises(ConfigValidationError, match="initial_stake"):
            StakingConfig(initial_stake=value).validate()

    @pytest.mark.parametrize("name", ["max_recovery_attempts", "max_daily_trades", "history_window"])
    @pytest.mark.parametrize("value", [True, False, 3.0])
    def test_rejects_non_integer_counts(self, name, value):
        with pytest.raises(ConfigValidationError, match=name):
            StakingConfig(**{name: value}).validate()

    def test_reports_every_violation(self):
        config = StakingConfig(initial_stake=-1, profit_threshold=0, max_stake_multiplier=0.5)
        with pytest.raises(ConfigValidationError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        assert "initial_stake" in message
        assert "profit_threshold" in message
        assert "max_stake_multiplier" in message

    def test_zero_limits_are_allowed(self):
        StakingConfig(max_recovery_attempts=0, max_daily_trades=0).validate()

    @given(
        initial_stake=st.floats(min_value=0.01, max_value=10_000, allow_nan=False),
        multiplier=st.floats(min_value=1.0, max_value=100.0, allow_nan=False),
    )
    @settings(max_examples=50)
    def test_positive_values_validate(self, initial_stake, multiplier):
        StakingConfig(initial_stake=initial_stake, max_stake_multiplier=multiplier).validate()


class TestStakingConfigFromDict:
    """Tests for mapping round trips."""

    def test_enum_strings_are_parsed(self):
        config = StakingConfig.from_dict({"policy": "Multiplicative", "recovery_mode": "aggressive"})
        assert config.policy is StakePolicyType.MULTIPLICATIVE
        assert config.recovery_mode is RecoveryMode.AGGRESSIVE

    def test_unknown_keys_are_ignored(self):
        config = StakingConfig.from_dict({"initial_stake": 2, "trading_hours": "8-20"})
        assert config.initial_stake == 2

    def test_unknown_enum_value_raises(self):
        with pytest.raises(ConfigValidationError):
            StakingConfig.from_dict({"recovery_mode": "standard"})

    def test_to_dict_round_trip(self):
        config = StakingConfig(initial_stake=3.0, policy=StakePolicyType.MULTIPLICATIVE)
        data = config.to_dict()

        assert data["policy"] == "multiplicative"
        assert StakingConfig.from_dict(data) == config
