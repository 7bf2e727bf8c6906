"""Pytest configuration and shared fixtures."""

import random

import pytest

from hummingbird.staking import StakingConfig, StakingStrategy, StrategyLedger


@pytest.fixture
def default_config():
    """Default staking configuration."""
    return StakingConfig()


@pytest.fixture
def multiplicative_config_data():
    """Configuration data for a small multiplicative-recovery session."""
    return {
        "profit_threshold": 100,
        "loss_threshold": 50,
        "initial_stake": 1,
        "market": "R_100",
        "max_recovery_attempts": 3,
        "max_daily_trades": 100,
        "enable_recovery": True,
        "max_stake_multiplier": 10,
        "enable_auto_adjust": True,
        "max_volatility": 0.6,
        "min_win_rate": 0.4,
        "min_trend_strength": 0.4,
        "policy": "multiplicative",
    }


@pytest.fixture
def multiplicative_config(multiplicative_config_data):
    return StakingConfig.from_dict(multiplicative_config_data)


@pytest.fixture
def progression_strategy(default_config):
    """Progression strategy with a seeded prediction source."""
    return StakingStrategy(default_config, rng=random.Random(42))


@pytest.fixture
def multiplicative_strategy(multiplicative_config):
    return StakingStrategy(multiplicative_config)


@pytest.fixture
def ledger(default_config):
    return StrategyLedger(default_config)
