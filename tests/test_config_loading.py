"""Tests for layered configuration loading."""

import pytest

from hummingbird.config import load_staking_config, str_to_bool
from hummingbird.staking import ConfigValidationError, StakePolicyType

HB_VARS = [
    "HB_INITIAL_STAKE", "HB_PROFIT_THRESHOLD", "HB_LOSS_THRESHOLD",
    "HB_MAX_RECOVERY_ATTEMPTS", "HB_MAX_DAILY_TRADES", "HB_MAX_STAKE_MULTIPLIER",
    "HB_POLICY", "HB_RECOVERY_MODE", "HB_MARKET", "HB_ENABLE_RECOVERY",
    "HB_ENABLE_AUTO_ADJUST",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in HB_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.py"
    path.write_text(
        'STAKING_CONFIG = {\n'
        '    "initial_stake": 2.0,\n'
        '    "loss_threshold": 100.0,\n'
        '    "policy": "multiplicative",\n'
        '}\n'
    )
    return path


class TestLoadStakingConfig:
    """Tests for config.py and environment layering."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_staking_config(tmp_path / "absent.py", load_env=False)
        assert config.initial_stake == 5.0

    def test_file_overrides_defaults(self, config_file):
        config = load_staking_config(config_file, load_env=False)

        assert config.initial_stake == 2.0
        assert config.loss_threshold == 100.0
        assert config.policy is StakePolicyType.MULTIPLICATIVE
        assert config.profit_threshold == 1000.0

    def test_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("HB_INITIAL_STAKE", "3.5")
        monkeypatch.setenv("HB_ENABLE_AUTO_ADJUST", "yes")
        monkeypatch.setenv("HB_MARKET", "R_50")

        config = load_staking_config(config_file)

        assert config.initial_stake == 3.5
        assert config.enable_auto_adjust is True
        assert config.market == "R_50"
        assert config.loss_threshold == 100.0

    def test_env_ignored_when_disabled(self, config_file, monkeypatch):
        monkeypatch.setenv("HB_INITIAL_STAKE", "3.5")
        config = load_staking_config(config_file, load_env=False)
        assert config.initial_stake == 2.0

    def test_malformed_env_value_raises(self, config_file, monkeypatch):
        monkeypatch.setenv("HB_MAX_DAILY_TRADES", "lots")
        with pytest.raises(ConfigValidationError, match="HB_MAX_DAILY_TRADES"):
            load_staking_config(config_file)

    def test_invalid_file_values_raise(self, tmp_path):
        path = tmp_path / "config.py"
        path.write_text('STAKING_CONFIG = {"initial_stake": -1}\n')
        with pytest.raises(ConfigValidationError):
            load_staking_config(path, load_env=False)

    def test_broken_file_raises(self, tmp_path):
        path = tmp_path / "config.py"
        path.write_text("STAKING_CONFIG = {\n")
        with pytest.raises(ConfigValidationError):
            load_staking_config(path, load_env=False)


class TestStrToBool:

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("1", True), ("YES", True), ("on", True),
        ("false", False), ("0", False), ("no", False),
    ])
    def test_parses_flags(self, value, expected):
        assert str_to_bool(value) is expected

    def test_none_uses_default(self):
        assert str_to_bool(None, True) is True
