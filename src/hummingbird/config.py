"""Configuration loading for Hummingbird.

Layers, later wins:
1. StakingConfig defaults
2. STAKING_CONFIG dict of the root config.py
3. HB_* environment variables (.env supported)
"""

import importlib.util
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv

from hummingbird.staking.config import ConfigValidationError, StakingConfig

logger = logging.getLogger(__name__)


def str_to_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


# env var -> (config field, parser)
ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "HB_INITIAL_STAKE": ("initial_stake", float),
    "HB_PROFIT_THRESHOLD": ("profit_threshold", float),
    "HB_LOSS_THRESHOLD": ("loss_threshold", float),
    "HB_MAX_RECOVERY_ATTEMPTS": ("max_recovery_attempts", int),
    "HB_MAX_DAILY_TRADES": ("max_daily_trades", int),
    "HB_MAX_STAKE_MULTIPLIER": ("max_stake_multiplier", float),
    "HB_POLICY": ("policy", str),
    "HB_RECOVERY_MODE": ("recovery_mode", str),
    "HB_MARKET": ("market", str),
    "HB_ENABLE_RECOVERY": ("enable_recovery", str_to_bool),
    "HB_ENABLE_AUTO_ADJUST": ("enable_auto_adjust", str_to_bool),
    "HB_ENABLE_SEQUENCE_PROTECTION": ("enable_sequence_protection", str_to_bool),
}


def _load_config_module(path: Path) -> dict[str, Any]:
    """Read STAKING_CONFIG from a Python config file."""
    if not path.exists():
        return {}

    spec = importlib.util.spec_from_file_location("root_config", path)
    if spec is None or spec.loader is None:
        raise ConfigValidationError(f"Cannot load configuration file {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigValidationError(f"Error in configuration file {path}: {e}") from e

    values = getattr(module, "STAKING_CONFIG", {})
    if not isinstance(values, dict):
        raise ConfigValidationError(f"STAKING_CONFIG in {path} must be a dict")
    return dict(values)


def _env_overrides() -> dict[str, Any]:
    """Collect HB_* overrides from the environment."""
    values = {}
    for env_name, (field_name, parse) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError as e:
            raise ConfigValidationError(f"Invalid value for {env_name}: {raw!r}") from e
    return values


def load_staking_config(
    config_path: str | Path | None = None,
    load_env: bool = True,
) -> StakingConfig:
    """Load staking configuration from config.py and environment variables.

    Args:
        config_path: Path to a config.py. Defaults to ./config.py.
        load_env: Whether to read .env and HB_* variables. Set to False for testing.

    Returns:
        Validated StakingConfig

    Raises:
        ConfigValidationError: If any layer holds an invalid value
    """
    path = Path(config_path) if config_path else Path(os.getcwd()) / "config.py"
    values = _load_config_module(path)

    if load_env:
        load_dotenv()
        overrides = _env_overrides()
        if overrides:
            logger.info(f"Environment overrides: {', '.join(sorted(overrides))}")
        values.update(overrides)

    config = StakingConfig.from_dict(values)
    config.validate()
    return config
