"""Hummingbird staking engine.

Decides whether the next trade may be placed and how large its stake is:
- Ordered risk gates (loss limit, profit and sequence locks, daily limit, recovery, volatility)
- 1-3-2-6 fixed progression and multiplicative recovery stake policies
- Volatility-based stake shrinking
- Session state and statistics ledger
"""

from .config import StakingConfig, ConfigValidationError, DEFAULT_CONFIG
from .gates import RiskGatePipeline, GateContext, GateResult, DEFAULT_GATES, effective_loss_threshold
from .ledger import StrategyLedger, InvalidOutcomeError
from .policies import (
    StakePolicy,
    FixedProgressionPolicy,
    MultiplicativeRecoveryPolicy,
    SEQUENCE_VARIANTS,
    calculate_recovery_stake,
    clamp_stake,
    create_policy,
    validate_sequence,
)
from .strategy import StakingStrategy, TradeExecutor
from .volatility import VolatilityAdjuster, outcome_volatility, profit_variance
from .models import (
    StakePolicyType,
    RecoveryMode,
    ContractType,
    DurationUnit,
    TradeDecision,
    TradeRecord,
    SequenceRecord,
    TradeResult,
    StrategyState,
    StrategyStatistics,
    PerformanceAnalysis,
    SequencePerformance,
    MarketConditions,
)

__all__ = [
    # Facade
    "StakingStrategy",
    "TradeExecutor",
    # Configuration
    "StakingConfig",
    "ConfigValidationError",
    "DEFAULT_CONFIG",
    # Risk Gates
    "RiskGatePipeline",
    "GateContext",
    "GateResult",
    "DEFAULT_GATES",
    "effective_loss_threshold",
    # Ledger
    "StrategyLedger",
    "InvalidOutcomeError",
    # Stake Policies
    "StakePolicy",
    "FixedProgressionPolicy",
    "MultiplicativeRecoveryPolicy",
    "SEQUENCE_VARIANTS",
    "calculate_recovery_stake",
    "clamp_stake",
    "create_policy",
    "validate_sequence",
    # Volatility
    "VolatilityAdjuster",
    "outcome_volatility",
    "profit_variance",
    # Models
    "StakePolicyType",
    "RecoveryMode",
    "ContractType",
    "DurationUnit",
    "TradeDecision",
    "TradeRecord",
    "SequenceRecord",
    "TradeResult",
    "StrategyState",
    "StrategyStatistics",
    "PerformanceAnalysis",
    "SequencePerformance",
    "MarketConditions",
]
