"""Data models for the Hummingbird staking engine."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Optional


class StakePolicyType(Enum):
    """Stake policy selected at construction time."""
    PROGRESSION = "progression"
    MULTIPLICATIVE = "multiplicative"


class RecoveryMode(Enum):
    """Recovery temperament, selects the progression sequence variant."""
    CONSERVATIVE = "conservative"
    NEUTRAL = "neutral"
    AGGRESSIVE = "aggressive"


class ContractType(Enum):
    """Contract selectors handed to the trade execution collaborator."""
    DIGIT_DIFF = "DIGITDIFF"
    CALL = "CALLE"


class DurationUnit(Enum):
    """Contract duration units."""
    TICKS = "t"


@dataclass
class TradeDecision:
    """Outcome of one decide cycle.

    ``reason`` is always set when ``should_trade`` is False so callers can
    match on the stop cause by substring.
    """
    should_trade: bool
    amount: Optional[float] = None
    contract_type: Optional[str] = None
    prediction: Optional[str] = None
    reason: Optional[str] = None
    market: Optional[str] = None
    duration: Optional[int] = None
    duration_unit: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def reject(cls, reason: str) -> "TradeDecision":
        """Build a do-not-trade decision."""
        return cls(should_trade=False, reason=reason)

    def to_dict(self) -> dict:
        """Convert decision to dictionary, dropping absent fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class TradeRecord:
    """A resolved trade kept in the bounded outcome history.

    ``stake`` is the amount actually traded when the caller reports it,
    otherwise the policy's stake before volatility shrinking.
    """
    profit: float
    is_win: bool
    stake: float = 0.0
    in_recovery: bool = False


@dataclass
class SequenceRecord:
    """One finished progression sequence, completed or broken by a loss."""
    profit: float
    completed: bool
    in_recovery: bool = False

    @property
    def failed(self) -> bool:
        return self.profit < 0


@dataclass
class TradeResult:
    """What the trade execution collaborator reports back."""
    is_win: bool
    profit: float
    contract_id: Optional[str] = None
    stake: Optional[float] = None


@dataclass
class StrategyState:
    """Mutable position of one staking session."""
    current_stake: float
    in_recovery: bool = False
    recovery_attempts: int = 0
    recovery_loss: float = 0.0
    total_profit: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0
    trades_today: int = 0
    sequence_position: int = 0
    sequence_profit: float = 0.0
    daily_profit_loss: float = 0.0
    is_active: bool = True
    recovery_history: list[TradeRecord] = field(default_factory=list)
    sequence_history: list[SequenceRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert state to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StrategyState":
        """Rebuild state from :meth:`to_dict` output."""
        values = dict(data)
        values["recovery_history"] = [
            r if isinstance(r, TradeRecord) else TradeRecord(**r)
            for r in values.get("recovery_history", [])
        ]
        values["sequence_history"] = [
            s if isinstance(s, SequenceRecord) else SequenceRecord(**s)
            for s in values.get("sequence_history", [])
        ]
        return cls(**values)


@dataclass
class StrategyStatistics:
    """Cumulative counters, wiped only by a full reset."""
    total_wins: int = 0
    total_losses: int = 0
    total_recovery_attempts: int = 0
    successful_recoveries: int = 0
    sequences_completed: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0
    best_sequence_profit: float = 0.0
    worst_sequence_loss: float = 0.0
    realized_profit_sum: float = 0.0

    @property
    def total_trades(self) -> int:
        """Trades recorded since the last reset."""
        return self.total_wins + self.total_losses

    def to_dict(self) -> dict:
        """Convert statistics to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StrategyStatistics":
        """Rebuild statistics from :meth:`to_dict` output."""
        return cls(**data)


@dataclass
class PerformanceAnalysis:
    """Derived performance figures."""
    total_trades: int
    win_rate: float
    avg_profit: Optional[float]
    recovery_success_rate: float
    meets_min_win_rate: Optional[bool]


@dataclass
class SequencePerformance:
    """Derived figures over the recorded progression sequences."""
    total_sequences: int
    completed: int
    failed: int
    win_rate: float
    avg_profit: Optional[float]
    best_profit: float
    worst_profit: float


@dataclass
class MarketConditions:
    """Advisory read of the recent outcome window."""
    trend: str  # "up", "down" or "flat"
    trend_strength: float
    volatility: float
    profit_variance: float
    is_trending: bool
