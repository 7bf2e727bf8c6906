"""Session simulation engine for staking strategy validation.

Drives a strategy through decide -> execute -> update cycles against a
simulated executor with a fixed win probability.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Optional

import numpy as np
import pandas as pd

from hummingbird.staking.models import TradeDecision, TradeResult
from hummingbird.staking.strategy import StakingStrategy, TradeExecutor

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Configuration for a simulated session."""
    max_cycles: int = 200
    win_rate: float = 0.5          # Probability a contract wins
    payout_rate: float = 0.95      # Net payout per unit staked on a win
    seed: Optional[int] = None
    reset_on_stop: bool = False    # Start a new day instead of stopping on the daily limit


@dataclass
class SimulatedTrade:
    """A simulated trade during a session."""
    cycle: int
    stake: float
    contract_type: str
    prediction: Optional[str]
    is_win: bool
    profit: float
    total_profit: float
    in_recovery: bool
    sequence_position: int


class SimulatedExecutor:
    """Settles contracts with a seeded coin flip.

    A win pays ``stake * payout_rate``, a loss costs the stake.
    """

    def __init__(self, win_rate: float = 0.5, payout_rate: float = 0.95, seed: Optional[int] = None):
        if not 0.0 <= win_rate <= 1.0:
            raise ValueError(f"win_rate must be between 0 and 1, got {win_rate}")
        self.win_rate = win_rate
        self.payout_rate = payout_rate
        self._rng = np.random.default_rng(seed)
        self._contracts = 0

    def execute(self, decision: TradeDecision) -> TradeResult:
        """Settle one contract.

        Args:
            decision: Trade decision with should_trade set

        Returns:
            Definitive trade result
        """
        self._contracts += 1
        is_win = bool(self._rng.random() < self.win_rate)
        stake = decision.amount or 0.0
        profit = round(stake * self.payout_rate, 2) if is_win else -stake
        return TradeResult(
            is_win=is_win,
            profit=profit,
            contract_id=f"SIM-{self._contracts}",
            stake=stake or None,
        )


@dataclass
class SimulationResult:
    """Results of a simulated session."""
    trades: list[SimulatedTrade] = field(default_factory=list)
    final_profit: float = 0.0
    stop_reason: Optional[str] = None
    cycles: int = 0

    @property
    def total_trades(self) -> int:
        return len(self.trades)

    @property
    def win_rate(self) -> float:
        if not self.trades:
            return 0.0
        return sum(1 for t in self.trades if t.is_win) / len(self.trades)

    @property
    def max_drawdown(self) -> float:
        """Largest drop of cumulative profit from its running peak."""
        if not self.trades:
            return 0.0
        equity = np.concatenate(([0.0], np.array([t.total_profit for t in self.trades])))
        peaks = np.maximum.accumulate(equity)
        return float(np.max(peaks - equity))

    @property
    def max_stake(self) -> float:
        if not self.trades:
            return 0.0
        return max(t.stake for t in self.trades)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per trade."""
        columns = [f.name for f in SimulatedTrade.__dataclass_fields__.values()]
        return pd.DataFrame([asdict(t) for t in self.trades], columns=columns)

    def summary(self) -> dict:
        """Headline figures of the session."""
        return {
            "trades": self.total_trades,
            "cycles": self.cycles,
            "win_rate": round(self.win_rate, 4),
            "final_profit": round(self.final_profit, 2),
            "max_drawdown": round(self.max_drawdown, 2),
            "max_stake": self.max_stake,
            "stop_reason": self.stop_reason,
        }


class SimulationEngine:
    """Engine for simulating staking sessions.

    Features:
    - Seeded, reproducible outcomes
    - Stops on the first gate stop (or starts a new day on the daily limit)
    - Drawdown and per-trade reporting
    """

    def __init__(
        self,
        strategy: StakingStrategy,
        config: Optional[SimulationConfig] = None,
        executor: Optional[TradeExecutor] = None,
    ):
        """Initialize simulation engine.

        Args:
            strategy: Strategy under test
            config: Simulation configuration
            executor: Contract settlement (seeded SimulatedExecutor if None)
        """
        self.strategy = strategy
        self.config = config or SimulationConfig()
        self.executor = executor or SimulatedExecutor(
            win_rate=self.config.win_rate,
            payout_rate=self.config.payout_rate,
            seed=self.config.seed,
        )

    def run(self) -> SimulationResult:
        """Run the session until max_cycles or a stop decision.

        Returns:
            SimulationResult with every executed trade
        """
        result = SimulationResult()

        for cycle in range(1, self.config.max_cycles + 1):
            result.cycles = cycle
            decision = self.strategy.prepare_for_next_trade()

            if not decision.should_trade:
                if self.config.reset_on_stop and decision.reason.startswith("Daily trade limit"):
                    self.strategy.reset_daily_counters()
                    continue
                result.stop_reason = decision.reason
                logger.info(f"Session stopped after {len(result.trades)} trades: {decision.reason}")
                break

            outcome = self.executor.execute(decision)
            self.strategy.record_result(outcome)
            state = self.strategy.get_current_state()

            result.trades.append(SimulatedTrade(
                cycle=cycle,
                stake=decision.amount,
                contract_type=decision.contract_type,
                prediction=decision.prediction,
                is_win=outcome.is_win,
                profit=outcome.profit,
                total_profit=state.total_profit,
                in_recovery=state.in_recovery,
                sequence_position=state.sequence_position,
            ))

        result.final_profit = self.strategy.get_current_state().total_profit
        return result
