"""Staking strategy facade.

Composes the risk gate pipeline, stake policy, volatility adjuster and
ledger into the object a trading session talks to.
"""

import logging
import random
from typing import Iterable, Optional, Protocol, Union

from .config import ConfigValidationError, StakingConfig
from .gates import GateContext, RiskGatePipeline
from .ledger import StrategyLedger
from .models import (
    DurationUnit,
    MarketConditions,
    PerformanceAnalysis,
    SequencePerformance,
    SequenceRecord,
    StrategyState,
    StrategyStatistics,
    TradeDecision,
    TradeRecord,
    TradeResult,
)
from .policies import StakePolicy, create_policy
from .volatility import VolatilityAdjuster, outcome_volatility, profit_variance

logger = logging.getLogger(__name__)

# Trades after which a losing session is paused for review
SESSION_REVIEW_TRADES = 30
# Recent sequences considered by should_continue_sequence
FAILED_SEQUENCE_WINDOW = 5
MAX_FAILED_SEQUENCES = 3
# Recovery deficit, as a share of loss_threshold, that counts as deep
DEEP_RECOVERY_FRACTION = 0.5
# Consecutive wins required before a stake increase is considered safe
SAFE_INCREASE_WINS = 2


class TradeExecutor(Protocol):
    """Trade execution collaborator.

    Places the contract described by a decision and reports a definitive
    result. Expired or unresolved contracts must come back as a loss of
    the staked amount.
    """

    def execute(self, decision: TradeDecision) -> TradeResult:
        ...


class StakingStrategy:
    """Staking and risk-management decision engine for one session.

    Per cycle:
    1. prepare_for_next_trade() runs the gates, then sizes the stake
    2. the caller executes the trade
    3. update_state() records the outcome

    Not safe for concurrent use; callers serialize prepare -> execute ->
    update per session.
    """

    def __init__(
        self,
        config: Optional[StakingConfig] = None,
        policy: Optional[StakePolicy] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize strategy.

        Args:
            config: Staking configuration (uses defaults if None)
            policy: Stake policy override (built from config if None)
            rng: Random source for digit predictions

        Raises:
            ConfigValidationError: If the configuration is invalid
        """
        self.config = config or StakingConfig()
        self.config.validate()

        self._custom_policy = policy is not None
        self.policy = policy or create_policy(self.config)
        self.ledger = StrategyLedger(self.config)
        self.gates = RiskGatePipeline()
        self.adjuster = VolatilityAdjuster(self.config)
        self._rng = rng or random.Random()
        self._pending_stake: Optional[float] = None

        self.ledger.state.current_stake = self._policy_stake()
        logger.info(
            f"Staking strategy ready: policy={self.policy.name}, "
            f"stake={self.config.initial_stake}, market={self.config.market}"
        )

    def _policy_stake(self) -> float:
        return self.policy.compute_next_stake(self.ledger.state, self.ledger.history_profits())

    # ==================== Core cycle ====================

    def prepare_for_next_trade(self) -> TradeDecision:
        """Decide whether to trade next and with what stake.

        Returns:
            TradeDecision; check should_trade before using amount
        """
        state = self.ledger.state
        profits = self.ledger.history_profits()

        self._pending_stake = None
        result = self.gates.evaluate(GateContext(config=self.config, state=state, profits=profits))
        if not result.allowed:
            if result.gate == "loss_limit":
                state.is_active = False
                logger.warning(f"🛑 {result.reason}; strategy deactivated")
            elif result.gate != "inactivity":
                logger.info(f"Trading paused by {result.gate} gate: {result.reason}")
            return TradeDecision.reject(result.reason)

        candidate = self.policy.compute_next_stake(state, profits)
        adjusted = self.adjuster.adjust(candidate, profits)
        amount = self.policy.clamp(round(adjusted, 2))

        decision = TradeDecision(
            should_trade=True,
            amount=amount,
            contract_type=self.policy.contract_type.value,
            prediction=self.policy.prediction(self._rng),
            market=self.config.market,
            duration=1,
            duration_unit=DurationUnit.TICKS.value,
            metadata={
                "sequence_position": state.sequence_position,
                "in_recovery": state.in_recovery,
                "sequence": self.policy.describe(state),
                "candidate_stake": candidate,
            },
        )
        logger.debug(f"Decision: stake {amount} ({decision.contract_type}) candidate {candidate:.2f}")
        self._pending_stake = amount
        return decision

    def update_state(self, is_win: bool, realized_profit: float, stake: Optional[float] = None) -> None:
        """Record the outcome of the last trade.

        Args:
            is_win: True if the trade won
            realized_profit: Signed realized profit
            stake: Amount actually traded. Defaults to the amount of the
                last approved decision, then to the current policy stake.

        Raises:
            InvalidOutcomeError: For non-finite profit or a bad stake; state
                is untouched
        """
        if stake is None:
            stake = self._pending_stake
        self.ledger.validate_outcome(is_win, realized_profit, stake)
        self.policy.advance(self.ledger, is_win, realized_profit, stake)
        self._pending_stake = None

        state = self.ledger.state
        logger.debug(
            f"{'WIN' if is_win else 'LOSS'} {realized_profit:+.2f} | total {state.total_profit:.2f} "
            f"| next stake {state.current_stake:.2f} | recovery={state.in_recovery}"
        )
        if state.recovery_attempts and state.recovery_attempts >= self.config.max_recovery_attempts:
            logger.warning(f"Recovery attempts exhausted ({state.recovery_attempts})")
        self.monitor_session()

    def record_result(self, result: TradeResult) -> None:
        """Record a result reported by a TradeExecutor."""
        self.update_state(result.is_win, result.profit, result.stake)

    # ==================== Session guidance ====================

    def monitor_session(self) -> bool:
        """Pause a long session that is losing on the day.

        Returns:
            True if the strategy was paused
        """
        state = self.ledger.state
        if state.trades_today >= SESSION_REVIEW_TRADES and state.daily_profit_loss < 0:
            if state.is_active:
                logger.warning(
                    f"⚠️ Session review: {state.trades_today} trades today, "
                    f"daily P&L {state.daily_profit_loss:.2f}; pausing"
                )
                self.pause_strategy()
            return True
        return False

    def is_safe_to_increase_stake(self) -> bool:
        """Advisory: a winning streak in a profitable session."""
        state = self.ledger.state
        return state.consecutive_wins >= SAFE_INCREASE_WINS and state.total_profit > 0

    def should_continue_sequence(self) -> bool:
        """Advisory check on whether starting or continuing a sequence is sensible.

        False at the daily trade limit or in a recovery deeper than half the
        loss threshold. Repeated failed sequences also end it.
        """
        state = self.ledger.state

        if state.trades_today >= self.config.max_daily_trades:
            return False
        if state.in_recovery and state.total_profit < -self.config.loss_threshold * DEEP_RECOVERY_FRACTION:
            return False

        recent = list(self.ledger.sequences)[-FAILED_SEQUENCE_WINDOW:]
        if sum(1 for s in recent if s.failed) >= MAX_FAILED_SEQUENCES:
            return False
        return True

    def update_config(self, updates: dict) -> None:
        """Apply configuration changes mid-session.

        The merged configuration is validated before anything changes. The
        policy (unless one was supplied at construction) and the volatility
        adjuster are rebuilt; state and statistics are kept.

        Args:
            updates: Field name to new value

        Raises:
            ConfigValidationError: For unknown fields or invalid values
        """
        unknown = sorted(set(updates) - set(self.config.to_dict()))
        if unknown:
            raise ConfigValidationError(f"Unknown config fields: {unknown}")

        config = StakingConfig.from_dict({**self.config.to_dict(), **updates})
        config.validate()

        if self._custom_policy:
            self.policy.config = config
        else:
            self.policy = create_policy(config)
        self.config = config
        self.ledger.update_config(config)
        self.adjuster = VolatilityAdjuster(config)
        self._pending_stake = None
        self.ledger.state.current_stake = self._policy_stake()
        logger.info(f"Configuration updated: {sorted(updates)}")

    # ==================== Snapshots and analysis ====================

    def get_current_state(self) -> StrategyState:
        """Detached copy of the current state."""
        return self.ledger.snapshot_state()

    def get_statistics(self) -> StrategyStatistics:
        """Detached copy of the statistics."""
        return self.ledger.snapshot_statistics()

    def analyze_performance(self) -> PerformanceAnalysis:
        """Derive win rate and average profit since the last reset.

        Returns:
            PerformanceAnalysis; win_rate is 0.0 and avg_profit None with no trades
        """
        stats = self.ledger.stats
        total = stats.total_trades

        if total == 0:
            return PerformanceAnalysis(
                total_trades=0,
                win_rate=0.0,
                avg_profit=None,
                recovery_success_rate=0.0,
                meets_min_win_rate=None,
            )

        win_rate = stats.total_wins / total
        recovery_rate = (
            stats.successful_recoveries / stats.total_recovery_attempts
            if stats.total_recovery_attempts else 0.0
        )
        return PerformanceAnalysis(
            total_trades=total,
            win_rate=win_rate,
            avg_profit=stats.realized_profit_sum / total,
            recovery_success_rate=recovery_rate,
            meets_min_win_rate=win_rate >= self.config.min_win_rate,
        )

    def analyze_sequence_performance(self) -> SequencePerformance:
        """Summarize the recorded progression sequences.

        A sequence counts as completed when all steps were won and as
        failed when it closed with a loss overall.
        """
        sequences = list(self.ledger.sequences)
        if not sequences:
            return SequencePerformance(
                total_sequences=0,
                completed=0,
                failed=0,
                win_rate=0.0,
                avg_profit=None,
                best_profit=0.0,
                worst_profit=0.0,
            )

        profits = [s.profit for s in sequences]
        completed = sum(1 for s in sequences if s.completed)
        return SequencePerformance(
            total_sequences=len(sequences),
            completed=completed,
            failed=sum(1 for s in sequences if s.failed),
            win_rate=completed / len(sequences),
            avg_profit=sum(profits) / len(profits),
            best_profit=max(profits),
            worst_profit=min(profits),
        )

    def analyze_market_conditions(self) -> MarketConditions:
        """Advisory read of trend and volatility over the outcome window."""
        records = list(self.ledger.history)
        profits = [r.profit for r in records]

        if records:
            wins = sum(1 for r in records if r.is_win)
            strength = abs(2 * wins - len(records)) / len(records)
            mean = sum(profits) / len(profits)
        else:
            strength = 0.0
            mean = 0.0

        if strength == 0.0 or mean == 0.0:
            trend = "flat"
        else:
            trend = "up" if mean > 0 else "down"

        return MarketConditions(
            trend=trend,
            trend_strength=strength,
            volatility=outcome_volatility(profits),
            profit_variance=profit_variance(profits),
            is_trending=trend != "flat" and strength >= self.config.min_trend_strength,
        )

    def get_volatility_adjusted_stake(self, stake: float) -> float:
        """Apply the volatility adjuster to an arbitrary stake."""
        return self.adjuster.adjust(stake, self.ledger.history_profits())

    def get_status(self) -> dict:
        """Get current strategy status.

        Returns:
            Dictionary with state, statistics and gate outcome
        """
        state = self.ledger.state
        gate = self.gates.evaluate(
            GateContext(config=self.config, state=state, profits=self.ledger.history_profits())
        )
        return {
            "policy": self.policy.name,
            "is_active": state.is_active,
            "can_trade": gate.allowed,
            "blocked_by": gate.gate,
            "reason": gate.reason,
            "current_stake": state.current_stake,
            "total_profit": state.total_profit,
            "in_recovery": state.in_recovery,
            "recovery_attempts": state.recovery_attempts,
            "trades_today": state.trades_today,
            "daily_profit_loss": state.daily_profit_loss,
            "continue_sequence": self.should_continue_sequence(),
            "statistics": self.ledger.stats.to_dict(),
        }

    # ==================== Lifecycle ====================

    @property
    def is_active(self) -> bool:
        return self.ledger.state.is_active

    def pause_strategy(self) -> None:
        self.ledger.state.is_active = False
        logger.info("Strategy paused")

    def resume_strategy(self) -> None:
        self.ledger.state.is_active = True
        logger.info("Strategy resumed")

    def reset_daily_counters(self) -> None:
        """Start a new trading day."""
        self.ledger.reset_daily_counters()
        logger.info("New trading day started")

    def reset_strategy(self) -> None:
        """Restore construction-time state and statistics."""
        self.ledger.reset()
        self._pending_stake = None
        self.ledger.state.current_stake = self._policy_stake()
        logger.info("Strategy fully reset")

    # ==================== Persistence hand-off ====================

    def snapshot(self) -> dict:
        """Serializable snapshot for the session persistence collaborator."""
        return {
            "config": self.config.to_dict(),
            "state": self.get_current_state().to_dict(),
            "statistics": self.get_statistics().to_dict(),
        }

    @classmethod
    def from_snapshot(
        cls,
        snapshot: dict,
        config: Optional[StakingConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> "StakingStrategy":
        """Rebuild a strategy from :meth:`snapshot` output.

        Args:
            snapshot: Persisted snapshot
            config: Configuration override (snapshot's config if None)
            rng: Random source for digit predictions
        """
        if config is None:
            config = StakingConfig.from_dict(snapshot["config"])
        strategy = cls(config, rng=rng)
        strategy.ledger.restore(
            StrategyState.from_dict(snapshot["state"]),
            StrategyStatistics.from_dict(snapshot["statistics"]),
        )
        strategy.ledger.state.current_stake = strategy._policy_stake()
        return strategy

    # ==================== Operational setters ====================

    def set_trades_today(self, count: int) -> None:
        self.ledger.set_trades_today(count)

    def set_recovery_attempts(self, count: int) -> None:
        self.ledger.set_recovery_attempts(count)

    def set_consecutive_losses(self, count: int) -> None:
        self.ledger.set_consecutive_losses(count)

    def set_consecutive_wins(self, count: int) -> None:
        self.ledger.set_consecutive_wins(count)

    def set_in_recovery(self, in_recovery: bool) -> None:
        self.ledger.set_in_recovery(in_recovery)
        self.ledger.state.current_stake = self._policy_stake()

    def set_sequence_position(self, position: int) -> None:
        self.ledger.set_sequence_position(position)
        self.ledger.state.current_stake = self._policy_stake()

    def set_total_profit(self, profit: float) -> None:
        self.ledger.set_total_profit(profit)

    def set_sequence_profit(self, profit: float) -> None:
        self.ledger.set_sequence_profit(profit)

    def set_daily_profit_loss(self, profit: float) -> None:
        self.ledger.set_daily_profit_loss(profit)

    def set_recovery_history(self, entries: Iterable[Union[TradeRecord, dict, float]]) -> None:
        self.ledger.set_recovery_history(entries)

    def set_sequence_history(self, entries: Iterable[Union[SequenceRecord, dict, float]]) -> None:
        self.ledger.set_sequence_history(entries)
