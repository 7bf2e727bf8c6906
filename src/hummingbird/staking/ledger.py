"""State and statistics ledger.

Owns the mutable record of one staking session: the position (stake,
recovery depth, streaks, cumulative profit), the cumulative statistics,
the bounded window of recent outcomes and the finished progression
sequences.
"""

import copy
import logging
import math
from collections import deque
from typing import Iterable, Optional, Union

from .config import StakingConfig
from .models import SequenceRecord, StrategyState, StrategyStatistics, TradeRecord

logger = logging.getLogger(__name__)

# Finished sequences kept for sequence analysis
SEQUENCE_HISTORY_LIMIT = 50


class InvalidOutcomeError(ValueError):
    """Raised when a reported trade outcome cannot be recorded."""
    pass


def _check_finite(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidOutcomeError(f"Invalid {name} value: {value!r}")
    if not math.isfinite(value):
        raise InvalidOutcomeError(f"Invalid {name} value: {value}")


class StrategyLedger:
    """Bookkeeping for one staking session.

    Invariants kept by every mutator:
    - consecutive_wins > 0 implies consecutive_losses == 0 and vice versa
    - in_recovery implies recovery_attempts >= 1
    - total_wins + total_losses equals recorded outcomes since last reset
    - a rejected input leaves state, statistics and histories untouched
    """

    def __init__(self, config: StakingConfig):
        """Initialize ledger.

        Args:
            config: Validated staking configuration
        """
        self.config = config
        self.state = self._initial_state()
        self.stats = StrategyStatistics()
        self.history: deque[TradeRecord] = deque(maxlen=config.history_window)
        self.sequences: deque[SequenceRecord] = deque(maxlen=SEQUENCE_HISTORY_LIMIT)

    def _initial_state(self) -> StrategyState:
        return StrategyState(current_stake=self.config.initial_stake)

    def update_config(self, config: StakingConfig) -> None:
        """Switch to a new validated configuration, keeping the newest outcomes."""
        self.config = config
        self.history = deque(self.history, maxlen=config.history_window)

    # ==================== Outcome recording ====================

    @staticmethod
    def validate_outcome(is_win: bool, profit: float, stake: Optional[float] = None) -> None:
        """Reject outcomes that would corrupt the ledger.

        Raises:
            InvalidOutcomeError: For a non-bool result, non-finite profit or
                a traded stake that is not a positive finite number
        """
        if not isinstance(is_win, bool):
            raise InvalidOutcomeError(f"is_win must be a bool, got {is_win!r}")
        _check_finite("profit", profit)
        if stake is not None:
            _check_finite("stake", stake)
            if stake <= 0:
                raise InvalidOutcomeError(f"Invalid stake value: {stake}")

    def record_outcome(self, is_win: bool, profit: float, stake: Optional[float] = None) -> TradeRecord:
        """Apply one resolved trade to counters, streaks and history.

        Policy-specific bookkeeping (sequence pointer, recovery stake) is
        left to the stake policy.

        Args:
            is_win: True if the trade won
            profit: Signed realized profit
            stake: Amount actually traded (current stake if None)

        Returns:
            The history record that was appended
        """
        self.validate_outcome(is_win, profit, stake)
        state = self.state

        record = TradeRecord(
            profit=float(profit),
            is_win=is_win,
            stake=float(stake) if stake is not None else state.current_stake,
            in_recovery=state.in_recovery,
        )

        state.trades_today += 1
        state.total_profit += profit
        state.sequence_profit += profit
        state.daily_profit_loss += profit
        self.stats.realized_profit_sum += profit

        if is_win:
            state.consecutive_wins += 1
            state.consecutive_losses = 0
            self.stats.total_wins += 1
            self.stats.max_win_streak = max(self.stats.max_win_streak, state.consecutive_wins)
        else:
            state.consecutive_losses += 1
            state.consecutive_wins = 0
            self.stats.total_losses += 1
            self.stats.max_loss_streak = max(self.stats.max_loss_streak, state.consecutive_losses)

        self.history.append(record)
        return record

    # ==================== Recovery bookkeeping ====================

    def enter_recovery(self) -> None:
        """Start a recovery run, or escalate the one in progress."""
        state = self.state
        if not state.in_recovery:
            logger.info(f"Entering recovery (total profit {state.total_profit:.2f})")
        state.in_recovery = True
        state.recovery_attempts += 1
        self.stats.total_recovery_attempts += 1

    def resolve_recovery(self) -> None:
        """Close a recovery run; counts as successful when one was open."""
        state = self.state
        if state.in_recovery:
            self.stats.successful_recoveries += 1
            logger.info(f"Recovery complete after {state.recovery_attempts} attempt(s)")
        state.in_recovery = False
        state.recovery_attempts = 0
        state.recovery_loss = 0.0

    # ==================== Sequence bookkeeping ====================

    def close_sequence(self, completed: bool) -> SequenceRecord:
        """Record the running sequence as finished and start a new one.

        Args:
            completed: True when every step was won

        Returns:
            The sequence record that was appended
        """
        state = self.state
        record = SequenceRecord(
            profit=state.sequence_profit,
            completed=completed,
            in_recovery=state.in_recovery,
        )

        if completed:
            self.stats.sequences_completed += 1
            self.stats.best_sequence_profit = max(self.stats.best_sequence_profit, record.profit)
        else:
            self.stats.worst_sequence_loss = min(self.stats.worst_sequence_loss, record.profit)

        self.sequences.append(record)
        self.reset_sequence()
        return record

    def reset_sequence(self) -> None:
        """Back to step 1 without recording a sequence."""
        self.state.sequence_position = 0
        self.state.sequence_profit = 0.0

    # ==================== Snapshots ====================

    def history_profits(self) -> list[float]:
        """Realized profits of the outcome window, oldest first."""
        return [r.profit for r in self.history]

    def snapshot_state(self) -> StrategyState:
        """Detached copy of the current state."""
        snapshot = copy.deepcopy(self.state)
        snapshot.recovery_history = [copy.copy(r) for r in self.history]
        snapshot.sequence_history = [copy.copy(s) for s in self.sequences]
        return snapshot

    def snapshot_statistics(self) -> StrategyStatistics:
        """Detached copy of the statistics."""
        return copy.deepcopy(self.stats)

    # ==================== Operational setters ====================

    @staticmethod
    def _check_count(name: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

    def set_trades_today(self, count: int) -> None:
        self._check_count("trades_today", count)
        self.state.trades_today = count

    def set_recovery_attempts(self, count: int) -> None:
        self._check_count("recovery_attempts", count)
        self.state.recovery_attempts = count
        if count == 0:
            self.state.in_recovery = False

    def set_consecutive_losses(self, count: int) -> None:
        self._check_count("consecutive_losses", count)
        self.state.consecutive_losses = count
        if count > 0:
            self.state.consecutive_wins = 0

    def set_consecutive_wins(self, count: int) -> None:
        self._check_count("consecutive_wins", count)
        self.state.consecutive_wins = count
        if count > 0:
            self.state.consecutive_losses = 0

    def set_in_recovery(self, in_recovery: bool) -> None:
        self.state.in_recovery = in_recovery
        if in_recovery:
            self.state.recovery_attempts = max(1, self.state.recovery_attempts)
        else:
            self.state.recovery_attempts = 0
            self.state.recovery_loss = 0.0

    def set_sequence_position(self, position: int) -> None:
        """Move the progression pointer; out-of-range values are tolerated
        and normalised by the policy on the next stake computation."""
        self._check_count("sequence_position", position)
        self.state.sequence_position = position

    def set_total_profit(self, profit: float) -> None:
        _check_finite("profit", profit)
        self.state.total_profit = float(profit)

    def set_sequence_profit(self, profit: float) -> None:
        _check_finite("profit", profit)
        self.state.sequence_profit = float(profit)

    def set_daily_profit_loss(self, profit: float) -> None:
        _check_finite("profit", profit)
        self.state.daily_profit_loss = float(profit)

    def _build_history(self, entries: Iterable[Union[TradeRecord, dict, float]]) -> deque:
        records = []
        for entry in entries:
            if isinstance(entry, TradeRecord):
                _check_finite("profit", entry.profit)
                record = copy.copy(entry)
            elif isinstance(entry, dict):
                profit = entry["profit"]
                _check_finite("profit", profit)
                record = TradeRecord(
                    profit=float(profit),
                    is_win=entry.get("is_win", profit > 0),
                    stake=entry.get("stake", 0.0),
                    in_recovery=entry.get("in_recovery", False),
                )
            else:
                _check_finite("profit", entry)
                record = TradeRecord(profit=float(entry), is_win=entry > 0)
            records.append(record)
        return deque(records, maxlen=self.config.history_window)

    def _build_sequences(self, entries: Iterable[Union[SequenceRecord, dict, float]]) -> deque:
        records = []
        for entry in entries:
            if isinstance(entry, SequenceRecord):
                _check_finite("profit", entry.profit)
                record = copy.copy(entry)
            elif isinstance(entry, dict):
                profit = entry["profit"]
                _check_finite("profit", profit)
                completed = entry.get("completed", entry.get("outcome") == "win")
                record = SequenceRecord(
                    profit=float(profit),
                    completed=completed,
                    in_recovery=entry.get("in_recovery", False),
                )
            else:
                _check_finite("profit", entry)
                record = SequenceRecord(profit=float(entry), completed=False)
            records.append(record)
        return deque(records, maxlen=SEQUENCE_HISTORY_LIMIT)

    def set_recovery_history(self, entries: Iterable[Union[TradeRecord, dict, float]]) -> None:
        """Replace the outcome window.

        Entries may be records, ``{"profit": x}`` mappings or bare numbers;
        only the newest ``history_window`` entries are kept.
        """
        self.history = self._build_history(entries)

    def set_sequence_history(self, entries: Iterable[Union[SequenceRecord, dict, float]]) -> None:
        """Replace the finished-sequence history.

        Mappings may carry ``completed`` or ``outcome == "win"``; bare
        numbers count as broken sequences.
        """
        self.sequences = self._build_sequences(entries)

    def restore(self, state: StrategyState, stats: Optional[StrategyStatistics] = None) -> None:
        """Load a persisted snapshot back into the ledger.

        Raises:
            InvalidOutcomeError: For a non-finite profit anywhere in the
                snapshot; the ledger is left as it was
        """
        restored = copy.deepcopy(state)
        for name in ("current_stake", "total_profit", "recovery_loss",
                     "sequence_profit", "daily_profit_loss"):
            _check_finite(name, getattr(restored, name))
        history = self._build_history(restored.recovery_history)
        sequences = self._build_sequences(restored.sequence_history)

        restored.recovery_history = []
        restored.sequence_history = []
        if restored.in_recovery:
            restored.recovery_attempts = max(1, restored.recovery_attempts)
        if restored.consecutive_wins > 0:
            restored.consecutive_losses = 0

        self.state = restored
        self.stats = copy.deepcopy(stats) if stats is not None else StrategyStatistics()
        self.history = history
        self.sequences = sequences

    # ==================== Resets ====================

    def reset_daily_counters(self) -> None:
        """Zero the per-day trade counter and P&L."""
        self.state.trades_today = 0
        self.state.daily_profit_loss = 0.0

    def reset(self) -> None:
        """Restore construction-time state and statistics."""
        self.state = self._initial_state()
        self.stats = StrategyStatistics()
        self.history.clear()
        self.sequences.clear()
