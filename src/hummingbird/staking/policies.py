"""Stake policies.

Two interchangeable rules for the next stake, both behind the
:class:`StakePolicy` contract:

- FixedProgressionPolicy: 1-3-2-6 style multiplier sequence advanced by wins
- MultiplicativeRecoveryPolicy: flat base stake, escalated after losses to
  win back the recovery run plus one base unit
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .config import StakingConfig
from .ledger import StrategyLedger
from .models import ContractType, RecoveryMode, StakePolicyType, StrategyState

logger = logging.getLogger(__name__)


SEQUENCE_VARIANTS: dict[RecoveryMode, tuple[int, ...]] = {
    RecoveryMode.CONSERVATIVE: (1, 2, 3, 4),
    RecoveryMode.NEUTRAL: (1, 3, 2, 6),
    RecoveryMode.AGGRESSIVE: (1, 3, 5, 7),
}

# Share of the deficit a progression recovery stake aims to win back
RECOVERY_SCALE: dict[RecoveryMode, float] = {
    RecoveryMode.CONSERVATIVE: 0.5,
    RecoveryMode.NEUTRAL: 1.0,
    RecoveryMode.AGGRESSIVE: 1.5,
}


# ==================== Pure helpers ====================

def clamp_stake(stake: float, initial_stake: float, max_multiplier: float) -> float:
    """Clamp a stake into [initial_stake, initial_stake * max_multiplier]."""
    return min(max(stake, initial_stake), initial_stake * max_multiplier)


def calculate_recovery_stake(
    loss_accumulated: float,
    initial_stake: float,
    payout_rate: float,
    max_multiplier: float,
) -> float:
    """Stake that wins back a recovery run plus one base unit.

    next = loss * (1 + payout) / payout + initial, clamped to the
    multiplier ceiling. Losses beyond the ceiling are absorbed.

    Args:
        loss_accumulated: Positive magnitude lost during the recovery run
        initial_stake: Base stake
        payout_rate: Net payout per unit staked on a win
        max_multiplier: Ceiling relative to the base stake

    Returns:
        Clamped recovery stake
    """
    if loss_accumulated <= 0:
        return initial_stake
    raw = loss_accumulated * (1 + payout_rate) / payout_rate + initial_stake
    return clamp_stake(raw, initial_stake, max_multiplier)


def validate_sequence(sequence: Sequence) -> bool:
    """Check a progression sequence: four positive integers starting at 1."""
    if len(sequence) != 4:
        return False
    for step in sequence:
        if isinstance(step, bool) or not isinstance(step, int) or step <= 0:
            return False
    return sequence[0] == 1


# ==================== Contract ====================

class StakePolicy(ABC):
    """Contract shared by all stake policies.

    ``advance`` is the only mutator; ``compute_next_stake`` is pure.
    """

    name: str = "base"
    contract_type: ContractType = ContractType.DIGIT_DIFF

    def __init__(self, config: StakingConfig):
        self.config = config

    def clamp(self, stake: float) -> float:
        return clamp_stake(stake, self.config.initial_stake, self.config.max_stake_multiplier)

    @abstractmethod
    def compute_next_stake(self, state: StrategyState, history: Sequence[float]) -> float:
        """Stake for the next trade, given current state and outcome window."""

    def advance(
        self,
        ledger: StrategyLedger,
        is_win: bool,
        profit: float,
        stake: Optional[float] = None,
    ) -> None:
        """Apply one resolved trade.

        Args:
            ledger: Session ledger to update
            is_win: True if the trade won
            profit: Signed realized profit
            stake: Amount actually traded, if known

        Raises:
            InvalidOutcomeError: From the ledger, before anything is mutated
        """
        ledger.record_outcome(is_win, profit, stake)

        if is_win:
            self._on_win(ledger, profit)
        else:
            self._on_loss(ledger, profit)

        ledger.state.current_stake = self.compute_next_stake(ledger.state, ledger.history_profits())

    @abstractmethod
    def _on_win(self, ledger: StrategyLedger, profit: float) -> None:
        ...

    @abstractmethod
    def _on_loss(self, ledger: StrategyLedger, profit: float) -> None:
        ...

    def prediction(self, rng: random.Random) -> str:
        """Prediction handed to the execution collaborator."""
        return self.contract_type.value

    def describe(self, state: StrategyState) -> str:
        """Short label for decision metadata."""
        return self.name


class FixedProgressionPolicy(StakePolicy):
    """1-3-2-6 progression.

    - Each win moves one step along the sequence
    - The 4th win completes the sequence and returns to step 1
    - A loss returns to step 1; if cumulative profit is negative the
      session enters (or escalates) recovery
    - In recovery the stake targets the deficit, scaled by recovery mode,
      until cumulative profit is back to zero
    """

    name = "1-3-2-6"
    contract_type = ContractType.DIGIT_DIFF

    def __init__(self, config: StakingConfig, sequence: Optional[Sequence[int]] = None):
        """Initialize progression policy.

        Args:
            config: Staking configuration
            sequence: Custom multiplier sequence. Defaults to the recovery
                mode's variant.

        Raises:
            ValueError: If a custom sequence is malformed
        """
        super().__init__(config)
        if sequence is None:
            sequence = SEQUENCE_VARIANTS[config.recovery_mode]
        if not validate_sequence(sequence):
            raise ValueError(f"Invalid progression sequence: {list(sequence)}")
        self.sequence: tuple[int, ...] = tuple(sequence)

    def _position(self, state: StrategyState) -> int:
        position = state.sequence_position
        if not 0 <= position < len(self.sequence):
            return 0
        return position

    def sequence_stake(self, position: int) -> float:
        return self.config.initial_stake * self.sequence[position]

    def recovery_stake(self, state: StrategyState) -> float:
        scale = RECOVERY_SCALE[self.config.recovery_mode]
        return calculate_recovery_stake(
            state.recovery_loss * scale,
            self.config.initial_stake,
            self.config.payout_rate,
            self.config.max_stake_multiplier,
        )

    def compute_next_stake(self, state: StrategyState, history: Sequence[float]) -> float:
        if state.in_recovery and self.config.enable_recovery:
            return self.recovery_stake(state)
        return self.clamp(self.sequence_stake(self._position(state)))

    def _on_win(self, ledger: StrategyLedger, profit: float) -> None:
        state = ledger.state

        if state.in_recovery:
            state.recovery_loss = max(0.0, -state.total_profit)
            if state.total_profit >= 0:
                ledger.resolve_recovery()
                ledger.reset_sequence()
            return

        position = self._position(state) + 1
        if position >= len(self.sequence):
            record = ledger.close_sequence(completed=True)
            logger.info(
                f"Sequence {self.describe(state)} completed "
                f"(profit {record.profit:.2f}, total {ledger.stats.sequences_completed})"
            )
        else:
            state.sequence_position = position

    def _on_loss(self, ledger: StrategyLedger, profit: float) -> None:
        state = ledger.state

        ledger.close_sequence(completed=False)

        if self.config.enable_recovery and (state.in_recovery or state.total_profit < 0):
            ledger.enter_recovery()
            state.recovery_loss = max(0.0, -state.total_profit)

    def prediction(self, rng: random.Random) -> str:
        return str(rng.randint(0, 9))

    def describe(self, state: StrategyState) -> str:
        return "-".join(str(step) for step in self.sequence)


class MultiplicativeRecoveryPolicy(StakePolicy):
    """Flat stake with multiplicative loss recovery.

    - Win: stake back to base, any open recovery run is resolved
    - Loss: recovery escalates, the run's losses accumulate and the next
      stake is sized to win them back plus one base unit
    """

    name = "multiplicative-recovery"
    contract_type = ContractType.CALL

    def compute_next_stake(self, state: StrategyState, history: Sequence[float]) -> float:
        if state.in_recovery and self.config.enable_recovery:
            return calculate_recovery_stake(
                state.recovery_loss,
                self.config.initial_stake,
                self.config.payout_rate,
                self.config.max_stake_multiplier,
            )
        return self.config.initial_stake

    def _on_win(self, ledger: StrategyLedger, profit: float) -> None:
        ledger.resolve_recovery()

    def _on_loss(self, ledger: StrategyLedger, profit: float) -> None:
        if not self.config.enable_recovery:
            return
        ledger.enter_recovery()
        ledger.state.recovery_loss += max(0.0, -profit)


def create_policy(config: StakingConfig) -> StakePolicy:
    """Build the policy named by the configuration."""
    if config.policy is StakePolicyType.MULTIPLICATIVE:
        return MultiplicativeRecoveryPolicy(config)
    return FixedProgressionPolicy(config)
