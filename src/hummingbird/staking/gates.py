"""Risk gate pipeline.

An ordered set of stateless veto predicates evaluated before every trade.
The first gate to fail is terminal and supplies the decision's reason.

Order:
1. Inactivity
2. Loss limit
3. Profit lock
4. Sequence lock (progression only, outside recovery)
5. Daily trade limit
6. Recovery exhaustion
7. Volatility (only with auto adjust enabled)
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .config import StakingConfig
from .models import StakePolicyType, StrategyState
from .volatility import VolatilityAdjuster

# Effective loss threshold shrinks by this share per consecutive loss
LOSS_THRESHOLD_STEP = 0.1
# ...but never below this share of the configured threshold
LOSS_THRESHOLD_FLOOR = 0.5


@dataclass
class GateContext:
    """Everything a gate may look at. Gates never mutate it."""
    config: StakingConfig
    state: StrategyState
    profits: Sequence[float] = field(default_factory=list)


@dataclass
class GateResult:
    """Result of running the pipeline."""
    allowed: bool
    reason: Optional[str] = None
    gate: Optional[str] = None


Gate = Callable[[GateContext], Optional[str]]


def effective_loss_threshold(config: StakingConfig, consecutive_losses: int) -> float:
    """Loss threshold tightened by the current losing streak.

    10% tighter per consecutive loss, floored at 50% of the configured
    threshold. Returns the configured threshold when the dynamic mode is off.
    """
    if not config.enable_dynamic_loss_threshold:
        return config.loss_threshold

    factor = max(LOSS_THRESHOLD_FLOOR, 1.0 - LOSS_THRESHOLD_STEP * consecutive_losses)
    return config.loss_threshold * factor


def inactivity_gate(ctx: GateContext) -> Optional[str]:
    if not ctx.state.is_active:
        return "Strategy is inactive"
    return None


def loss_limit_gate(ctx: GateContext) -> Optional[str]:
    threshold = effective_loss_threshold(ctx.config, ctx.state.consecutive_losses)
    if ctx.state.total_profit <= -threshold:
        return f"Loss limit reached ({abs(ctx.state.total_profit):.2f} of {threshold:.2f})"
    return None


def profit_lock_gate(ctx: GateContext) -> Optional[str]:
    lock_level = ctx.config.profit_lock_level
    if ctx.state.total_profit >= lock_level:
        return (
            f"Profit lock engaged ({ctx.state.total_profit:.2f} banked, "
            f"lock at {lock_level:.2f} of {ctx.config.profit_threshold:.2f} target)"
        )
    return None


def sequence_lock_gate(ctx: GateContext) -> Optional[str]:
    config = ctx.config
    if not config.enable_sequence_protection or config.policy is not StakePolicyType.PROGRESSION:
        return None
    if ctx.state.in_recovery:
        return None
    if ctx.state.sequence_profit >= config.sequence_lock_level:
        return (
            f"Sequence profit lock engaged ({ctx.state.sequence_profit:.2f} banked, "
            f"lock at {config.sequence_lock_level:.2f})"
        )
    return None


def daily_limit_gate(ctx: GateContext) -> Optional[str]:
    if ctx.state.trades_today >= ctx.config.max_daily_trades:
        return f"Daily trade limit reached ({ctx.state.trades_today}/{ctx.config.max_daily_trades})"
    return None


def recovery_exhaustion_gate(ctx: GateContext) -> Optional[str]:
    attempts = ctx.state.recovery_attempts
    if attempts > 0 and attempts >= ctx.config.max_recovery_attempts:
        return f"Max recovery attempts reached ({attempts}/{ctx.config.max_recovery_attempts})"
    return None


def volatility_gate(ctx: GateContext) -> Optional[str]:
    if not ctx.config.enable_auto_adjust:
        return None
    adjuster = VolatilityAdjuster(ctx.config)
    volatility = adjuster.measure(ctx.profits)
    if volatility > ctx.config.max_volatility:
        return f"Volatility too high ({volatility:.2f} > {ctx.config.max_volatility:.2f})"
    return None


DEFAULT_GATES: tuple[tuple[str, Gate], ...] = (
    ("inactivity", inactivity_gate),
    ("loss_limit", loss_limit_gate),
    ("profit_lock", profit_lock_gate),
    ("sequence_lock", sequence_lock_gate),
    ("daily_limit", daily_limit_gate),
    ("recovery_exhaustion", recovery_exhaustion_gate),
    ("volatility", volatility_gate),
)


class RiskGatePipeline:
    """Runs the gates in order; first failure wins."""

    def __init__(self, gates: Optional[Sequence[tuple[str, Gate]]] = None):
        """Initialize pipeline.

        Args:
            gates: Ordered (name, gate) pairs. Uses DEFAULT_GATES if None.
        """
        self.gates = tuple(gates) if gates is not None else DEFAULT_GATES

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.gates]

    def evaluate(self, ctx: GateContext) -> GateResult:
        """Evaluate all gates against one context.

        Returns:
            GateResult naming the first failing gate, or allowed=True
        """
        for name, gate in self.gates:
            reason = gate(ctx)
            if reason is not None:
                return GateResult(allowed=False, reason=reason, gate=name)
        return GateResult(allowed=True)
