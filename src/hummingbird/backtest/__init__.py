"""Session simulation for staking strategies."""

from .engine import (
    SimulationConfig,
    SimulatedExecutor,
    SimulatedTrade,
    SimulationEngine,
    SimulationResult,
)

__all__ = [
    "SimulationConfig",
    "SimulatedExecutor",
    "SimulatedTrade",
    "SimulationEngine",
    "SimulationResult",
]
