"""Tests for the session simulation engine."""

import pytest
from hypothesis import given, strategies as st, settings

from hummingbird.backtest import (
    SimulationConfig,
    SimulatedExecutor,
    SimulationEngine,
    SimulationResult,
)
from hummingbird.backtest.engine import SimulatedTrade
from hummingbird.staking import StakePolicyType, StakingConfig, StakingStrategy, TradeDecision


def run_session(config=None, **sim_kwargs) -> SimulationResult:
    strategy = StakingStrategy(config or StakingConfig())
    return SimulationEngine(strategy, SimulationConfig(**sim_kwargs)).run()


class TestSimulatedExecutor:

    def test_win_pays_payout(self):
        executor = SimulatedExecutor(win_rate=1.0, payout_rate=0.95, seed=1)
        result = executor.execute(TradeDecision(should_trade=True, amount=10.0))

        assert result.is_win
        assert result.profit == 9.5
        assert result.contract_id == "SIM-1"
        assert result.stake == 10.0

    def test_loss_costs_stake(self):
        executor = SimulatedExecutor(win_rate=0.0, seed=1)
        result = executor.execute(TradeDecision(should_trade=True, amount=10.0))

        assert not result.is_win
        assert result.profit == -10.0

    def test_invalid_win_rate(self):
        with pytest.raises(ValueError):
            SimulatedExecutor(win_rate=1.5)


class TestSimulationEngine:
    """Tests for full simulated sessions."""

    def test_winning_session_stops_on_profit_lock(self):
        result = run_session(win_rate=1.0, seed=3, max_cycles=200)

        assert "Profit lock" in result.stop_reason
        assert result.win_rate == 1.0
        assert result.max_drawdown == 0.0
        assert result.final_profit >= 500.0

    def test_losing_session_stops_on_recovery_exhaustion(self):
        result = run_session(win_rate=0.0, seed=3)

        assert result.total_trades == 3
        assert "Max recovery attempts" in result.stop_reason
        assert result.max_drawdown == pytest.approx(-result.final_profit)

    def test_new_day_continues_past_daily_limit(self):
        config = StakingConfig(max_daily_trades=5)
        result = run_session(config, win_rate=1.0, seed=3, max_cycles=20, reset_on_stop=True)

        assert result.total_trades == 17
        assert result.stop_reason is None

    def test_daily_limit_stops_without_new_day(self):
        config = StakingConfig(max_daily_trades=5)
        result = run_session(config, win_rate=1.0, seed=3, max_cycles=20)

        assert result.total_trades == 5
        assert "Daily trade limit" in result.stop_reason

    def test_seed_is_reproducible(self):
        first = run_session(win_rate=0.55, seed=7, max_cycles=100)
        second = run_session(win_rate=0.55, seed=7, max_cycles=100)
        assert first.summary() == second.summary()

    def test_history_records_traded_stakes(self):
        strategy = StakingStrategy(StakingConfig())
        result = SimulationEngine(strategy, SimulationConfig(win_rate=0.5, seed=11, max_cycles=8)).run()

        history = strategy.get_current_state().recovery_history
        assert [r.stake for r in history] == [t.stake for t in result.trades]

    @given(
        seed=st.integers(min_value=0, max_value=10_000),
        win_rate=st.floats(min_value=0.0, max_value=1.0, allow_nan=False),
        policy=st.sampled_from(list(StakePolicyType)),
    )
    @settings(max_examples=30, deadline=None)
    def test_stakes_within_bounds(self, seed, win_rate, policy):
        config = StakingConfig(policy=policy)
        result = run_session(config, win_rate=win_rate, seed=seed, max_cycles=60)

        for trade in result.trades:
            assert config.initial_stake <= trade.stake <= config.max_stake
        assert result.max_drawdown >= 0.0


class TestSimulationResult:

    def test_empty_result(self):
        result = SimulationResult()

        assert result.win_rate == 0.0
        assert result.max_drawdown == 0.0
        assert result.to_dataframe().empty

    def test_dataframe_has_one_row_per_trade(self):
        result = run_session(win_rate=0.5, seed=11, max_cycles=25)
        frame = result.to_dataframe()

        assert len(frame) == result.total_trades
        assert list(frame.columns) == list(SimulatedTrade.__dataclass_fields__)
        assert frame["total_profit"].iloc[-1] == pytest.approx(result.final_profit)

    def test_summary_keys(self):
        summary = run_session(win_rate=0.5, seed=11, max_cycles=10).summary()
        assert set(summary) == {
            "trades", "cycles", "win_rate", "final_profit",
            "max_drawdown", "max_stake", "stop_reason",
        }
