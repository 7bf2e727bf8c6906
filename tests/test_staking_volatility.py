"""Tests for the volatility adjuster."""

import pytest
from hypothesis import given, strategies as st, settings

from hummingbird.staking import StakingConfig
from hummingbird.staking.volatility import VolatilityAdjuster, outcome_volatility, profit_variance


profit_windows = st.lists(
    st.floats(min_value=-1000, max_value=1000, allow_nan=False),
    max_size=20,
)


class TestOutcomeVolatility:
    """Tests for the volatility measure."""

    @pytest.mark.parametrize("profits", [[], [-10.0], [0.0, 0.0]])
    def test_degenerate_windows_score_zero(self, profits):
        assert outcome_volatility(profits) == 0.0

    def test_all_losses_score_one(self):
        assert outcome_volatility([-10, -5, -8]) == 1.0

    def test_all_wins_score_zero(self):
        assert outcome_volatility([10, 5, 8]) == 0.0

    def test_mostly_wins_below_default_ceiling(self):
        profits = [10, -5, 8, -3, 12, -7, 9, -4, 11, -6]
        assert outcome_volatility(profits) < 0.6

    def test_mostly_losses_above_default_ceiling(self):
        profits = [-10, -5, -8, -3, 12, -7, -9, -4, -11, -6]
        assert outcome_volatility(profits) > 0.6

    @given(profit_windows)
    @settings(max_examples=100)
    def test_bounded(self, profits):
        assert 0.0 <= outcome_volatility(profits) <= 1.0

    def test_variance(self):
        assert profit_variance([1.0]) == 0.0
        assert profit_variance([2.0, 4.0, 6.0]) == pytest.approx(4.0)


class TestVolatilityAdjuster:
    """Tests for stake shrinking."""

    @pytest.fixture
    def adjuster(self):
        return VolatilityAdjuster(StakingConfig(enable_auto_adjust=True))

    def test_disabled_returns_stake(self):
        adjuster = VolatilityAdjuster(StakingConfig())
        assert adjuster.adjust(50, [-10, -10, -10]) == 50

    def test_empty_history_returns_stake(self, adjuster):
        assert adjuster.adjust(50, []) == 50

    def test_calm_window_returns_stake(self, adjuster):
        assert adjuster.adjust(50, [10, 12, -1, 9]) == 50

    def test_turbulent_window_shrinks(self, adjuster):
        assert adjuster.adjust(50, [20, -15, 10, -8]) < 50

    def test_reduction_capped_at_half(self, adjuster):
        assert adjuster.adjust(50, [-10, -5, -8, -3, 12]) == 25

    def test_never_below_initial_stake(self, adjuster):
        assert adjuster.adjust(6, [-10, -10, -10]) == 5.0

    @given(
        stake=st.floats(min_value=5, max_value=50, allow_nan=False),
        profits=profit_windows,
    )
    @settings(max_examples=100)
    def test_adjusted_stake_bounds(self, stake, profits):
        """Adjusted stake stays within [max(initial, stake / 2), stake]."""
        adjuster = VolatilityAdjuster(StakingConfig(enable_auto_adjust=True))
        adjusted = adjuster.adjust(stake, profits)

        assert adjusted <= stake
        assert adjusted >= max(5.0, stake * 0.5) - 1e-9

    def test_is_too_volatile(self, adjuster):
        assert adjuster.is_too_volatile([-20.0] * 10)
        assert not adjuster.is_too_volatile([20.0] * 10)
