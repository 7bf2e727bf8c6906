"""Hummingbird Staking Engine - Root Configuration.

All staking and risk parameters are centralized here. Modify this file to
tune a session without changing any source code.

Per-deployment overrides (HB_* variables) belong in the .env file.
"""

# =============================================================================
# STAKING CONFIGURATION
# =============================================================================
# This dictionary is loaded by hummingbird.config.load_staking_config().
# All values here override the defaults in StakingConfig.

STAKING_CONFIG = {
    # =========================================================================
    # STAKE AND SESSION LIMITS
    # =========================================================================

    "initial_stake": 5.0,                    # Base stake, also the stake floor
    "profit_threshold": 1000.0,              # Session profit target
    "loss_threshold": 500.0,                 # Stop the session at this cumulative loss
    "max_recovery_attempts": 3,              # Recovery escalations before pausing
    "max_daily_trades": 50,                  # Trades per day
    "max_stake_multiplier": 10.0,            # Stake ceiling = initial_stake * this

    # =========================================================================
    # POLICY
    # =========================================================================
    # "progression"    - 1-3-2-6 sequence on digit-differs contracts
    # "multiplicative" - flat stake with loss recovery on rise contracts

    "policy": "progression",
    "recovery_mode": "neutral",              # conservative / neutral / aggressive
    "enable_recovery": True,

    # =========================================================================
    # RISK TUNING
    # =========================================================================

    "enable_auto_adjust": False,             # Shrink stakes and veto on volatility
    "max_volatility": 0.6,                   # Veto above this (0-1)
    "min_win_rate": 0.4,
    "min_trend_strength": 0.4,
    "profit_lock_fraction": 0.5,             # Stop once 50% of the target is banked
    "payout_rate": 0.95,                     # Net payout per unit staked on a win
    "history_window": 10,                    # Outcomes kept for volatility
    "enable_dynamic_loss_threshold": False,  # Tighten loss limit on losing streaks
    "enable_sequence_protection": True,      # Stop once one sequence banks enough
    "sequence_lock_multiple": 10.0,          # ...initial_stake * this

    "market": "R_100",
}
