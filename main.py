#!/usr/bin/env python3
"""Hummingbird Staking Engine - Main Entry Point.

Runs a simulated staking session with the configured strategy and prints
the session summary.

Usage:
    python main.py
    python main.py --trades 200 --win-rate 0.55 --seed 7 --policy multiplicative
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv(override=True)

from hummingbird.backtest import SimulationConfig, SimulationEngine
from hummingbird.config import load_staking_config
from hummingbird.staking import ConfigValidationError, StakingConfig, StakingStrategy

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hummingbird - simulated staking session")
    parser.add_argument("--trades", type=int, default=200, help="Maximum decision cycles")
    parser.add_argument("--win-rate", type=float, default=0.5, help="Simulated win probability")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--policy", choices=["progression", "multiplicative"], default=None,
                        help="Override the configured stake policy")
    parser.add_argument("--config", default=None, help="Path to config.py")
    parser.add_argument("--new-day", action="store_true",
                        help="Start a new day instead of stopping on the daily trade limit")
    parser.add_argument("--csv", default=None, help="Write the trade log to this CSV file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for a simulated session."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s',
        datefmt='%H:%M:%S',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger.info("=" * 70)
    logger.info("🐦 HUMMINGBIRD - SIMULATED STAKING SESSION")
    logger.info("=" * 70)

    try:
        config = load_staking_config(args.config)
        if args.policy:
            values = config.to_dict()
            values["policy"] = args.policy
            config = StakingConfig.from_dict(values)
        strategy = StakingStrategy(config)
        logger.info("✅ Configuration loaded and validated")
    except ConfigValidationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1

    engine = SimulationEngine(strategy, SimulationConfig(
        max_cycles=args.trades,
        win_rate=args.win_rate,
        payout_rate=config.payout_rate,
        seed=args.seed,
        reset_on_stop=args.new_day,
    ))
    result = engine.run()

    logger.info("=" * 70)
    for key, value in result.summary().items():
        logger.info(f"{key:<16} {value}")
    logger.info("=" * 70)

    if args.csv:
        result.to_dataframe().to_csv(args.csv, index=False)
        logger.info(f"Trade log written to {args.csv}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
