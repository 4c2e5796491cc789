"""
Backtesting for the betting strategy.

Chronological replay of completed contests:
- Features computed as of each contest's start time
- Predict, filter on confidence and expected value
- Size the stake with fractional Kelly
- Settle against the final score on a simulated bankroll

Key components:
- BacktestRunner: Replay engine
- BankrollTracker: Track bankroll and betting performance
- Metrics: Calibration functions (accuracy, Brier score, log loss)
- Types: Data structures (BacktestConfig, BacktestReport, etc.)
"""

from src.backtesting.backtester import BacktestRunner
from src.backtesting.bankroll_sim import BankrollTracker, confidence_band, estimate_odds
from src.backtesting.types import (
    MIN_BACKTEST_CONTESTS,
    BacktestConfig,
    BacktestReport,
    BandStats,
    InsufficientDataError,
    SimulatedBet,
)

__all__ = [
    "BacktestRunner",
    "BankrollTracker",
    "BacktestConfig",
    "BacktestReport",
    "BandStats",
    "SimulatedBet",
    "InsufficientDataError",
    "MIN_BACKTEST_CONTESTS",
    "confidence_band",
    "estimate_odds",
]
