"""
Bankroll simulation for backtests.

The simulated bankroll is local to one run and never touches the live
ledger. Results are applied exactly as the ledger settles real wagers.
"""

import math
from collections import deque
from typing import Deque, Dict, Optional, Tuple

from src.backtesting.types import RECENT_BETS_KEPT, BandStats, SimulatedBet
from src.ledger.types import WagerResult
from src.strategy.kelly import DEFAULT_VIG, fair_odds


def confidence_band(confidence: float) -> float:
    """
    Bucket key for a confidence: floor(confidence * 10) / 10.

    Examples:
        >>> confidence_band(0.67)
        0.6
        >>> confidence_band(0.7)
        0.7
    """
    return math.floor(round(confidence * 10, 9)) / 10


def estimate_odds(
    home_prob: float,
    away_prob: float,
    home_odds: Optional[float] = None,
    away_odds: Optional[float] = None,
    vig: float = DEFAULT_VIG,
) -> Tuple[float, float]:
    """
    Decimal odds for both sides.

    Uses recorded market odds when both sides have them, otherwise fair odds
    from the probabilities discounted by ``vig``.

    Examples:
        >>> estimate_odds(0.5, 0.5)
        (1.9, 1.9)
        >>> estimate_odds(0.6, 0.4, 1.7, 2.3)
        (1.7, 2.3)
    """
    if home_odds and away_odds:
        return float(home_odds), float(away_odds)
    return fair_odds(home_prob, vig), fair_odds(away_prob, vig)


class BankrollTracker:
    """
    Track bankroll changes over time during backtesting.
    """

    def __init__(self, starting_bankroll: float, recent_bets_kept: int = RECENT_BETS_KEPT):
        """
        Initialize bankroll tracker.

        Args:
            starting_bankroll: Initial bankroll amount
            recent_bets_kept: How many of the latest bets to retain for inspection
        """
        self.starting_bankroll = starting_bankroll
        self.current_bankroll = starting_bankroll
        self.history = [starting_bankroll]
        self.peak_bankroll = starting_bankroll

        # Summary statistics
        self.total_bets = 0
        self.total_staked = 0.0
        self.total_profit = 0.0
        self.wins = 0
        self.losses = 0
        self.pushes = 0
        self.avg_odds = 0.0
        self.by_confidence: Dict[float, BandStats] = {}
        self.recent_bets: Deque[SimulatedBet] = deque(maxlen=recent_bets_kept)

    def record(self, bet: SimulatedBet) -> None:
        """
        Apply a settled simulated bet.

        Args:
            bet: Bet whose ``profit`` is already computed
        """
        self.total_bets += 1
        self.total_staked += bet.stake
        self.total_profit += bet.profit
        self.current_bankroll += bet.profit
        self.avg_odds += (bet.odds - self.avg_odds) / self.total_bets

        if bet.result == WagerResult.WIN:
            self.wins += 1
        elif bet.result == WagerResult.LOSS:
            self.losses += 1
        else:
            self.pushes += 1

        band = self.by_confidence.setdefault(confidence_band(bet.confidence), BandStats())
        band.bets += 1
        band.profit += bet.profit
        if bet.result == WagerResult.WIN:
            band.wins += 1

        if self.current_bankroll > self.peak_bankroll:
            self.peak_bankroll = self.current_bankroll
        self.history.append(self.current_bankroll)
        self.recent_bets.append(bet)

    def get_max_drawdown(self) -> Tuple[float, float]:
        """
        Calculate maximum drawdown.

        Returns:
            (max_drawdown_dollars, max_drawdown_percentage)
        """
        peak = self.history[0]
        max_dd = 0.0
        max_dd_pct = 0.0

        for bankroll in self.history:
            if bankroll > peak:
                peak = bankroll
            dd = peak - bankroll
            if dd > max_dd:
                max_dd = dd
                max_dd_pct = (dd / peak * 100) if peak > 0 else 0.0

        return max_dd, max_dd_pct

    def get_roi(self) -> float:
        """ROI as a percentage of total staked."""
        if self.total_staked == 0:
            return 0.0
        return (self.total_profit / self.total_staked) * 100

    def get_win_rate(self) -> float:
        """Win rate as a percentage; pushes count as settled bets."""
        settled = self.wins + self.losses + self.pushes
        if settled == 0:
            return 0.0
        return (self.wins / settled) * 100
