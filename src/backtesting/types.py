"""
Data structures for backtesting framework.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from src.core.types import Side
from src.ledger.types import Outcome, WagerResult
from src.strategy.kelly import DEFAULT_VIG

MIN_BACKTEST_CONTESTS = 50
RECENT_BETS_KEPT = 20


class InsufficientDataError(ValueError):
    """Raised when too few completed contests match a backtest's filters."""

    def __init__(self, available: int, required: int = MIN_BACKTEST_CONTESTS):
        self.available = available
        self.required = required
        super().__init__(
            f"Not enough data for a meaningful backtest: {available} contests, "
            f"need at least {required}"
        )


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for a backtest run."""

    # Bet filters
    min_confidence: float = 0.55
    min_expected_value: float = 0.02

    # Bankroll configuration
    starting_bankroll: float = 1000.0
    kelly_fraction: float = 0.25  # fractional Kelly (conservative)
    max_stake_pct: float = 0.05  # never stake more than 5% of bankroll
    min_stake: float = 1.0

    # Sample selection
    sample_size: int = 500  # newest N completed contests in the window
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Odds estimate when no market price was recorded
    vig: float = DEFAULT_VIG

    def __post_init__(self):
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError("min_confidence must be between 0.0 and 1.0")
        if self.starting_bankroll <= 0:
            raise ValueError("starting_bankroll must be positive")
        if not 0.0 <= self.kelly_fraction <= 1.0:
            raise ValueError("kelly_fraction must be between 0.0 and 1.0")
        if not 0.0 < self.max_stake_pct <= 1.0:
            raise ValueError("max_stake_pct must be between 0.0 and 1.0")
        if self.sample_size < 1:
            raise ValueError("sample_size must be at least 1")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat() if self.start_date else None
        data["end_date"] = self.end_date.isoformat() if self.end_date else None
        return data


@dataclass(frozen=True)
class SimulatedBet:
    """Single simulated bet made during a backtest."""

    contest_id: str
    start_time: datetime
    home_team: str
    away_team: str
    selection: Side
    predicted_winner: str
    outcome: Outcome
    result: WagerResult
    confidence: float
    expected_value: float
    odds: float
    stake: float
    profit: float
    bankroll_after: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contest_id": self.contest_id,
            "start_time": self.start_time.isoformat(),
            "game": f"{self.home_team} vs {self.away_team}",
            "selection": self.selection.value,
            "prediction": self.predicted_winner,
            "outcome": self.outcome.value,
            "result": self.result.value,
            "confidence": self.confidence,
            "expected_value": self.expected_value,
            "odds": self.odds,
            "stake": self.stake,
            "profit": self.profit,
            "bankroll": self.bankroll_after,
        }


@dataclass
class BandStats:
    """Performance of bets in one confidence band."""

    bets: int = 0
    wins: int = 0
    profit: float = 0.0

    @property
    def win_rate(self) -> float:
        return (self.wins / self.bets * 100) if self.bets else 0.0


@dataclass
class BacktestReport:
    """Complete results from a backtest run."""

    # Metadata
    run_id: str
    timestamp: str
    sport: str
    config: BacktestConfig

    # Sample actually replayed
    sample_size: int
    date_range: Tuple[Optional[datetime], Optional[datetime]]
    contests_evaluated: int
    contests_skipped: int

    # Betting performance
    total_bets: int
    wins: int
    losses: int
    pushes: int
    total_staked: float
    total_profit: float
    win_rate: float  # percentage, pushes included in the denominator
    roi: float  # (total_profit / total_staked) * 100
    avg_odds: float

    # Bankroll
    starting_bankroll: float
    final_bankroll: float
    max_drawdown: float
    max_drawdown_pct: float

    # Calibration over every evaluated contest
    accuracy: float
    brier_score: float
    log_loss: float

    by_confidence: Dict[float, BandStats] = field(default_factory=dict)
    recent_bets: List[SimulatedBet] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        earliest, latest = self.date_range
        return {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "sport": self.sport,
            "config": self.config.to_dict(),
            "sample_size": self.sample_size,
            "date_range": {
                "earliest": earliest.isoformat() if earliest else None,
                "latest": latest.isoformat() if latest else None,
            },
            "contests_evaluated": self.contests_evaluated,
            "contests_skipped": self.contests_skipped,
            "total_bets": self.total_bets,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "total_staked": self.total_staked,
            "total_profit": self.total_profit,
            "win_rate": self.win_rate,
            "roi": self.roi,
            "avg_odds": self.avg_odds,
            "starting_bankroll": self.starting_bankroll,
            "final_bankroll": self.final_bankroll,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_pct": self.max_drawdown_pct,
            "accuracy": self.accuracy,
            "brier_score": self.brier_score,
            "log_loss": self.log_loss,
            "by_confidence": {
                f"{band:.1f}": {
                    "bets": stats.bets,
                    "wins": stats.wins,
                    "profit": stats.profit,
                    "win_rate": stats.win_rate,
                }
                for band, stats in sorted(self.by_confidence.items())
            },
            "bets": [bet.to_dict() for bet in self.recent_bets],
        }
