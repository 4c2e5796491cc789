from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np
import pytest

from src.core.database import get_engine, init_schema
from src.core.history_store import InMemoryHistoryStore
from src.core.types import Contest, ContestStatus
from src.models.heuristic_model import HeuristicStrategy
from src.models.probability_model import ProbabilityModel

SPORT = "basketball_nba"
TEAMS = ["Lakers", "Warriors", "Celtics", "Heat", "Bucks", "Suns", "Nets", "Knicks"]
HISTORY_START = datetime(2024, 1, 1, 19, 0)


def make_contest(
    contest_id: str,
    home_team: str,
    away_team: str,
    start_time: datetime,
    home_score: Optional[float] = None,
    away_score: Optional[float] = None,
    sport: str = SPORT,
    home_odds: Optional[float] = None,
    away_odds: Optional[float] = None,
) -> Contest:
    """Completed when both scores are given, scheduled otherwise."""
    completed = home_score is not None and away_score is not None
    return Contest(
        contest_id=contest_id,
        sport=sport,
        home_team=home_team,
        away_team=away_team,
        start_time=start_time,
        home_score=home_score,
        away_score=away_score,
        status=ContestStatus.COMPLETED if completed else ContestStatus.SCHEDULED,
        home_odds=home_odds,
        away_odds=away_odds,
    )


def synthetic_history(
    n_games: int = 240,
    seed: int = 42,
    sport: str = SPORT,
    teams: List[str] = TEAMS,
    odds: Optional[float] = 2.20,
) -> List[Contest]:
    """
    Seeded season of completed contests, one every 12 hours.

    Each team has a fixed strength; the stronger side usually wins and no
    contest ends level. ``odds`` is recorded for both sides (None = no market
    price recorded).
    """
    rng = np.random.default_rng(seed)
    strength = dict(zip(teams, rng.normal(0.0, 1.0, len(teams))))

    contests = []
    for i in range(n_games):
        home_idx, away_idx = rng.choice(len(teams), size=2, replace=False)
        home, away = teams[home_idx], teams[away_idx]
        edge = strength[home] - strength[away] + 0.2
        home_wins = rng.random() < 1.0 / (1.0 + np.exp(-2.0 * edge))

        loser = float(rng.integers(95, 110))
        winner = loser + float(rng.integers(1, 15))
        home_score, away_score = (winner, loser) if home_wins else (loser, winner)

        contests.append(
            make_contest(
                f"{sport}_{i:04d}",
                home,
                away,
                HISTORY_START + timedelta(hours=12 * i),
                home_score,
                away_score,
                sport=sport,
                home_odds=odds,
                away_odds=odds,
            )
        )
    return contests


@pytest.fixture
def history():
    """240 completed NBA contests with generous recorded odds."""
    return synthetic_history()


@pytest.fixture
def history_store(history):
    return InMemoryHistoryStore(history)


@pytest.fixture
def sql_engine():
    """Fresh in-memory SQLite database with the full schema."""
    engine = get_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def heuristic_model():
    return ProbabilityModel(HeuristicStrategy())


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def contest_factory():
    return make_contest


@pytest.fixture
def history_factory():
    return synthetic_history
