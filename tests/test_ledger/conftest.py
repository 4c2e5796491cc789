from datetime import datetime

import pytest

from src.core.types import Side
from src.ledger.ledger import BettingLedger
from src.ledger.repository import InMemoryLedgerRepository
from src.models.probability_model import Prediction


def make_prediction(contest_id: str = "g1", side: Side = Side.HOME) -> Prediction:
    home = 0.62 if side == Side.HOME else 0.38
    return Prediction(
        contest_id=contest_id,
        home_team="Lakers",
        away_team="Heat",
        predicted_side=side,
        home_prob=home,
        away_prob=1.0 - home,
        confidence=0.62,
        expected_value=0.18,
        model_version="heuristic-2.0.0",
    )


@pytest.fixture
def prediction_factory():
    return make_prediction


@pytest.fixture
def fixed_now():
    return lambda: datetime(2024, 3, 1, 12, 0)


@pytest.fixture
def ledger(fixed_now):
    return BettingLedger(InMemoryLedgerRepository(), starting_bankroll=1000.0, clock=fixed_now)
