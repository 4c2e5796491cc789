"""
Tests for bankroll simulation and odds estimation.
"""
from datetime import datetime

import pytest

from src.backtesting.bankroll_sim import BankrollTracker, confidence_band, estimate_odds
from src.backtesting.types import SimulatedBet
from src.core.types import Side
from src.ledger.types import Outcome, WagerResult


def make_bet(result: WagerResult, stake=100.0, odds=2.0, confidence=0.62) -> SimulatedBet:
    profit = {WagerResult.WIN: stake * (odds - 1), WagerResult.LOSS: -stake}.get(result, 0.0)
    return SimulatedBet(
        contest_id="g1",
        start_time=datetime(2024, 1, 1),
        home_team="Lakers",
        away_team="Heat",
        selection=Side.HOME,
        predicted_winner="Lakers",
        outcome=Outcome.HOME,
        result=result,
        confidence=confidence,
        expected_value=0.2,
        odds=odds,
        stake=stake,
        profit=profit,
        bankroll_after=0.0,
    )


@pytest.mark.parametrize(
    "confidence,band",
    [(0.55, 0.5), (0.599, 0.5), (0.6, 0.6), (0.67, 0.6), (0.7, 0.7), (0.85, 0.8)],
)
def test_confidence_band(confidence, band):
    assert confidence_band(confidence) == band


def test_estimate_odds_recorded():
    assert estimate_odds(0.6, 0.4, 1.7, 2.3) == (1.7, 2.3)


def test_estimate_odds_fair():
    """Missing prices fall back to vig-discounted fair odds."""
    home, away = estimate_odds(0.5, 0.5)
    assert home == pytest.approx(1.9)
    assert away == pytest.approx(1.9)

    home, away = estimate_odds(0.8, 0.2, home_odds=1.2)
    assert home == pytest.approx(0.95 / 0.8)
    assert away == pytest.approx(0.95 / 0.2)


class TestBankrollTracker:
    def test_initial_state(self):
        tracker = BankrollTracker(1000.0)
        assert tracker.current_bankroll == 1000.0
        assert tracker.history == [1000.0]
        assert tracker.get_roi() == 0.0
        assert tracker.get_win_rate() == 0.0
        assert tracker.get_max_drawdown() == (0.0, 0.0)

    def test_record_results(self):
        tracker = BankrollTracker(1000.0)
        tracker.record(make_bet(WagerResult.WIN))
        tracker.record(make_bet(WagerResult.LOSS))
        tracker.record(make_bet(WagerResult.PUSH))

        assert tracker.total_bets == 3
        assert (tracker.wins, tracker.losses, tracker.pushes) == (1, 1, 1)
        assert tracker.current_bankroll == 1000.0
        assert tracker.total_staked == 300.0
        assert tracker.get_roi() == 0.0
        assert tracker.get_win_rate() == pytest.approx(100 / 3)
        assert tracker.history == [1000.0, 1100.0, 1000.0, 1000.0]

    def test_average_odds(self):
        tracker = BankrollTracker(1000.0)
        tracker.record(make_bet(WagerResult.WIN, odds=2.0))
        tracker.record(make_bet(WagerResult.WIN, odds=3.0))
        assert tracker.avg_odds == pytest.approx(2.5)

    def test_max_drawdown(self):
        tracker = BankrollTracker(1000.0)
        tracker.record(make_bet(WagerResult.WIN, stake=200.0))   # 1200 peak
        tracker.record(make_bet(WagerResult.LOSS, stake=300.0))  # 900
        tracker.record(make_bet(WagerResult.WIN, stake=50.0))    # 950

        max_dd, max_dd_pct = tracker.get_max_drawdown()
        assert max_dd == pytest.approx(300.0)
        assert max_dd_pct == pytest.approx(25.0)
        assert tracker.peak_bankroll == 1200.0

    def test_bands(self):
        tracker = BankrollTracker(1000.0)
        tracker.record(make_bet(WagerResult.WIN, confidence=0.61))
        tracker.record(make_bet(WagerResult.LOSS, confidence=0.66))
        tracker.record(make_bet(WagerResult.WIN, confidence=0.72))

        assert set(tracker.by_confidence) == {0.6, 0.7}
        band = tracker.by_confidence[0.6]
        assert (band.bets, band.wins) == (2, 1)
        assert band.profit == pytest.approx(0.0)
        assert band.win_rate == 50.0

    def test_recent_bets_bounded(self):
        tracker = BankrollTracker(1000.0, recent_bets_kept=5)
        for _ in range(12):
            tracker.record(make_bet(WagerResult.PUSH))
        assert len(tracker.recent_bets) == 5
        assert tracker.total_bets == 12
