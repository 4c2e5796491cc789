"""Tests for the Contest record."""
from datetime import datetime

from src.core.types import Contest, ContestStatus

T0 = datetime(2024, 3, 1, 19, 0)


class TestContest:
    def test_team_won(self, contest_factory):
        contest = contest_factory("g1", "Lakers", "Celtics", T0, 110, 101)
        assert contest.team_won("Lakers")
        assert not contest.team_won("Celtics")
        assert not contest.team_won("Heat")

    def test_draw_is_not_a_win(self, contest_factory):
        contest = contest_factory("g1", "Arsenal", "Chelsea", T0, 1, 1, sport="soccer_epl")
        assert not contest.team_won("Arsenal")
        assert not contest.team_won("Chelsea")

    def test_scheduled_contest_has_no_winner(self, contest_factory):
        contest = contest_factory("g1", "Lakers", "Celtics", T0)
        assert not contest.is_completed
        assert not contest.team_won("Lakers")

    def test_points_for_and_against(self, contest_factory):
        contest = contest_factory("g1", "Lakers", "Celtics", T0, 110, 101)
        assert contest.points_for("Celtics") == 101
        assert contest.points_against("Celtics") == 110


class TestFromRow:
    def test_parses_iso_and_infers_status(self):
        contest = Contest.from_row(
            {
                "id": "g1",
                "sport": "basketball_nba",
                "home_team": "A",
                "away_team": "B",
                "start_time": "2024-03-01T19:00:00",
                "home_score": 100,
                "away_score": 90,
            }
        )
        assert contest.start_time == T0
        assert contest.status == ContestStatus.COMPLETED

    def test_nan_scores_become_none(self):
        contest = Contest.from_row(
            {
                "id": "g1",
                "sport": "basketball_nba",
                "home_team": "A",
                "away_team": "B",
                "start_time": T0,
                "home_score": float("nan"),
                "away_score": None,
                "home_odds": "not a number",
            }
        )
        assert contest.home_score is None
        assert contest.home_odds is None
        assert contest.status == ContestStatus.SCHEDULED
