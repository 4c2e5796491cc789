"""Tests for the deterministic heuristic strategy."""

import pytest

from src.features.feature_config import FeatureVector
from src.models.heuristic_model import HeuristicStrategy


@pytest.fixture
def reference_features():
    """Lakers vs Celtics vector from the feature extractor's reference history."""
    return FeatureVector(
        sport="basketball_nba",
        home_win_pct=2 / 3,
        away_win_pct=0.25,
        home_win_pct_home=0.5,
        away_win_pct_away=0.0,
        home_recent_win_pct=2 / 3,
        away_recent_win_pct=0.25,
        h2h_home_wins=2,
        h2h_away_wins=0,
        h2h_total=2,
        home_rest_days=3.0,
        away_rest_days=1.0,
        home_rest_advantage=0.5,
        home_streak=2,
        away_streak=-3,
    )


class TestHeuristicStrategy:
    def test_always_trained(self):
        strategy = HeuristicStrategy()
        assert strategy.is_trained
        assert strategy.model_version == "heuristic-2.0.0"

    def test_neutral_vector_gets_home_edge(self):
        """0.5 prior + 0.03 home edge, every differential zero."""
        p = HeuristicStrategy().home_win_probability(FeatureVector.default("basketball_nba"))
        assert p == pytest.approx(0.53)

    def test_hand_computed(self, reference_features):
        expected = (
            0.5
            + 0.03
            + (2 / 3 - 0.25) * 0.15
            + (2 / 3 - 0.25) * 0.10
            + (0.5 - 0.0) * 0.10
            + (2 - 0) / 2 * 0.05
            + 0.5 * 0.03
            + (2 - (-3)) * 0.01
        )
        p = HeuristicStrategy().home_win_probability(reference_features)
        assert p == pytest.approx(expected)
        assert p == pytest.approx(0.799167, abs=1e-6)

    def test_streaks_clamped(self, reference_features):
        """Streaks beyond +/-3 contribute no more than +/-3."""
        from dataclasses import replace

        longer = replace(reference_features, home_streak=9, away_streak=-9)
        capped = replace(reference_features, home_streak=3, away_streak=-3)
        strategy = HeuristicStrategy()
        assert strategy.home_win_probability(longer) == strategy.home_win_probability(capped)

    def test_clamped_to_bounds(self):
        dominant = FeatureVector(
            sport="basketball_nba",
            home_win_pct=1.0, away_win_pct=0.0,
            home_win_pct_home=1.0, away_win_pct_away=0.0,
            home_recent_win_pct=1.0, away_recent_win_pct=0.0,
            h2h_home_wins=5, h2h_total=5,
            home_rest_advantage=0.5, home_streak=10, away_streak=-10,
        )
        hopeless = FeatureVector(
            sport="basketball_nba",
            home_win_pct=0.0, away_win_pct=1.0,
            home_win_pct_home=0.0, away_win_pct_away=1.0,
            home_recent_win_pct=0.0, away_recent_win_pct=1.0,
            h2h_away_wins=5, h2h_total=5,
            home_rest_advantage=-2.0, home_streak=-10, away_streak=10,
        )
        strategy = HeuristicStrategy()
        assert strategy.home_win_probability(dominant) == 0.85
        assert strategy.home_win_probability(hopeless) == 0.25

    def test_weight_override(self):
        strategy = HeuristicStrategy(weights={"home_edge": 0.0})
        assert strategy.home_win_probability(FeatureVector.default("soccer_epl")) == pytest.approx(0.5)
        # Defaults untouched for other instances
        assert HeuristicStrategy().weights["home_edge"] == 0.03
