"""
Deterministic heuristic strategy.

P(home) = 0.5 + home edge + weighted feature differentials, clamped to
[0.25, 0.85]. Needs no training, so it is always ready.
"""

from typing import Dict, Optional

from src.features.feature_config import FeatureVector
from src.models.base_predictor import ProbabilityStrategy
from src.models.model_config import (
    PROBABILITY_CEILING,
    PROBABILITY_FLOOR,
    get_config,
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class HeuristicStrategy(ProbabilityStrategy):
    """Fixed-weight scorer over feature differentials."""

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        version: str = "2.0.0",
    ):
        super().__init__(strategy_name="heuristic", version=version)
        config = get_config("heuristic")
        self.weights = config["weights"]
        if weights:
            self.weights.update(weights)
        self.streak_clamp = config["streak_clamp"]
        self.is_trained = True

    def home_win_probability(self, features: FeatureVector) -> float:
        w = self.weights
        probability = 0.5 + w["home_edge"]
        probability += (features.home_recent_win_pct - features.away_recent_win_pct) * w["recent_form"]
        probability += (features.home_win_pct - features.away_win_pct) * w["win_pct"]
        probability += (features.home_win_pct_home - features.away_win_pct_away) * w["home_away_split"]

        h2h = (features.h2h_home_wins - features.h2h_away_wins) / max(features.h2h_total, 1)
        probability += h2h * w["head_to_head"]
        probability += features.home_rest_advantage * w["rest"]

        limit = self.streak_clamp
        home_streak = _clamp(features.home_streak, -limit, limit)
        away_streak = _clamp(features.away_streak, -limit, limit)
        probability += (home_streak - away_streak) * w["streak"]

        return _clamp(probability, PROBABILITY_FLOOR, PROBABILITY_CEILING)
