"""
ProbabilityModel: FeatureVector -> Prediction.

Wraps one ``ProbabilityStrategy`` (selected by name) and turns its home-win
probability into a full prediction: both sides' probabilities, the predicted
winner, a clamped confidence and the best expected value against market odds.

Invariants:
- home_prob + away_prob == 1.0 exactly (away is computed as 1 - home)
- confidence == max(home_prob, away_prob), within [floor, ceiling]
"""

import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from src.core.types import Side
from src.features.feature_config import FeatureVector
from src.models.base_predictor import ProbabilityStrategy
from src.models.heuristic_model import HeuristicStrategy
from src.models.linear_model import LinearStrategy
from src.models.model_config import (
    DEFAULT_DECIMAL_ODDS,
    PROBABILITY_CEILING,
    PROBABILITY_FLOOR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """One evaluation of a contest. Immutable once created."""

    contest_id: Optional[str]
    home_team: Optional[str]
    away_team: Optional[str]
    predicted_side: Side
    home_prob: float
    away_prob: float
    confidence: float
    expected_value: float
    model_version: str
    features_valid: bool = True

    @property
    def predicted_winner(self) -> str:
        """Team identifier of the predicted side (side name if teams are unknown)."""
        team = self.home_team if self.predicted_side == Side.HOME else self.away_team
        return team if team is not None else self.predicted_side.value

    @property
    def predicted_prob(self) -> float:
        return self.home_prob if self.predicted_side == Side.HOME else self.away_prob

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["predicted_side"] = self.predicted_side.value
        data["predicted_winner"] = self.predicted_winner
        return data


def expected_value(probability: float, odds: float) -> float:
    """
    Net expected return per unit staked: p * odds - (1 - p).

    Examples:
        >>> round(expected_value(0.6, 1.9), 4)
        0.74
    """
    return probability * odds - (1.0 - probability)


def best_expected_value(
    home_prob: float,
    away_prob: float,
    home_odds: float,
    away_odds: float,
) -> float:
    """Maximum of the home-side and away-side expected values."""
    return max(expected_value(home_prob, home_odds), expected_value(away_prob, away_odds))


def _usable_odds(odds: Optional[float]) -> float:
    if odds is None or not math.isfinite(odds) or odds <= 1.0:
        return DEFAULT_DECIMAL_ODDS
    return float(odds)


class ProbabilityModel:
    """
    Strategy-agnostic predictor.

    Examples:
        >>> model = ProbabilityModel(create_strategy("heuristic"))
        >>> p = model.predict(FeatureVector.default("basketball_nba"))
        >>> p.home_prob + p.away_prob
        1.0
    """

    def __init__(
        self,
        strategy: ProbabilityStrategy,
        confidence_floor: float = PROBABILITY_FLOOR,
        confidence_ceiling: float = PROBABILITY_CEILING,
    ):
        # Strict at both ends so neither side is ever priced at zero probability
        if not 0.0 < confidence_floor <= 0.5 <= confidence_ceiling < 1.0:
            raise ValueError(
                "Clamp bounds must satisfy 0 < confidence_floor <= 0.5 <= confidence_ceiling < 1, "
                f"got [{confidence_floor}, {confidence_ceiling}]"
            )
        self.strategy = strategy
        self.confidence_floor = confidence_floor
        self.confidence_ceiling = confidence_ceiling

    @property
    def model_version(self) -> str:
        return self.strategy.model_version

    def _clamp(self, value: float) -> float:
        return max(self.confidence_floor, min(self.confidence_ceiling, value))

    def predict(
        self,
        features: FeatureVector,
        home_odds: Optional[float] = None,
        away_odds: Optional[float] = None,
        home_team: Optional[str] = None,
        away_team: Optional[str] = None,
        contest_id: Optional[str] = None,
    ) -> Prediction:
        """
        Predict the outcome of one matchup.

        Args:
            features: Matchup feature vector
            home_odds: Best decimal price on the home side (default 1.90)
            away_odds: Best decimal price on the away side (default 1.90)
            home_team: Home identifier (for ``predicted_winner``)
            away_team: Away identifier
            contest_id: Contest reference

        Returns:
            Prediction
        """
        raw = self.strategy.home_win_probability(features)
        if raw is None or not math.isfinite(raw):
            logger.warning("Strategy %s returned %r, using 0.5", self.strategy.strategy_name, raw)
            raw = 0.5

        home_prob = self._clamp(raw)
        away_prob = 1.0 - home_prob
        side = Side.HOME if home_prob > away_prob else Side.AWAY
        confidence = self._clamp(max(home_prob, away_prob))

        ev = best_expected_value(
            home_prob, away_prob, _usable_odds(home_odds), _usable_odds(away_odds)
        )

        return Prediction(
            contest_id=contest_id,
            home_team=home_team,
            away_team=away_team,
            predicted_side=side,
            home_prob=home_prob,
            away_prob=away_prob,
            confidence=confidence,
            expected_value=ev,
            model_version=self.model_version,
            features_valid=features.valid,
        )

    @classmethod
    def from_settings(cls, settings=None) -> "ProbabilityModel":
        """
        Build the configured model.

        With ``MODEL_STRATEGY=linear`` the artifact at ``MODEL_ARTIFACTS_PATH``
        is loaded; a missing artifact leaves an untrained strategy that
        predicts 0.5.
        """
        if settings is None:
            from src.core.config import settings

        name = settings.MODEL_STRATEGY
        if name == "linear":
            artifact = Path(settings.MODEL_ARTIFACTS_PATH) / LINEAR_ARTIFACT_NAME
            if artifact.exists():
                strategy = LinearStrategy.load(str(artifact))
                logger.info("Loaded linear strategy from %s", artifact)
            else:
                logger.warning("No trained linear model at %s, predicting 0.5", artifact)
                strategy = LinearStrategy(version=settings.MODEL_VERSION)
        else:
            strategy = create_strategy(name, version=settings.MODEL_VERSION)

        return cls(
            strategy,
            confidence_floor=settings.CONFIDENCE_FLOOR,
            confidence_ceiling=settings.CONFIDENCE_CEILING,
        )


LINEAR_ARTIFACT_NAME = "linear_strategy.joblib"

STRATEGIES = {
    "heuristic": HeuristicStrategy,
    "linear": LinearStrategy,
}


def create_strategy(name: str, **kwargs) -> ProbabilityStrategy:
    """
    Instantiate a strategy by selector name.

    Raises:
        ValueError: If name is unknown
    """
    if name not in STRATEGIES:
        raise ValueError(f"Unknown strategy '{name}'. Valid options: {list(STRATEGIES)}")
    return STRATEGIES[name](**kwargs)
