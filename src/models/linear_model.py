"""
Trainable linear (logistic) strategy.

Scores a bias plus one weight per normalized feature and squashes the result
through the logistic function. Trained with per-sample stochastic gradient
updates and early stopping on in-sample accuracy.

Weights are initialized randomly, so trained coefficients are not
reproducible unless ``random_state`` is fixed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, brier_score_loss, log_loss

from src.core.history_store import HistoricalDataStore
from src.features.feature_config import FeatureVector
from src.features.feature_extractor import FeatureExtractor
from src.models.base_predictor import ModelNotTrainedError, ProbabilityStrategy
from src.models.model_config import (
    LINEAR_FEATURE_NAMES,
    MIN_TRAINING_SAMPLES,
    get_config,
)

logger = logging.getLogger(__name__)

LabeledSample = Tuple[FeatureVector, int]


def sigmoid(x):
    """Logistic function, 1 / (1 + e^-x). Works on scalars and arrays."""
    return 1.0 / (1.0 + np.exp(-np.clip(x, -500, 500)))


def normalize_features(features: FeatureVector) -> np.ndarray:
    """
    Map a FeatureVector to comparable ranges.

    Win percentages are kept as-is (0-1); advantages become signed
    deviations in [-1, 1].

    Returns:
        Array ordered as ``LINEAR_FEATURE_NAMES``
    """
    h2h_total = max(features.h2h_total, 1)
    streak = (features.home_streak - features.away_streak) / 3.0
    return np.array(
        [
            features.home_win_pct,
            features.away_win_pct,
            features.home_recent_win_pct,
            features.away_recent_win_pct,
            (features.home_win_pct_home - 0.5) * 2.0,
            (features.h2h_home_wins - features.h2h_away_wins) / h2h_total,
            float(np.clip(features.home_rest_advantage, -1.0, 1.0)),
            float(np.clip(streak, -1.0, 1.0)),
        ],
        dtype=float,
    )


@dataclass
class TrainingResult:
    """Outcome of ``LinearStrategy.train``. ``trained=False`` carries a reason."""

    trained: bool
    samples: int = 0
    accuracy: float = 0.0
    epochs_run: int = 0
    best_epoch: int = 0
    stopped_early: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trained": self.trained,
            "samples": self.samples,
            "accuracy": self.accuracy,
            "epochs_run": self.epochs_run,
            "best_epoch": self.best_epoch,
            "stopped_early": self.stopped_early,
            "reason": self.reason,
        }


class LinearStrategy(ProbabilityStrategy):
    """
    Logistic scorer over ``LINEAR_FEATURE_NAMES``.

    An untrained instance predicts 0.5 for every matchup.
    """

    def __init__(self, version: str = "2.0.0", random_state: Optional[int] = None):
        """
        Initialize linear strategy.

        Args:
            version: Model version string
            random_state: Seed for weight initialization (None = nondeterministic)
        """
        super().__init__(strategy_name="linear", version=version)
        self.config = get_config("linear")
        self.hyperparameters = self.config["hyperparameters"]
        self.random_state = random_state
        self.feature_names: List[str] = list(LINEAR_FEATURE_NAMES)
        self.weights = np.zeros(len(self.feature_names))
        self.bias = 0.0

    def normalize_features(self, features: FeatureVector) -> np.ndarray:
        return normalize_features(features)

    def _score(self, X: np.ndarray) -> np.ndarray:
        return sigmoid(X @ self.weights + self.bias)

    def home_win_probability(self, features: FeatureVector) -> float:
        if not self.is_trained:
            return 0.5
        return float(self._score(normalize_features(features)))

    def train(
        self,
        samples: Sequence[LabeledSample],
        learning_rate: Optional[float] = None,
        max_epochs: Optional[int] = None,
        early_stop_patience: Optional[int] = None,
    ) -> TrainingResult:
        """
        Fit weights by per-sample stochastic gradient updates.

        For each sample: error = label - sigmoid(score);
        bias += lr * error; w_j += lr * error * x_j.

        Args:
            samples: (FeatureVector, label) pairs, label 1 = home win
            learning_rate: Step size (default from config)
            max_epochs: Maximum full passes over the data
            early_stop_patience: Epochs without accuracy improvement before stopping

        Returns:
            TrainingResult (``trained=False`` with fewer than 50 samples)
        """
        lr = learning_rate if learning_rate is not None else self.hyperparameters["learning_rate"]
        epochs = max_epochs if max_epochs is not None else self.hyperparameters["max_epochs"]
        patience = (
            early_stop_patience
            if early_stop_patience is not None
            else self.hyperparameters["early_stop_patience"]
        )
        if lr <= 0:
            raise ValueError("learning_rate must be positive")
        if epochs < 1 or patience < 1:
            raise ValueError("max_epochs and early_stop_patience must be at least 1")

        if len(samples) < MIN_TRAINING_SAMPLES:
            reason = (
                f"Not enough data for training: {len(samples)} samples, "
                f"need at least {MIN_TRAINING_SAMPLES}"
            )
            logger.warning(reason)
            return TrainingResult(trained=False, samples=len(samples), reason=reason)

        X = np.vstack([normalize_features(f) for f, _ in samples])
        y = np.array([int(label) for _, label in samples], dtype=float)

        rng = np.random.default_rng(self.random_state)
        scale = self.hyperparameters["init_scale"]
        weights = rng.random(X.shape[1]) * scale
        bias = float(rng.random() * scale)

        logger.info(
            "Training linear strategy v%s on %d samples (lr=%s, epochs=%d)",
            self.version, len(samples), lr, epochs,
        )

        best_accuracy = -1.0
        best_weights, best_bias, best_epoch = weights.copy(), bias, 0
        no_improvement = 0
        epochs_run = 0
        stopped_early = False

        for epoch in range(epochs):
            epochs_run = epoch + 1
            for x_i, y_i in zip(X, y):
                error = y_i - sigmoid(x_i @ weights + bias)
                bias += lr * error
                weights += lr * error * x_i

            predictions = (sigmoid(X @ weights + bias) > 0.5).astype(float)
            accuracy = float(np.mean(predictions == y))

            if epoch % 100 == 0:
                logger.info("Epoch %d: accuracy %.1f%%", epoch, accuracy * 100)

            if accuracy > best_accuracy:
                best_accuracy = accuracy
                best_weights, best_bias, best_epoch = weights.copy(), bias, epoch
                no_improvement = 0
            else:
                no_improvement += 1
                if no_improvement >= patience:
                    logger.info("Early stopping at epoch %d", epoch)
                    stopped_early = True
                    break

        # Keep the coefficients that achieved the reported accuracy
        self.weights = best_weights
        self.bias = best_bias
        self.is_trained = True
        self.training_metadata = {
            "n_samples": len(samples),
            "feature_names": list(self.feature_names),
            "hyperparameters": {
                "learning_rate": lr,
                "max_epochs": epochs,
                "early_stop_patience": patience,
            },
            "accuracy": best_accuracy,
            "version": self.version,
        }
        logger.info("Linear strategy trained, best accuracy %.1f%%", best_accuracy * 100)

        return TrainingResult(
            trained=True,
            samples=len(samples),
            accuracy=best_accuracy,
            epochs_run=epochs_run,
            best_epoch=best_epoch,
            stopped_early=stopped_early,
        )

    def evaluate(self, samples: Sequence[LabeledSample]) -> Dict[str, float]:
        """
        Evaluate on labeled samples.

        Computes:
        - accuracy: Fraction of correct home-win calls (threshold 0.5)
        - log_loss: Logarithmic loss (lower is better)
        - brier_score: Mean squared probability error (lower is better)

        Raises:
            ModelNotTrainedError: If strategy has not been trained
            ValueError: If samples is empty
        """
        if not self.is_trained:
            raise ModelNotTrainedError("Linear strategy has not been trained yet")
        if not samples:
            raise ValueError("No samples to evaluate")

        y = np.array([int(label) for _, label in samples])
        proba = self.predict_proba([f for f, _ in samples])[:, 1]
        y_pred = (proba > 0.5).astype(int)

        return {
            "accuracy": float(accuracy_score(y, y_pred)),
            "log_loss": float(log_loss(y, proba, labels=[0, 1])),
            "brier_score": float(brier_score_loss(y, proba)),
        }

    def get_feature_importance(self, top_n: Optional[int] = None) -> pd.DataFrame:
        """
        Features ranked by absolute weight.

        Returns:
            DataFrame with columns ["feature", "importance"] sorted descending
        """
        if not self.is_trained:
            raise ModelNotTrainedError("Linear strategy has not been trained yet")

        importance_df = pd.DataFrame(
            {"feature": self.feature_names, "importance": np.abs(self.weights)}
        )
        importance_df = importance_df.sort_values("importance", ascending=False)
        if top_n is not None:
            importance_df = importance_df.head(top_n)
        return importance_df.reset_index(drop=True)


def build_training_samples(
    store: HistoricalDataStore,
    sport: str,
    extractor: Optional[FeatureExtractor] = None,
    limit: Optional[int] = None,
) -> List[LabeledSample]:
    """
    Label completed contests with features computed strictly before each one.

    Contests are replayed oldest first. Contests where either side has no
    prior history (``valid=False``) are skipped.

    Args:
        store: History store
        sport: Sport key
        extractor: Feature extractor (default: uncached over ``store``)
        limit: Use only the newest ``limit`` contests

    Returns:
        List of (FeatureVector, label) with label 1 for a home win
    """
    # Caching would hand back vectors computed for an earlier contest
    extractor = extractor or FeatureExtractor(store, cache_ttl_seconds=0)
    contests = list(reversed(store.completed_contests(sport, limit=limit)))

    samples: List[LabeledSample] = []
    for contest in contests:
        features = extractor.extract(
            contest.home_team, contest.away_team, sport, contest.start_time
        )
        if not features.valid:
            continue
        samples.append((features, int(contest.team_won(contest.home_team))))

    logger.info("Built %d training samples from %d contests", len(samples), len(contests))
    return samples
