"""
Abstract base class for probability strategies.

Every strategy (heuristic, linear) maps a FeatureVector to a home-win
probability behind the same interface, so ``ProbabilityModel`` can swap them
by configuration.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Sequence

import joblib
import numpy as np

from src.features.feature_config import FeatureVector


class ModelNotTrainedError(RuntimeError):
    """Raised when an operation needs a trained strategy."""
    pass


class ProbabilityStrategy(ABC):
    """
    Abstract base class for probability strategies.

    Defines the interface that all strategies must implement:
    - home_win_probability: P(home win) for one feature vector
    - predict_proba: vectorized version over many vectors
    - save / load: joblib serialization
    """

    def __init__(self, strategy_name: str, version: str = "2.0.0"):
        """
        Initialize strategy.

        Args:
            strategy_name: Selector name (e.g., "heuristic", "linear")
            version: Model version string (semantic versioning)
        """
        self.strategy_name = strategy_name
        self.version = version
        self.is_trained = False
        self.training_metadata: Dict[str, Any] = {}

    @abstractmethod
    def home_win_probability(self, features: FeatureVector) -> float:
        """
        Probability that the home side wins.

        Args:
            features: Matchup feature vector

        Returns:
            Probability in [0, 1]
        """
        pass

    def predict_proba(self, features: Sequence[FeatureVector]) -> np.ndarray:
        """
        Home-win probabilities for many vectors.

        Returns:
            Array of shape (n_samples, 2) with [P(away), P(home)] per row
        """
        home = np.array([self.home_win_probability(f) for f in features], dtype=float)
        return np.column_stack([1.0 - home, home])

    @property
    def model_version(self) -> str:
        return f"{self.strategy_name}-{self.version}"

    def save(self, path: str) -> None:
        """
        Save strategy to disk using joblib.

        Args:
            path: File path to save strategy (should end in .joblib)

        Raises:
            ModelNotTrainedError: If strategy has not been trained
        """
        if not self.is_trained:
            raise ModelNotTrainedError(f"Cannot save untrained {self.strategy_name} strategy")

        save_path = Path(path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        # Save entire strategy object (weights, metadata, feature names)
        joblib.dump(self, save_path)

    @classmethod
    def load(cls, path: str) -> "ProbabilityStrategy":
        """
        Load strategy from disk.

        Raises:
            FileNotFoundError: If file does not exist
            TypeError: If the artifact holds a different strategy type
        """
        load_path = Path(path)
        if not load_path.exists():
            raise FileNotFoundError(f"Model file not found: {path}")

        loaded = joblib.load(load_path)
        if not isinstance(loaded, cls):
            raise TypeError(
                f"Artifact at {path} is a {type(loaded).__name__}, expected {cls.__name__}"
            )
        return loaded
