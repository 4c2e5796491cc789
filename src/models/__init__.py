"""
Models package for sports-edge-model.

Provides:
- ProbabilityStrategy: Abstract base class for all strategies
- HeuristicStrategy: Deterministic weighted-differential scorer
- LinearStrategy: Logistic scorer trained by SGD
- ProbabilityModel / Prediction: strategy-agnostic predictor
- Strategy configurations
"""

from src.models.model_config import (
    get_config,
    STRATEGY_CONFIGS,
)

__all__ = [
    # Core classes (lazy so importing configs stays cheap)
    "ProbabilityStrategy",
    "ModelNotTrainedError",
    "HeuristicStrategy",
    "LinearStrategy",
    "TrainingResult",
    "ProbabilityModel",
    "Prediction",
    "create_strategy",
    # Configuration
    "get_config",
    "STRATEGY_CONFIGS",
]


def __getattr__(name: str):
    if name in ("ProbabilityStrategy", "ModelNotTrainedError"):
        from src.models import base_predictor

        return getattr(base_predictor, name)
    if name == "HeuristicStrategy":
        from src.models.heuristic_model import HeuristicStrategy

        return HeuristicStrategy
    if name in ("LinearStrategy", "TrainingResult"):
        from src.models import linear_model

        return getattr(linear_model, name)
    if name in ("ProbabilityModel", "Prediction", "create_strategy"):
        from src.models import probability_model

        return getattr(probability_model, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
