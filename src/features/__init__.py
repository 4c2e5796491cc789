"""
Feature extraction for matchup predictions.

Provides tools for computing and validating matchup features from
historical results with zero look-ahead bias.
"""

from src.features.feature_config import (
    FeatureVector,
    FEATURE_VERSION,
    RECENT_FORM_GAMES,
    get_all_feature_names,
    get_feature_descriptions,
)
from src.features.validators import (
    LookAheadBiasError,
    validate_no_future_data,
    validate_chronological_order,
)

__all__ = [
    # Core classes (lazy so the history store stack loads only when used)
    "FeatureExtractor",
    "FeatureVector",
    # Configuration
    "FEATURE_VERSION",
    "RECENT_FORM_GAMES",
    "get_all_feature_names",
    "get_feature_descriptions",
    # Validation
    "LookAheadBiasError",
    "validate_no_future_data",
    "validate_chronological_order",
]


def __getattr__(name: str):
    if name == "FeatureExtractor":
        from src.features.feature_extractor import FeatureExtractor

        return FeatureExtractor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
