"""
Parameter configurations for the probability strategies.

Defines:
- Heuristic weights (fixed, deterministic scorer)
- Linear strategy training defaults (logistic scorer trained by SGD)
"""

import copy
from typing import Any, Dict, List

# Probability clamp shared by every strategy
PROBABILITY_FLOOR = 0.25
PROBABILITY_CEILING = 0.85

# Used when no market price is known for a side
DEFAULT_DECIMAL_ODDS = 1.90
DEFAULT_DRAW_ODDS = 3.00

# Fewer labeled samples than this and the linear strategy refuses to train
MIN_TRAINING_SAMPLES = 50

# ============================================================================
# Heuristic Strategy
# ============================================================================

HEURISTIC_CONFIG: Dict[str, Any] = {
    "strategy_name": "heuristic",
    "weights": {
        "home_edge": 0.03,
        "recent_form": 0.15,
        "win_pct": 0.10,
        "home_away_split": 0.10,
        "head_to_head": 0.05,
        "rest": 0.03,
        "streak": 0.01,
    },
    "streak_clamp": 3,
    "description": "Weighted sum of feature differentials around a 0.5 prior",
}

# ============================================================================
# Linear Strategy
# ============================================================================

LINEAR_FEATURE_NAMES: List[str] = [
    "home_win_pct",
    "away_win_pct",
    "home_recent_form",
    "away_recent_form",
    "home_advantage",
    "h2h_advantage",
    "rest_advantage",
    "streak_advantage",
]

LINEAR_CONFIG: Dict[str, Any] = {
    "strategy_name": "linear",
    "hyperparameters": {
        "learning_rate": 0.1,
        "max_epochs": 500,
        "early_stop_patience": 30,
        "init_scale": 0.1,  # weights start uniform in [0, init_scale)
    },
    "description": "Logistic scorer over normalized features, trained by per-sample SGD",
}


STRATEGY_CONFIGS = {
    "heuristic": HEURISTIC_CONFIG,
    "linear": LINEAR_CONFIG,
}


def get_config(strategy_name: str) -> Dict[str, Any]:
    """
    Retrieve configuration for a probability strategy.

    Args:
        strategy_name: Either "heuristic" or "linear"

    Returns:
        Configuration dictionary (a deep copy, safe to mutate)

    Raises:
        ValueError: If strategy_name is invalid

    Examples:
        >>> get_config("linear")["hyperparameters"]["max_epochs"]
        500
    """
    if strategy_name not in STRATEGY_CONFIGS:
        raise ValueError(
            f"Invalid strategy '{strategy_name}'. "
            f"Valid options: {list(STRATEGY_CONFIGS.keys())}"
        )
    return copy.deepcopy(STRATEGY_CONFIGS[strategy_name])
