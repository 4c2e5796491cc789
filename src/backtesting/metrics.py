"""
Evaluation metrics for backtesting.

All metrics functions take plain sequences and return calculated values.
"""

from typing import Sequence

import numpy as np


def calculate_accuracy(home_probs: Sequence[float], home_wins: Sequence[bool]) -> float:
    """
    Fraction of contests where the home-win call (p >= 0.5) was right.

    A draw is a non-win for the home side.
    """
    if len(home_probs) == 0:
        return 0.0
    probs = np.asarray(home_probs, dtype=float)
    actual = np.asarray(home_wins, dtype=bool)
    return float(np.mean((probs >= 0.5) == actual))


def calculate_brier_score(home_probs: Sequence[float], home_wins: Sequence[bool]) -> float:
    """
    Brier score for home-win probabilities.

    Lower is better. Perfect predictions = 0, worst = 1.
    """
    if len(home_probs) == 0:
        return 1.0
    probs = np.asarray(home_probs, dtype=float)
    actual = np.asarray(home_wins, dtype=float)
    return float(np.mean((probs - actual) ** 2))


def calculate_log_loss(home_probs: Sequence[float], home_wins: Sequence[bool]) -> float:
    """
    Log loss (cross-entropy) for home-win probabilities.

    Lower is better. Perfect predictions = 0, worst = infinity.
    """
    if len(home_probs) == 0:
        return float("inf")
    probs = np.clip(np.asarray(home_probs, dtype=float), 1e-15, 1 - 1e-15)
    actual = np.asarray(home_wins, dtype=float)
    return float(np.mean(-(actual * np.log(probs) + (1 - actual) * np.log(1 - probs))))

