"""
Validation functions to ensure no look-ahead bias in features.

CRITICAL: All features must only use data from BEFORE the evaluation time.
"""
import math
from datetime import datetime
from typing import Iterable, List, Sequence

import pandas as pd

from src.core.types import Contest


class LookAheadBiasError(Exception):
    """Raised when look-ahead bias is detected in features."""
    pass


def validate_no_future_data(contests: Iterable[Contest], as_of: datetime) -> None:
    """
    Validate that every contest started strictly before ``as_of``.

    Args:
        contests: History rows used to compute a feature vector
        as_of: Evaluation time (exclusive cutoff)

    Raises:
        LookAheadBiasError: If any contest starts at or after ``as_of``
    """
    for contest in contests:
        if contest.start_time >= as_of:
            raise LookAheadBiasError(
                f"Contest {contest.contest_id} starts at {contest.start_time}, "
                f"which is not before the evaluation time {as_of}"
            )


def validate_chronological_order(
    contests: Sequence[Contest],
    descending: bool = True,
) -> None:
    """
    Validate that contests are sorted by start time.

    Recent form and streak are order-sensitive, so history must arrive sorted.

    Raises:
        LookAheadBiasError: If data is not in chronological order
    """
    dates = pd.Series([c.start_time for c in contests], dtype="object")
    if dates.empty:
        return
    ordered = dates.is_monotonic_decreasing if descending else dates.is_monotonic_increasing
    if not ordered:
        direction = "descending" if descending else "ascending"
        raise LookAheadBiasError(
            f"Contest history is not in {direction} chronological order. "
            f"Recent form must be computed on sorted data."
        )


def find_non_finite(values: dict) -> List[str]:
    """Names of numeric entries that are NaN or infinite."""
    return [
        name
        for name, value in values.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
        and not math.isfinite(value)
    ]
