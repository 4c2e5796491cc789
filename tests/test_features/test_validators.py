"""Tests for look-ahead bias detection."""

import math
from datetime import datetime, timedelta

import pytest

from src.features.validators import (
    LookAheadBiasError,
    find_non_finite,
    validate_chronological_order,
    validate_no_future_data,
)

T0 = datetime(2024, 3, 1, 19, 0)


@pytest.fixture
def ordered(contest_factory):
    """Three contests, newest first."""
    return [
        contest_factory(f"g{i}", "A", "B", T0 - timedelta(days=i), 100, 90)
        for i in range(3)
    ]


def test_validate_no_future_data_pass(ordered):
    """History strictly before the evaluation time passes."""
    validate_no_future_data(ordered, T0 + timedelta(seconds=1))


def test_validate_no_future_data_fail_at_cutoff(ordered):
    """A contest starting exactly at as_of is look-ahead."""
    with pytest.raises(LookAheadBiasError, match="not before the evaluation time"):
        validate_no_future_data(ordered, T0)


def test_validate_chronological_order_pass(ordered):
    validate_chronological_order(ordered)
    validate_chronological_order(list(reversed(ordered)), descending=False)


def test_validate_chronological_order_fail(ordered):
    shuffled = [ordered[1], ordered[0], ordered[2]]
    with pytest.raises(LookAheadBiasError, match="descending chronological order"):
        validate_chronological_order(shuffled)


def test_validate_chronological_order_empty():
    validate_chronological_order([])


def test_find_non_finite():
    values = {"a": 0.5, "b": math.nan, "c": math.inf, "d": 3, "flag": True}
    assert find_non_finite(values) == ["b", "c"]
