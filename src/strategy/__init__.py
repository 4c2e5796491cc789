"""Strategy module for stake sizing and bankroll state."""

from .kelly import (
    DEFAULT_VIG,
    KellyFraction,
    StakeConfig,
    StakeDecision,
    StakeSizer,
    calculate_kelly,
    fair_odds,
)
from .bankroll import BankrollState

__all__ = [
    "DEFAULT_VIG",
    "KellyFraction",
    "StakeConfig",
    "StakeDecision",
    "StakeSizer",
    "BankrollState",
    "calculate_kelly",
    "fair_odds",
]
