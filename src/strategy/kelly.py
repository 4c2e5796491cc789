"""
Kelly Criterion stake sizing.

Implements optimal bet sizing using Kelly Criterion formula:
f* = (bp - q) / b

where:
- f* = fraction of bankroll to bet
- b = decimal odds - 1 (net odds received)
- p = probability of winning (model's predicted probability)
- q = probability of losing (1 - p)

The staked amount is the fractional Kelly share of the bankroll, capped at
``max_stake_pct`` of the bankroll and skipped below ``min_stake``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Discount applied to fair odds when no market price was recorded
DEFAULT_VIG = 0.05


class KellyFraction(Enum):
    """Kelly Criterion fraction variants."""

    FULL = 1.0  # Full Kelly (highest variance)
    HALF = 0.5  # Half Kelly
    QUARTER = 0.25  # Quarter Kelly (default)


def fair_odds(probability: float, vig: float = DEFAULT_VIG) -> float:
    """
    Decimal odds implied by a probability, discounted by a bookmaker margin.

    Examples:
        >>> fair_odds(0.5)
        1.9
        >>> fair_odds(0.5, vig=0.0)
        2.0
    """
    if not 0.0 < probability <= 1.0:
        raise ValueError(f"probability must be in (0, 1], got {probability}")
    if not 0.0 <= vig < 1.0:
        raise ValueError(f"vig must be in [0, 1), got {vig}")
    return (1.0 / probability) * (1.0 - vig)


def calculate_kelly(model_prob: float, decimal_odds: float) -> float:
    """
    Full Kelly fraction of bankroll.

    Returns 0.0 when no edge is possible (b <= 0) or inputs are not finite.
    The result can be negative when the bet has negative expectation.

    Examples:
        >>> round(calculate_kelly(0.60, 1.90), 4)
        0.1556
        >>> calculate_kelly(0.60, 1.0)
        0.0
    """
    if not (math.isfinite(model_prob) and math.isfinite(decimal_odds)):
        return 0.0
    b = decimal_odds - 1  # Net odds received on winning bet
    if b <= 0:
        return 0.0
    p = model_prob
    q = 1 - p
    return (b * p - q) / b


@dataclass(frozen=True)
class StakeConfig:
    """
    Stake sizing parameters.

    Args:
        kelly_fraction: Fraction of Kelly to use (0.0-1.0)
        max_stake_pct: Maximum stake as fraction of bankroll
        min_stake: Smallest stake worth placing (currency units)
    """

    kelly_fraction: float = KellyFraction.QUARTER.value
    max_stake_pct: float = 0.05
    min_stake: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.kelly_fraction <= 1.0:
            raise ValueError("kelly_fraction must be between 0.0 and 1.0")
        if not 0.0 < self.max_stake_pct <= 1.0:
            raise ValueError("max_stake_pct must be between 0.0 and 1.0")
        if self.min_stake < 0:
            raise ValueError("min_stake must be non-negative")

    @classmethod
    def from_settings(cls, settings=None) -> "StakeConfig":
        if settings is None:
            from src.core.config import settings
        return cls(
            kelly_fraction=settings.KELLY_FRACTION,
            max_stake_pct=settings.MAX_STAKE_PCT,
            min_stake=settings.MIN_STAKE,
        )


@dataclass(frozen=True)
class StakeDecision:
    """Result of sizing one bet. ``stake`` is 0.0 whenever the bet is skipped."""

    stake: float
    kelly: float = 0.0
    fraction: float = 0.0
    capped: bool = False
    reason: Optional[str] = None

    @property
    def skip(self) -> bool:
        return self.stake <= 0.0


class StakeSizer:
    """
    Fractional Kelly stake calculator.

    Example:
        >>> sizer = StakeSizer(StakeConfig(kelly_fraction=0.25, max_stake_pct=0.05))
        >>> round(sizer.size(0.6, 1.90, 1000).stake, 2)
        38.89
    """

    def __init__(self, config: Optional[StakeConfig] = None):
        self.config = config or StakeConfig()

    def size(
        self,
        probability: float,
        odds: float,
        bankroll: float,
        config: Optional[StakeConfig] = None,
    ) -> StakeDecision:
        """
        Size a stake.

        Args:
            probability: Win probability of the selection
            odds: Decimal odds accepted for the selection
            bankroll: Available bankroll
            config: Override for this call (defaults to the sizer's config)

        Returns:
            StakeDecision; never negative, never above bankroll * max_stake_pct
        """
        cfg = config or self.config

        if not all(math.isfinite(v) for v in (probability, odds, bankroll)):
            return StakeDecision(stake=0.0, reason="non-finite input")
        if bankroll <= 0:
            return StakeDecision(stake=0.0, reason="no bankroll")
        if odds - 1 <= 0:
            return StakeDecision(stake=0.0, reason="no edge possible at these odds")

        kelly = calculate_kelly(probability, odds)
        fraction = max(0.0, kelly * cfg.kelly_fraction)
        stake = bankroll * fraction
        cap = bankroll * cfg.max_stake_pct
        capped = stake > cap
        if capped:
            stake = cap

        if stake <= 0.0:
            return StakeDecision(stake=0.0, kelly=kelly, fraction=fraction, reason="no edge")
        if stake < cfg.min_stake:
            return StakeDecision(
                stake=0.0, kelly=kelly, fraction=fraction, reason="below minimum stake"
            )
        return StakeDecision(stake=stake, kelly=kelly, fraction=fraction, capped=capped)
