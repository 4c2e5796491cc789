"""
Live service layer: odds provider access and the paper-betting cycle.
"""

from src.service.odds_provider import (
    BestOdds,
    OddsFetchResult,
    OddsProvider,
    OddsProviderError,
    ProviderMode,
    best_odds,
    completed_scores,
)
from src.service.rate_limiter import RateLimiter

__all__ = [
    "BestOdds",
    "OddsFetchResult",
    "OddsProvider",
    "OddsProviderError",
    "ProviderMode",
    "RateLimiter",
    "best_odds",
    "completed_scores",
    "BettingService",
    "PlacementSummary",
]


def __getattr__(name):
    # The betting service pulls in the model and ledger stacks
    if name in ("BettingService", "PlacementSummary"):
        from src.service import betting_service

        return getattr(betting_service, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
