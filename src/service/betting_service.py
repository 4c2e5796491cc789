"""
Live paper-betting cycle.

One ``BettingService`` wires the odds provider, feature extractor,
probability model, stake sizer and ledger together:

- ``place_bets()``: fetch odds -> predict -> filter -> stake -> ledger.place
- ``settle_bets()``: fetch recent scores -> ledger.settle_pending
- ``get_stats()``: bankroll and counter snapshot

All collaborators are injected; ``from_settings()`` builds the configured
production set.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from src.core.types import Side
from src.features.feature_extractor import FeatureExtractor
from src.ledger.ledger import BettingLedger
from src.ledger.repository import LedgerPersistenceError
from src.ledger.types import SettlementSummary, Wager
from src.models.probability_model import ProbabilityModel
from src.service.odds_provider import (
    OddsProvider,
    OddsProviderError,
    ProviderMode,
    best_odds,
    completed_scores,
)
from src.strategy.kelly import StakeSizer

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_commence_time(value: Optional[str]) -> Optional[datetime]:
    """
    Provider ISO timestamp as a naive UTC datetime (history is stored naive UTC).

    Examples:
        >>> parse_commence_time("2024-03-01T19:30:00Z")
        datetime.datetime(2024, 3, 1, 19, 30)
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class PlacementSummary:
    """Result of one betting cycle."""

    placed: List[Wager] = field(default_factory=list)
    skipped: int = 0
    modes: Dict[str, ProviderMode] = field(default_factory=dict)  # sport -> data source
    unavailable: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)  # contest ids whose write failed

    @property
    def placed_count(self) -> int:
        return len(self.placed)

    @property
    def avg_odds(self) -> Optional[float]:
        if not self.placed:
            return None
        return sum(w.odds for w in self.placed) / len(self.placed)


class BettingService:
    """Runs the live betting cycle for one ledger."""

    def __init__(
        self,
        provider: OddsProvider,
        model: ProbabilityModel,
        extractor: FeatureExtractor,
        ledger: BettingLedger,
        sizer: StakeSizer,
        sports: Iterable[str] = ("basketball_nba",),
        min_confidence: float = 0.55,
        min_expected_value: float = 0.02,
    ):
        self.provider = provider
        self.model = model
        self.extractor = extractor
        self.ledger = ledger
        self.sizer = sizer
        self.sports = list(sports)
        self.min_confidence = min_confidence
        self.min_expected_value = min_expected_value

    @classmethod
    def from_settings(cls, settings=None, engine=None) -> "BettingService":
        """Production wiring over the configured database and odds provider."""
        if settings is None:
            from src.core.config import settings
        from src.core.database import get_engine
        from src.core.history_store import SqlHistoryStore
        from src.ledger.repository import SqlLedgerRepository
        from src.strategy.kelly import StakeConfig

        engine = engine or get_engine(settings.DATABASE_URL)
        return cls(
            provider=OddsProvider.from_settings(settings),
            model=ProbabilityModel.from_settings(settings),
            extractor=FeatureExtractor(
                SqlHistoryStore(engine),
                recent_games=settings.RECENT_FORM_GAMES,
                cache_ttl_seconds=settings.FEATURE_CACHE_TTL_SECONDS,
            ),
            ledger=BettingLedger(
                SqlLedgerRepository(engine), starting_bankroll=settings.STARTING_BANKROLL
            ),
            sizer=StakeSizer(StakeConfig.from_settings(settings)),
            sports=settings.sport_keys,
            min_confidence=settings.MIN_CONFIDENCE,
            min_expected_value=settings.MIN_EXPECTED_VALUE,
        )

    def place_bets(self) -> PlacementSummary:
        """Evaluate every upcoming contest and place the bets that pass the filters."""
        self.ledger.load()
        summary = PlacementSummary()
        logger.info("Starting betting cycle | bankroll %.2f", self.ledger.state.balance)

        for sport in self.sports:
            try:
                result = self.provider.fetch(sport)
            except OddsProviderError as e:
                logger.error("Skipping %s: %s", sport, e)
                summary.unavailable.append(sport)
                continue
            summary.modes[sport] = result.mode
            if result.mode == ProviderMode.FALLBACK:
                logger.warning("Betting %s on fallback data", sport)

            for event in result.events:
                try:
                    wager = self._evaluate(sport, event)
                except LedgerPersistenceError as e:
                    logger.error("Failed to record bet for %s: %s", event.get("id"), e)
                    summary.failed.append(str(event.get("id")))
                    continue
                if wager is None:
                    summary.skipped += 1
                else:
                    summary.placed.append(wager)

        logger.info(
            "Betting complete: %d placed, %d skipped, %d failed | bankroll %.2f",
            summary.placed_count, summary.skipped, len(summary.failed),
            self.ledger.state.balance,
        )
        return summary

    def _evaluate(self, sport: str, event: Dict[str, Any]) -> Optional[Wager]:
        contest_id = event.get("id")
        home_team = event.get("home_team")
        away_team = event.get("away_team")
        if not (contest_id and home_team and away_team):
            logger.warning("Skipping malformed event: %r", event)
            return None
        if self.ledger.repository.has_pending_wager(contest_id):
            return None

        as_of = parse_commence_time(event.get("commence_time")) or _utc_now()
        features = self.extractor.extract(home_team, away_team, sport, as_of)
        prices = best_odds(event)
        prediction = self.model.predict(
            features,
            home_odds=prices.home,
            away_odds=prices.away,
            home_team=home_team,
            away_team=away_team,
            contest_id=contest_id,
        )

        if prediction.confidence < self.min_confidence:
            return None
        if prediction.expected_value < self.min_expected_value:
            return None

        odds = prices.home if prediction.predicted_side == Side.HOME else prices.away
        decision = self.sizer.size(prediction.predicted_prob, odds, self.ledger.state.balance)
        if decision.skip:
            logger.debug("No stake for %s: %s", contest_id, decision.reason)
            return None

        wager = self.ledger.place(prediction, decision.stake, odds)
        logger.info(
            "%s vs %s -> %s @ %.2f | %.1f%% | EV %.1f%% | stake %.2f",
            home_team, away_team, prediction.predicted_winner, odds,
            prediction.confidence * 100, prediction.expected_value * 100, decision.stake,
        )
        return wager

    def settle_bets(self, days_from: int = 3) -> SettlementSummary:
        """Settle pending wagers whose contests have final scores."""
        self.ledger.load()
        scores: Dict[str, tuple] = {}
        for sport in self.sports:
            try:
                result = self.provider.fetch_scores(sport, days_from=days_from)
            except OddsProviderError as e:
                logger.error("No scores for %s: %s", sport, e)
                continue
            scores.update(completed_scores(result.events))

        return self.ledger.settle_pending(scores)

    def get_stats(self) -> Dict[str, Any]:
        """Bankroll and cumulative counters from the persisted snapshot."""
        self.ledger.load()
        return self.ledger.get_stats()
