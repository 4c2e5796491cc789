"""
Matchup feature extraction from historical results.

Turns (home_team, away_team, sport, as_of) into a fixed ``FeatureVector``.

CRITICAL: Only contests with ``start_time < as_of`` are read. Contests at or
after the evaluation point never influence the vector (no look-ahead bias).

``extract`` never raises. Any data access error, or a team with no history,
degrades to neutral defaults with ``valid=False``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from src.core.history_store import HistoricalDataStore
from src.core.types import Contest, Role
from src.features.feature_config import (
    DEFAULT_REST_DAYS,
    DEFAULT_WIN_PCT,
    RECENT_FORM_GAMES,
    REST_ADVANTAGE_CAP,
    REST_ADVANTAGE_SCALE,
    FeatureVector,
    baseline_scores,
)
from src.features.validators import (
    find_non_finite,
    validate_chronological_order,
    validate_no_future_data,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def win_pct(wins: int, games: int) -> float:
    """
    Win percentage with a neutral prior when no games were played.

    Examples:
        >>> win_pct(3, 4)
        0.75
        >>> win_pct(0, 0)
        0.5
    """
    if games <= 0:
        return DEFAULT_WIN_PCT
    return wins / games


def compute_streak(outcomes: Sequence[bool]) -> int:
    """
    Signed streak over outcomes ordered most recent first.

    The counter grows while the outcome type repeats and restarts at +1/-1
    each time it changes (the sign flips, the magnitude resets).

    Examples:
        >>> compute_streak([True, True, True])
        3
        >>> compute_streak([False, False])
        -2
        >>> compute_streak([])
        0
    """
    streak = 0
    current: Optional[bool] = None
    for won in outcomes:
        if won:
            streak = streak + 1 if current is True else 1
        else:
            streak = streak - 1 if current is False else -1
        current = won
    return streak


def rest_advantage(home_rest_days: float, away_rest_days: float) -> float:
    """
    Bounded home rest advantage: min(home - away, 2) / 4.

    Examples:
        >>> rest_advantage(5, 1)
        0.5
        >>> rest_advantage(1, 3)
        -0.5
    """
    return min(home_rest_days - away_rest_days, REST_ADVANTAGE_CAP) / REST_ADVANTAGE_SCALE


@dataclass
class TeamStats:
    """Aggregated history for one team as of a cutoff."""

    games: int = 0
    wins: int = 0
    home_games: int = 0
    home_wins: int = 0
    away_games: int = 0
    away_wins: int = 0
    points_for: float = 0.0
    points_against: float = 0.0

    @property
    def win_pct(self) -> float:
        return win_pct(self.wins, self.games)

    @property
    def home_win_pct(self) -> float:
        return win_pct(self.home_wins, self.home_games)

    @property
    def away_win_pct(self) -> float:
        return win_pct(self.away_wins, self.away_games)

    def avg_score(self, default: float) -> float:
        return self.points_for / self.games if self.games else default

    def avg_conceded(self, default: float) -> float:
        return self.points_against / self.games if self.games else default


class FeatureExtractor:
    """
    Computes matchup features from a ``HistoricalDataStore``.

    Results are memoized per (sport, home, away) for ``cache_ttl_seconds``.
    The cache expires by time only; call ``clear_cache`` after loading new
    results if fresher features are needed.
    """

    def __init__(
        self,
        store: HistoricalDataStore,
        recent_games: int = RECENT_FORM_GAMES,
        cache_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize feature extractor.

        Args:
            store: Source of completed contests
            recent_games: Window (in games) for recent form and streak
            cache_ttl_seconds: Memoization lifetime; 0 disables caching
            clock: Monotonic time source (injectable for tests)
        """
        if recent_games < 1:
            raise ValueError("recent_games must be at least 1")
        if cache_ttl_seconds < 0:
            raise ValueError("cache_ttl_seconds must be non-negative")

        self.store = store
        self.recent_games = recent_games
        self.cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[Tuple[str, str, str], Tuple[float, FeatureVector]] = {}

    def extract(
        self,
        home_team: str,
        away_team: str,
        sport: str,
        as_of: datetime,
    ) -> FeatureVector:
        """
        Build the feature vector for a matchup evaluated at ``as_of``.

        Args:
            home_team: Home participant identifier
            away_team: Away participant identifier
            sport: Sport key (e.g., "basketball_nba")
            as_of: Evaluation time; only contests strictly before it are used

        Returns:
            FeatureVector (``valid=False`` when defaults were substituted)
        """
        key = (sport, home_team, away_team)
        now = self._clock()
        if self.cache_ttl_seconds > 0:
            cached = self._cache.get(key)
            if cached is not None and (now - cached[0]) < self.cache_ttl_seconds:
                return cached[1]

        try:
            features = self._extract_unsafe(home_team, away_team, sport, as_of)
        except Exception as e:
            logger.warning(
                "Feature extraction failed for %s vs %s (%s), using defaults: %s",
                home_team, away_team, sport, e,
            )
            features = FeatureVector.default(sport)

        if self.cache_ttl_seconds > 0:
            self._cache[key] = (now, features)
        return features

    def clear_cache(self) -> None:
        """Drop all memoized vectors."""
        self._cache.clear()

    def _extract_unsafe(
        self,
        home_team: str,
        away_team: str,
        sport: str,
        as_of: datetime,
    ) -> FeatureVector:
        home_history = self.store.query(sport, home_team, Role.EITHER, cutoff=as_of)
        away_history = self.store.query(sport, away_team, Role.EITHER, cutoff=as_of)

        validate_no_future_data(home_history, as_of)
        validate_no_future_data(away_history, as_of)
        validate_chronological_order(home_history)
        validate_chronological_order(away_history)

        if not home_history or not away_history:
            # A side with no history gives no usable signal
            return FeatureVector.default(sport)

        home_base, away_base = baseline_scores(sport)
        home_stats = self._team_stats(home_team, home_history)
        away_stats = self._team_stats(away_team, away_history)

        home_recent = home_history[: self.recent_games]
        away_recent = away_history[: self.recent_games]
        home_outcomes = [c.team_won(home_team) for c in home_recent]
        away_outcomes = [c.team_won(away_team) for c in away_recent]

        h2h_home_wins, h2h_away_wins, h2h_total = self._head_to_head(
            home_team, away_team, home_history
        )

        home_rest = self._rest_days(home_history, as_of)
        away_rest = self._rest_days(away_history, as_of)

        features = FeatureVector(
            sport=sport,
            home_win_pct=home_stats.win_pct,
            away_win_pct=away_stats.win_pct,
            home_win_pct_home=home_stats.home_win_pct,
            away_win_pct_away=away_stats.away_win_pct,
            home_recent_win_pct=win_pct(sum(home_outcomes), len(home_outcomes)),
            away_recent_win_pct=win_pct(sum(away_outcomes), len(away_outcomes)),
            home_avg_score=home_stats.avg_score(home_base),
            away_avg_score=away_stats.avg_score(away_base),
            home_avg_conceded=home_stats.avg_conceded(away_base),
            away_avg_conceded=away_stats.avg_conceded(home_base),
            h2h_home_wins=h2h_home_wins,
            h2h_away_wins=h2h_away_wins,
            h2h_total=h2h_total,
            home_rest_days=home_rest,
            away_rest_days=away_rest,
            home_rest_advantage=rest_advantage(home_rest, away_rest),
            home_streak=compute_streak(home_outcomes),
            away_streak=compute_streak(away_outcomes),
            valid=True,
        )

        bad = find_non_finite(features.numeric_values())
        if bad:
            logger.warning("Non-finite features %s for %s vs %s, using defaults", bad, home_team, away_team)
            return FeatureVector.default(sport)
        return features

    @staticmethod
    def _team_stats(team: str, history: List[Contest]) -> TeamStats:
        stats = TeamStats()
        for contest in history:
            won = contest.team_won(team)
            stats.games += 1
            stats.wins += int(won)
            if contest.home_team == team:
                stats.home_games += 1
                stats.home_wins += int(won)
            else:
                stats.away_games += 1
                stats.away_wins += int(won)
            stats.points_for += float(contest.points_for(team))
            stats.points_against += float(contest.points_against(team))
        return stats

    @staticmethod
    def _head_to_head(
        home_team: str,
        away_team: str,
        home_history: List[Contest],
    ) -> Tuple[int, int, int]:
        """(home wins, away wins, meetings) over prior direct meetings."""
        meetings = [c for c in home_history if c.involves(away_team)]
        home_wins = sum(1 for c in meetings if c.team_won(home_team))
        away_wins = sum(1 for c in meetings if c.team_won(away_team))
        return home_wins, away_wins, len(meetings)

    @staticmethod
    def _rest_days(history: List[Contest], as_of: datetime) -> float:
        """Days between the team's most recent completed game and ``as_of``."""
        if not history:
            return DEFAULT_REST_DAYS
        elapsed = (as_of - history[0].start_time).total_seconds() / SECONDS_PER_DAY
        return max(0.0, elapsed)


def default_features(sport: str) -> FeatureVector:
    """Neutral vector for a sport (``valid=False``)."""
    return FeatureVector.default(sport)
