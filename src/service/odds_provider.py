"""
Odds provider for upcoming contests and recent results.

Wraps The Odds API (https://the-odds-api.com/) with:
- a bounded request timeout
- a TTL cache per endpoint (odds ~5 minutes, scores ~1 hour)
- cooperative rate limiting that waits for a token instead of failing
- an explicit fallback mode, reported on every result

Every fetch returns an ``OddsFetchResult`` whose ``mode`` says where the data
came from, so callers can tell live prices from cached or synthetic ones.
Synthetic games are only produced when ``fallback_mode="mock"``.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import requests

from src.models.model_config import DEFAULT_DECIMAL_ODDS, DEFAULT_DRAW_ODDS
from src.service.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

FALLBACK_MODES = ("off", "mock")

MOCK_TEAMS: Dict[str, List[str]] = {
    "basketball_nba": [
        "Lakers", "Warriors", "Celtics", "Heat", "Bucks",
        "Suns", "Nets", "Clippers", "Bulls", "Knicks",
    ],
    "soccer_epl": [
        "Arsenal", "Liverpool", "Man City", "Man United", "Chelsea",
        "Tottenham", "Newcastle", "Villa", "Brighton", "West Ham",
    ],
    "soccer_esp_la_liga": [
        "Real Madrid", "Barcelona", "Atletico Madrid", "Sevilla", "Betis",
        "Valencia", "Villarreal", "Real Sociedad", "Athletic", "Osasuna",
    ],
}


class ProviderMode(str, Enum):
    """Where a fetch result came from."""

    LIVE = "live"
    CACHED = "cached"
    FALLBACK = "fallback"


class OddsProviderError(RuntimeError):
    """Provider unavailable with no cached data and fallback disabled."""


@dataclass(frozen=True)
class OddsFetchResult:
    mode: ProviderMode
    events: List[Dict[str, Any]] = field(default_factory=list)
    fetched_at: Optional[datetime] = None
    stale: bool = False

    @property
    def is_live(self) -> bool:
        return self.mode == ProviderMode.LIVE


@dataclass(frozen=True)
class BestOdds:
    """Best decimal price per outcome across all bookmakers."""

    home: float = DEFAULT_DECIMAL_ODDS
    away: float = DEFAULT_DECIMAL_ODDS
    draw: float = DEFAULT_DRAW_ODDS


def best_odds(event: Dict[str, Any]) -> BestOdds:
    """
    Scan bookmaker -> h2h market -> outcome quotes for the best prices.

    Missing sides default to 1.90 (home/away) and 3.00 (draw).

    Examples:
        >>> best_odds({"home_team": "A", "away_team": "B", "bookmakers": []})
        BestOdds(home=1.9, away=1.9, draw=3.0)
    """
    home_team = event.get("home_team")
    away_team = event.get("away_team")
    best_home = best_away = best_draw = 0.0

    for bookmaker in event.get("bookmakers") or []:
        for market in bookmaker.get("markets") or []:
            if market.get("key") != "h2h":
                continue
            for outcome in market.get("outcomes") or []:
                try:
                    price = float(outcome.get("price") or 0.0)
                except (TypeError, ValueError):
                    continue
                name = outcome.get("name")
                if name == home_team:
                    best_home = max(best_home, price)
                elif name == away_team:
                    best_away = max(best_away, price)
                elif name == "Draw":
                    best_draw = max(best_draw, price)

    return BestOdds(
        home=best_home or DEFAULT_DECIMAL_ODDS,
        away=best_away or DEFAULT_DECIMAL_ODDS,
        draw=best_draw or DEFAULT_DRAW_ODDS,
    )


def completed_scores(events: List[Dict[str, Any]]) -> Dict[str, Tuple[float, float]]:
    """
    Final scores from a scores payload.

    Returns:
        event id -> (home_score, away_score) for completed events only
    """
    finals: Dict[str, Tuple[float, float]] = {}
    for event in events:
        if not event.get("completed"):
            continue
        by_team = {}
        for entry in event.get("scores") or []:
            try:
                by_team[entry.get("name")] = float(entry.get("score"))
            except (TypeError, ValueError):
                continue
        home = by_team.get(event.get("home_team"))
        away = by_team.get(event.get("away_team"))
        if home is None or away is None:
            logger.warning("Completed event %s has no usable scores", event.get("id"))
            continue
        finals[event["id"]] = (home, away)
    return finals


def mock_events(
    sport_key: str,
    now: Optional[datetime] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[Dict[str, Any]]:
    """3 to 5 synthetic upcoming games in the provider's payload shape."""
    rng = rng or np.random.default_rng()
    now = now or datetime.now(timezone.utc)
    teams = MOCK_TEAMS.get(sport_key, MOCK_TEAMS["basketball_nba"])
    stamp = int(now.timestamp() * 1000)

    events = []
    for i in range(int(rng.integers(3, 6))):
        home_idx, away_idx = rng.choice(len(teams), size=2, replace=False)
        home_team, away_team = teams[home_idx], teams[away_idx]
        commence = now + timedelta(hours=float(rng.uniform(1, 48)))
        events.append(
            {
                "id": f"{sport_key}_{stamp}_{i}",
                "sport_key": sport_key,
                "home_team": home_team,
                "away_team": away_team,
                "commence_time": commence.isoformat(),
                "bookmakers": [
                    {
                        "key": "mock",
                        "title": "Mock Book",
                        "markets": [
                            {
                                "key": "h2h",
                                "outcomes": [
                                    {"name": home_team, "price": round(1.90 + rng.uniform(0, 0.2), 2)},
                                    {"name": away_team, "price": round(1.90 + rng.uniform(0, 0.2), 2)},
                                ],
                            }
                        ],
                    }
                ],
            }
        )
    return events


class OddsProvider:
    """
    Client for The Odds API.

    Usage:
        provider = OddsProvider.from_settings()
        result = provider.fetch("basketball_nba")
        for event in result.events:
            prices = best_odds(event)
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.the-odds-api.com/v4",
        timeout: float = 10.0,
        odds_ttl_seconds: float = 300.0,
        scores_ttl_seconds: float = 3600.0,
        rate_limiter: Optional[RateLimiter] = None,
        fallback_mode: str = "off",
        clock: Callable[[], float] = time.monotonic,
    ):
        if fallback_mode not in FALLBACK_MODES:
            raise ValueError(f"fallback_mode must be one of {FALLBACK_MODES}, got '{fallback_mode}'")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.odds_ttl_seconds = odds_ttl_seconds
        self.scores_ttl_seconds = scores_ttl_seconds
        self.rate_limiter = rate_limiter or RateLimiter()
        self.fallback_mode = fallback_mode
        self._clock = clock
        # cache key -> (stored_at monotonic, fetched_at wall clock, events)
        self._cache: Dict[str, Tuple[float, datetime, List[Dict[str, Any]]]] = {}

    @classmethod
    def from_settings(cls, settings=None) -> "OddsProvider":
        if settings is None:
            from src.core.config import settings

        return cls(
            api_key=settings.ODDS_API_KEY,
            base_url=settings.ODDS_API_BASE_URL,
            timeout=settings.ODDS_API_TIMEOUT_SECONDS,
            odds_ttl_seconds=settings.ODDS_CACHE_TTL_SECONDS,
            scores_ttl_seconds=settings.RESULTS_CACHE_TTL_SECONDS,
            rate_limiter=RateLimiter(
                settings.ODDS_RATE_LIMIT_REQUESTS,
                settings.ODDS_RATE_LIMIT_WINDOW_SECONDS,
            ),
            fallback_mode=settings.ODDS_FALLBACK_MODE,
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    def fetch(self, sport_key: str) -> OddsFetchResult:
        """Upcoming contests with decimal h2h prices for ``sport_key``."""
        return self._fetch(
            f"odds:{sport_key}",
            f"/sports/{sport_key}/odds",
            {"regions": "us,uk", "markets": "h2h", "oddsFormat": "decimal", "dateFormat": "iso"},
            self.odds_ttl_seconds,
            fallback=lambda: mock_events(sport_key),
        )

    def fetch_scores(self, sport_key: str, days_from: int = 3) -> OddsFetchResult:
        """Recent and live scores for ``sport_key`` (``days_from`` 1 to 3)."""
        if not 1 <= days_from <= 3:
            raise ValueError("days_from must be between 1 and 3")
        # No synthetic results: fallback scores never settle anything
        return self._fetch(
            f"scores:{sport_key}:{days_from}",
            f"/sports/{sport_key}/scores",
            {"daysFrom": days_from, "dateFormat": "iso"},
            self.scores_ttl_seconds,
            fallback=list,
        )

    def _fetch(
        self,
        cache_key: str,
        path: str,
        params: Dict[str, Any],
        ttl_seconds: float,
        fallback: Callable[[], List[Dict[str, Any]]],
    ) -> OddsFetchResult:
        cached = self._cache.get(cache_key)
        if cached is not None and self._clock() - cached[0] < ttl_seconds:
            return OddsFetchResult(ProviderMode.CACHED, cached[2], cached[1])

        if not self.api_key:
            return self._degrade(cache_key, cached, fallback, "ODDS_API_KEY is not set")

        self.rate_limiter.acquire()
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params={"apiKey": self.api_key, **params},
                timeout=self.timeout,
            )
            response.raise_for_status()
            events = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            return self._degrade(cache_key, cached, fallback, str(e))

        if not isinstance(events, list):
            return self._degrade(cache_key, cached, fallback, "unexpected payload shape")

        fetched_at = datetime.now(timezone.utc)
        self._cache[cache_key] = (self._clock(), fetched_at, events)
        logger.info(
            "Odds API %s: %d events. Quota remaining: %s",
            path, len(events), response.headers.get("x-requests-remaining"),
        )
        return OddsFetchResult(ProviderMode.LIVE, events, fetched_at)

    def _degrade(self, cache_key, cached, fallback, reason: str) -> OddsFetchResult:
        if cached is not None:
            logger.warning("Odds API unavailable for %s (%s), serving stale cache", cache_key, reason)
            return OddsFetchResult(ProviderMode.CACHED, cached[2], cached[1], stale=True)
        if self.fallback_mode == "mock":
            logger.warning("Odds API unavailable for %s (%s), using mock data", cache_key, reason)
            return OddsFetchResult(ProviderMode.FALLBACK, fallback(), datetime.now(timezone.utc))
        logger.error("Odds API unavailable for %s: %s", cache_key, reason)
        raise OddsProviderError(f"Odds provider unavailable for {cache_key}: {reason}")
