"""
Tests for the odds provider: caching, rate limiting and fallback modes.

HTTP is patched at ``requests.get``; no network access.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import requests

from src.service.odds_provider import (
    BestOdds,
    OddsProvider,
    OddsProviderError,
    ProviderMode,
    best_odds,
    completed_scores,
    mock_events,
)
from src.service.rate_limiter import RateLimiter

GET = "src.service.odds_provider.requests.get"


def api_event(event_id="e1", home="Lakers", away="Heat", prices=((1.85, 2.05),)):
    return {
        "id": event_id,
        "sport_key": "basketball_nba",
        "home_team": home,
        "away_team": away,
        "commence_time": "2024-03-01T00:30:00Z",
        "bookmakers": [
            {
                "key": f"book{i}",
                "markets": [
                    {
                        "key": "h2h",
                        "outcomes": [
                            {"name": home, "price": h},
                            {"name": away, "price": a},
                        ],
                    }
                ],
            }
            for i, (h, a) in enumerate(prices)
        ],
    }


def ok_response(payload, remaining="480"):
    response = MagicMock()
    response.json.return_value = payload
    response.headers = {"x-requests-remaining": remaining}
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def provider(fake_clock):
    return OddsProvider(
        api_key="test-key",
        base_url="https://odds.example/v4/",
        rate_limiter=RateLimiter(10, 60, clock=fake_clock),
        clock=fake_clock,
    )


class TestBestOdds:
    def test_best_price_across_books(self):
        event = api_event(prices=((1.85, 2.05), (1.92, 1.98), (1.80, 2.10)))
        assert best_odds(event) == BestOdds(home=1.92, away=2.10, draw=3.0)

    def test_draw_and_other_markets(self):
        event = api_event()
        event["bookmakers"][0]["markets"][0]["outcomes"].append({"name": "Draw", "price": 3.4})
        event["bookmakers"][0]["markets"].append(
            {"key": "spreads", "outcomes": [{"name": "Lakers", "price": 9.0}]}
        )
        odds = best_odds(event)
        assert odds.draw == 3.4
        assert odds.home == 1.85

    def test_defaults(self):
        assert best_odds({"home_team": "A", "away_team": "B"}) == BestOdds(1.90, 1.90, 3.00)

    def test_bad_prices_ignored(self):
        event = api_event(prices=(("n/a", None),))
        assert best_odds(event) == BestOdds()


class TestCompletedScores:
    def test_only_completed(self):
        events = [
            {"id": "e1", "completed": True, "home_team": "A", "away_team": "B",
             "scores": [{"name": "A", "score": "110"}, {"name": "B", "score": "101"}]},
            {"id": "e2", "completed": False, "home_team": "C", "away_team": "D",
             "scores": [{"name": "C", "score": "50"}, {"name": "D", "score": "48"}]},
            {"id": "e3", "completed": True, "home_team": "E", "away_team": "F", "scores": None},
        ]
        assert completed_scores(events) == {"e1": (110.0, 101.0)}

    def test_empty(self):
        assert completed_scores([]) == {}


def test_mock_events_shape():
    now = datetime(2024, 3, 1, tzinfo=timezone.utc)
    events = mock_events("soccer_epl", now=now, rng=np.random.default_rng(1))

    assert 3 <= len(events) <= 5
    for event in events:
        assert event["home_team"] != event["away_team"]
        assert datetime.fromisoformat(event["commence_time"]) > now
        odds = best_odds(event)
        assert 1.90 <= odds.home <= 2.10
        assert 1.90 <= odds.away <= 2.10


class TestFetch:
    def test_live(self, provider):
        with patch(GET, return_value=ok_response([api_event()])) as mock_get:
            result = provider.fetch("basketball_nba")

        assert result.mode == ProviderMode.LIVE
        assert result.is_live
        assert result.events[0]["id"] == "e1"
        assert not result.stale

        args, kwargs = mock_get.call_args
        assert args[0] == "https://odds.example/v4/sports/basketball_nba/odds"
        assert kwargs["params"]["apiKey"] == "test-key"
        assert kwargs["params"]["markets"] == "h2h"
        assert kwargs["params"]["oddsFormat"] == "decimal"
        assert kwargs["timeout"] == 10.0

    def test_cached_within_ttl(self, provider, fake_clock):
        with patch(GET, return_value=ok_response([api_event()])) as mock_get:
            provider.fetch("basketball_nba")
            fake_clock.advance(299)
            result = provider.fetch("basketball_nba")

        assert mock_get.call_count == 1
        assert result.mode == ProviderMode.CACHED
        assert not result.stale

    def test_refetch_after_ttl(self, provider, fake_clock):
        with patch(GET, return_value=ok_response([api_event()])) as mock_get:
            provider.fetch("basketball_nba")
            fake_clock.advance(301)
            result = provider.fetch("basketball_nba")

        assert mock_get.call_count == 2
        assert result.is_live

    def test_cache_per_sport(self, provider):
        with patch(GET, return_value=ok_response([])) as mock_get:
            provider.fetch("basketball_nba")
            provider.fetch("soccer_epl")
        assert mock_get.call_count == 2

    def test_stale_cache_on_failure(self, provider, fake_clock):
        with patch(GET, return_value=ok_response([api_event()])):
            first = provider.fetch("basketball_nba")

        fake_clock.advance(600)
        with patch(GET, side_effect=requests.exceptions.Timeout("timed out")):
            result = provider.fetch("basketball_nba")

        assert result.mode == ProviderMode.CACHED
        assert result.stale
        assert result.events == first.events

    def test_error_without_fallback(self, provider):
        with patch(GET, side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(OddsProviderError, match="refused"):
                provider.fetch("basketball_nba")

    def test_http_error(self, provider):
        response = ok_response([])
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("401 Unauthorized")
        with patch(GET, return_value=response):
            with pytest.raises(OddsProviderError, match="401"):
                provider.fetch("basketball_nba")

    def test_unexpected_payload(self, provider):
        with patch(GET, return_value=ok_response({"message": "quota exceeded"})):
            with pytest.raises(OddsProviderError, match="payload"):
                provider.fetch("basketball_nba")

    def test_mock_fallback(self, fake_clock):
        provider = OddsProvider(api_key="k", fallback_mode="mock", clock=fake_clock)
        with patch(GET, side_effect=requests.exceptions.ConnectionError("down")):
            result = provider.fetch("basketball_nba")

        assert result.mode == ProviderMode.FALLBACK
        assert 3 <= len(result.events) <= 5

    def test_missing_key_never_calls_api(self):
        provider = OddsProvider(api_key="", fallback_mode="mock")
        with patch(GET) as mock_get:
            result = provider.fetch("basketball_nba")
        mock_get.assert_not_called()
        assert result.mode == ProviderMode.FALLBACK

    def test_missing_key_without_fallback(self):
        with pytest.raises(OddsProviderError, match="ODDS_API_KEY"):
            OddsProvider(api_key="").fetch("basketball_nba")

    def test_rate_limited(self, fake_clock):
        limiter = MagicMock()
        provider = OddsProvider(api_key="k", rate_limiter=limiter, clock=fake_clock)
        with patch(GET, return_value=ok_response([])):
            provider.fetch("basketball_nba")
            provider.fetch("basketball_nba")  # cached, no token taken
        assert limiter.acquire.call_count == 1

    def test_clear_cache(self, provider):
        with patch(GET, return_value=ok_response([])) as mock_get:
            provider.fetch("basketball_nba")
            provider.clear_cache()
            provider.fetch("basketball_nba")
        assert mock_get.call_count == 2

    def test_invalid_fallback_mode(self):
        with pytest.raises(ValueError, match="fallback_mode"):
            OddsProvider(fallback_mode="random")


class TestFetchScores:
    def test_live(self, provider):
        payload = [{"id": "e1", "completed": True, "home_team": "A", "away_team": "B",
                    "scores": [{"name": "A", "score": "3"}, {"name": "B", "score": "1"}]}]
        with patch(GET, return_value=ok_response(payload)) as mock_get:
            result = provider.fetch_scores("soccer_epl", days_from=2)

        assert result.is_live
        assert completed_scores(result.events) == {"e1": (3.0, 1.0)}
        args, kwargs = mock_get.call_args
        assert args[0].endswith("/sports/soccer_epl/scores")
        assert kwargs["params"]["daysFrom"] == 2

    def test_scores_ttl(self, provider, fake_clock):
        with patch(GET, return_value=ok_response([])) as mock_get:
            provider.fetch_scores("basketball_nba")
            fake_clock.advance(3000)
            provider.fetch_scores("basketball_nba")
        assert mock_get.call_count == 1

    def test_fallback_has_no_results(self):
        """Synthetic results would settle real wagers, so fallback is empty."""
        result = OddsProvider(api_key="", fallback_mode="mock").fetch_scores("basketball_nba")
        assert result.mode == ProviderMode.FALLBACK
        assert result.events == []

    @pytest.mark.parametrize("days", [0, 4])
    def test_invalid_days(self, provider, days):
        with pytest.raises(ValueError):
            provider.fetch_scores("basketball_nba", days_from=days)


def test_from_settings():
    from types import SimpleNamespace

    settings = SimpleNamespace(
        ODDS_API_KEY="abc",
        ODDS_API_BASE_URL="https://odds.example/v4",
        ODDS_API_TIMEOUT_SECONDS=5.0,
        ODDS_CACHE_TTL_SECONDS=120,
        RESULTS_CACHE_TTL_SECONDS=900,
        ODDS_RATE_LIMIT_REQUESTS=5,
        ODDS_RATE_LIMIT_WINDOW_SECONDS=30,
        ODDS_FALLBACK_MODE="mock",
    )
    provider = OddsProvider.from_settings(settings)
    assert provider.api_key == "abc"
    assert provider.timeout == 5.0
    assert provider.odds_ttl_seconds == 120
    assert provider.rate_limiter.capacity == 5.0
    assert provider.fallback_mode == "mock"
