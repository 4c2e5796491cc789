"""
Feature configuration and the FeatureVector record.

Defines feature names, neutral defaults and per-sport scoring baselines.
"""
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Tuple


# Feature version for tracking changes over time
FEATURE_VERSION = "v2.0"

# Games considered for recent form and streak
RECENT_FORM_GAMES = 10

# Neutral priors used whenever history is missing or unusable
DEFAULT_WIN_PCT = 0.5
DEFAULT_REST_DAYS = 2.0
REST_ADVANTAGE_CAP = 2.0
REST_ADVANTAGE_SCALE = 4.0

# (home baseline score, away baseline score) per sport family
SPORT_BASELINE_SCORES: Dict[str, Tuple[float, float]] = {
    "nba": (110.0, 108.0),
    "basketball": (110.0, 108.0),
    "soccer": (1.5, 1.3),
}
FALLBACK_BASELINE_SCORES = (1.5, 1.3)


def baseline_scores(sport: str) -> Tuple[float, float]:
    """
    Return the (home, away) baseline score pair for a sport key.

    Examples:
        >>> baseline_scores("basketball_nba")
        (110.0, 108.0)
        >>> baseline_scores("soccer_epl")
        (1.5, 1.3)
    """
    key = sport.lower()
    for family, pair in SPORT_BASELINE_SCORES.items():
        if family in key:
            return pair
    return FALLBACK_BASELINE_SCORES


@dataclass(frozen=True)
class FeatureVector:
    """Fixed numeric description of a matchup as of an evaluation time."""

    sport: str

    # Win percentages
    home_win_pct: float = DEFAULT_WIN_PCT
    away_win_pct: float = DEFAULT_WIN_PCT
    home_win_pct_home: float = DEFAULT_WIN_PCT  # home team, playing at home
    away_win_pct_away: float = DEFAULT_WIN_PCT  # away team, playing away
    home_recent_win_pct: float = DEFAULT_WIN_PCT
    away_recent_win_pct: float = DEFAULT_WIN_PCT

    # Scoring
    home_avg_score: float = 0.0
    away_avg_score: float = 0.0
    home_avg_conceded: float = 0.0
    away_avg_conceded: float = 0.0

    # Head-to-head
    h2h_home_wins: int = 0
    h2h_away_wins: int = 0
    h2h_total: int = 0

    # Rest
    home_rest_days: float = DEFAULT_REST_DAYS
    away_rest_days: float = DEFAULT_REST_DAYS
    home_rest_advantage: float = 0.0

    # Signed streaks (positive = wins, negative = losses)
    home_streak: int = 0
    away_streak: int = 0

    valid: bool = True

    @classmethod
    def default(cls, sport: str) -> "FeatureVector":
        """Neutral vector used when no usable history exists."""
        home_base, away_base = baseline_scores(sport)
        return cls(
            sport=sport,
            home_avg_score=home_base,
            away_avg_score=away_base,
            home_avg_conceded=away_base,
            away_avg_conceded=home_base,
            valid=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def numeric_values(self) -> Dict[str, float]:
        """All numeric fields (excludes sport and the validity flag)."""
        return {name: float(getattr(self, name)) for name in get_all_feature_names()}


FEATURE_DESCRIPTIONS = {
    "home_win_pct": "Home team overall win percentage",
    "away_win_pct": "Away team overall win percentage",
    "home_win_pct_home": "Home team win percentage in home games",
    "away_win_pct_away": "Away team win percentage in away games",
    "home_recent_win_pct": f"Home team win percentage over last {RECENT_FORM_GAMES} games",
    "away_recent_win_pct": f"Away team win percentage over last {RECENT_FORM_GAMES} games",
    "home_avg_score": "Home team average points scored",
    "away_avg_score": "Away team average points scored",
    "home_avg_conceded": "Home team average points conceded",
    "away_avg_conceded": "Away team average points conceded",
    "h2h_home_wins": "Home team wins in prior direct meetings",
    "h2h_away_wins": "Away team wins in prior direct meetings",
    "h2h_total": "Number of prior direct meetings",
    "home_rest_days": "Days since home team's last completed game",
    "away_rest_days": "Days since away team's last completed game",
    "home_rest_advantage": "min(home rest - away rest, 2) / 4",
    "home_streak": "Home team signed streak over recent games",
    "away_streak": "Away team signed streak over recent games",
}


def get_all_feature_names() -> List[str]:
    """Ordered list of numeric feature names."""
    return [f.name for f in fields(FeatureVector) if f.name not in ("sport", "valid")]


def get_feature_descriptions() -> Dict[str, str]:
    """Human-readable descriptions keyed by feature name."""
    return dict(FEATURE_DESCRIPTIONS)
