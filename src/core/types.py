"""
Core domain records shared across features, models, ledger and backtesting.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ContestStatus(str, Enum):
    """Contest lifecycle."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class Role(str, Enum):
    """Which side of a contest a team must have played when querying history."""
    HOME = "home"
    AWAY = "away"
    EITHER = "either"


class Side(str, Enum):
    """The participant a prediction or wager backs."""
    HOME = "home"
    AWAY = "away"


@dataclass(frozen=True)
class Contest:
    """A single head-to-head contest between a home and an away participant."""

    contest_id: str
    sport: str
    home_team: str
    away_team: str
    start_time: datetime
    home_score: Optional[float] = None
    away_score: Optional[float] = None
    status: ContestStatus = ContestStatus.SCHEDULED

    # Recorded market prices (decimal), when the source carried them
    home_odds: Optional[float] = None
    away_odds: Optional[float] = None

    @property
    def is_completed(self) -> bool:
        return (
            self.status == ContestStatus.COMPLETED
            and self.home_score is not None
            and self.away_score is not None
        )

    def involves(self, team: str) -> bool:
        return team in (self.home_team, self.away_team)

    def team_won(self, team: str) -> bool:
        """True if ``team`` won this (completed) contest. Draws are not wins."""
        if not self.is_completed:
            return False
        if team == self.home_team:
            return self.home_score > self.away_score
        if team == self.away_team:
            return self.away_score > self.home_score
        return False

    def points_for(self, team: str) -> float:
        return self.home_score if team == self.home_team else self.away_score

    def points_against(self, team: str) -> float:
        return self.away_score if team == self.home_team else self.home_score

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Contest":
        """Build a contest from a DB row / DataFrame record."""
        start = row["start_time"]
        if isinstance(start, str):
            start = datetime.fromisoformat(start)
        home_score = _optional_float(row.get("home_score"))
        away_score = _optional_float(row.get("away_score"))
        status = row.get("status")
        if status is None:
            status = (
                ContestStatus.COMPLETED
                if home_score is not None and away_score is not None
                else ContestStatus.SCHEDULED
            )
        return cls(
            contest_id=str(row.get("id", row.get("contest_id"))),
            sport=str(row["sport"]),
            home_team=str(row["home_team"]),
            away_team=str(row["away_team"]),
            start_time=start,
            home_score=home_score,
            away_score=away_score,
            status=ContestStatus(status),
            home_odds=_optional_float(row.get("home_odds")),
            away_odds=_optional_float(row.get("away_odds")),
        )


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # pandas hands back NaN for missing cells
    if result != result:
        return None
    return result
