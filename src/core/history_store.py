"""
Read access to the log of completed contests.

Two interchangeable implementations of ``HistoricalDataStore``:
- ``SqlHistoryStore``: parameterised queries against ``historical_games``
- ``InMemoryHistoryStore``: a pandas DataFrame, used by tests and offline replays

CRITICAL: ``cutoff`` is exclusive. A query with ``cutoff=t`` never returns a
contest that started at or after ``t``.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Protocol

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from src.core.types import Contest, ContestStatus, Role

logger = logging.getLogger(__name__)

CONTEST_COLUMNS = [
    "id",
    "sport",
    "home_team",
    "away_team",
    "start_time",
    "home_score",
    "away_score",
    "home_odds",
    "away_odds",
    "status",
]


class HistoricalDataStore(Protocol):
    """Queryable log of completed contests."""

    def query(
        self,
        sport: str,
        team: str,
        role: Role = Role.EITHER,
        cutoff: Optional[datetime] = None,
        limit: Optional[int] = None,
        order_desc: bool = True,
    ) -> List[Contest]:
        """Completed contests for ``team`` ordered by start time."""
        ...

    def completed_contests(
        self,
        sport: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Contest]:
        """Most recent completed contests for a sport (newest first)."""
        ...


class InMemoryHistoryStore:
    """DataFrame-backed history store."""

    def __init__(self, contests: Optional[Iterable[Contest]] = None):
        self._df = pd.DataFrame(columns=CONTEST_COLUMNS)
        if contests:
            self.add_many(contests)

    def __len__(self) -> int:
        return len(self._df)

    def add(self, contest: Contest) -> None:
        self.add_many([contest])

    def add_many(self, contests: Iterable[Contest]) -> None:
        rows = [
            {
                "id": c.contest_id,
                "sport": c.sport,
                "home_team": c.home_team,
                "away_team": c.away_team,
                "start_time": c.start_time,
                "home_score": c.home_score,
                "away_score": c.away_score,
                "home_odds": c.home_odds,
                "away_odds": c.away_odds,
                "status": c.status.value,
            }
            for c in contests
        ]
        if not rows:
            return
        new = pd.DataFrame(rows, columns=CONTEST_COLUMNS)
        self._df = new if self._df.empty else pd.concat([self._df, new], ignore_index=True)

    def _completed(self, sport: str) -> pd.DataFrame:
        df = self._df
        mask = (
            (df["sport"] == sport)
            & (df["status"] == ContestStatus.COMPLETED.value)
            & df["home_score"].notna()
            & df["away_score"].notna()
        )
        return df[mask]

    def query(
        self,
        sport: str,
        team: str,
        role: Role = Role.EITHER,
        cutoff: Optional[datetime] = None,
        limit: Optional[int] = None,
        order_desc: bool = True,
    ) -> List[Contest]:
        df = self._completed(sport)
        if role == Role.HOME:
            df = df[df["home_team"] == team]
        elif role == Role.AWAY:
            df = df[df["away_team"] == team]
        else:
            df = df[(df["home_team"] == team) | (df["away_team"] == team)]

        if cutoff is not None:
            df = df[df["start_time"] < cutoff]

        df = df.sort_values("start_time", ascending=not order_desc, kind="stable")
        if limit is not None:
            df = df.head(limit)
        return _to_contests(df)

    def completed_contests(
        self,
        sport: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Contest]:
        df = self._completed(sport)
        if start is not None:
            df = df[df["start_time"] >= start]
        if end is not None:
            df = df[df["start_time"] <= end]
        df = df.sort_values("start_time", ascending=False, kind="stable")
        if limit is not None:
            df = df.head(limit)
        return _to_contests(df)


TEAM_HISTORY_QUERY = """
    SELECT id, sport, home_team, away_team, start_time,
           home_score, away_score, home_odds, away_odds, status
    FROM historical_games
    WHERE sport = :sport
      AND home_score IS NOT NULL
      AND away_score IS NOT NULL
      AND {role_clause}
      {cutoff_clause}
    ORDER BY start_time {direction}
    {limit_clause}
"""

ROLE_CLAUSES = {
    Role.HOME: "home_team = :team",
    Role.AWAY: "away_team = :team",
    Role.EITHER: "(home_team = :team OR away_team = :team)",
}


class SqlHistoryStore:
    """
    History store over the ``historical_games`` table.

    ``start_time`` is stored as ISO-8601 text, so chronological comparison is
    a string comparison against ``datetime.isoformat()``.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def query(
        self,
        sport: str,
        team: str,
        role: Role = Role.EITHER,
        cutoff: Optional[datetime] = None,
        limit: Optional[int] = None,
        order_desc: bool = True,
    ) -> List[Contest]:
        params: dict = {"sport": sport, "team": team}
        cutoff_clause = ""
        if cutoff is not None:
            cutoff_clause = "AND start_time < :cutoff"
            params["cutoff"] = cutoff.isoformat()
        limit_clause = ""
        if limit is not None:
            limit_clause = "LIMIT :limit"
            params["limit"] = int(limit)

        sql = text(
            TEAM_HISTORY_QUERY.format(
                role_clause=ROLE_CLAUSES[role],
                cutoff_clause=cutoff_clause,
                direction="DESC" if order_desc else "ASC",
                limit_clause=limit_clause,
            )
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql, params).mappings().all()
        return [Contest.from_row(dict(r)) for r in rows]

    def completed_contests(
        self,
        sport: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Contest]:
        query = """
            SELECT id, sport, home_team, away_team, start_time,
                   home_score, away_score, home_odds, away_odds, status
            FROM historical_games
            WHERE sport = :sport AND home_score IS NOT NULL AND away_score IS NOT NULL
        """
        params: dict = {"sport": sport}
        if start is not None:
            query += " AND start_time >= :start"
            params["start"] = start.isoformat()
        if end is not None:
            query += " AND start_time <= :end"
            params["end"] = end.isoformat()
        query += " ORDER BY start_time DESC"
        if limit is not None:
            query += " LIMIT :limit"
            params["limit"] = int(limit)

        with self.engine.connect() as conn:
            rows = conn.execute(text(query), params).mappings().all()
        return [Contest.from_row(dict(r)) for r in rows]

    def insert(self, contests: Iterable[Contest]) -> int:
        """Insert completed contests (used by seeding and tests)."""
        rows = [
            {
                "id": c.contest_id,
                "sport": c.sport,
                "home_team": c.home_team,
                "away_team": c.away_team,
                "start_time": c.start_time.isoformat(),
                "home_score": c.home_score,
                "away_score": c.away_score,
                "home_odds": c.home_odds,
                "away_odds": c.away_odds,
                "status": c.status.value,
            }
            for c in contests
        ]
        if not rows:
            return 0
        insert_sql = text("""
            INSERT INTO historical_games
                (id, sport, home_team, away_team, start_time,
                 home_score, away_score, home_odds, away_odds, status)
            VALUES
                (:id, :sport, :home_team, :away_team, :start_time,
                 :home_score, :away_score, :home_odds, :away_odds, :status)
        """)
        with self.engine.begin() as conn:
            conn.execute(insert_sql, rows)
        logger.info("Inserted %d historical contests", len(rows))
        return len(rows)


def _to_contests(df: pd.DataFrame) -> List[Contest]:
    return [Contest.from_row(record) for record in df.to_dict("records")]
