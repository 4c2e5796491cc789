"""
Database access for the shared predictions database.

Tables mirror the production schema:
- historical_games: completed contests used for features and backtests
- games: live/upcoming contests fetched from the odds provider
- predictions / paper_bets: model output and simulated wagers
- state: small key/value snapshot (bankroll and cumulative counters)

``init_schema`` exists for local development and tests. Production schema
changes are applied out of band.
"""
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from src.core.config import settings

metadata = MetaData()

historical_games = Table(
    "historical_games",
    metadata,
    Column("id", String, primary_key=True),
    Column("sport", String, nullable=False, index=True),
    Column("home_team", String, nullable=False, index=True),
    Column("away_team", String, nullable=False, index=True),
    Column("start_time", String, nullable=False, index=True),
    Column("home_score", Float),
    Column("away_score", Float),
    Column("home_odds", Float),
    Column("away_odds", Float),
    Column("status", String, nullable=False, server_default="completed"),
)

games = Table(
    "games",
    metadata,
    Column("id", String, primary_key=True),
    Column("sport", String, nullable=False),
    Column("home_team", String, nullable=False),
    Column("away_team", String, nullable=False),
    Column("start_time", String, nullable=False),
    Column("home_score", Float),
    Column("away_score", Float),
    Column("status", String, nullable=False, server_default="scheduled"),
    Column("created_at", String, server_default=func.current_timestamp()),
)

predictions = Table(
    "predictions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("game_id", String, nullable=False),
    Column("predicted_winner", String, nullable=False),
    Column("confidence", Float, nullable=False),
    Column("home_prob", Float),
    Column("away_prob", Float),
    Column("expected_value", Float),
    Column("model_version", String, server_default="1.0"),
    Column("created_at", String, server_default=func.current_timestamp()),
)

paper_bets = Table(
    "paper_bets",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("prediction_id", Integer, ForeignKey("predictions.id"), nullable=False),
    Column("game_id", String, nullable=False, index=True),
    Column("stake", Float, nullable=False),
    Column("odds", Float, nullable=False),
    Column("selection", String, nullable=False),
    Column("result", String, nullable=False, server_default="pending"),
    Column("profit", Float, server_default="0"),
    Column("placed_at", String, nullable=False),
    Column("settled_at", String),
)

state = Table(
    "state",
    metadata,
    Column("key", String, primary_key=True),
    Column("value", Text),
    Column("updated_at", String, server_default=func.current_timestamp()),
)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine for ``database_url`` (defaults to settings.DATABASE_URL)."""
    url = database_url or settings.DATABASE_URL
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite:///"):
        Path(url.replace("sqlite:///", "", 1)).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, pool_pre_ping=True, echo=False)


def init_schema(engine: Engine) -> None:
    """Create all tables that don't exist yet."""
    metadata.create_all(engine)
