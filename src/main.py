import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from src.backtesting.backtester import BacktestRunner
from src.backtesting.types import BacktestConfig, InsufficientDataError
from src.core.config import settings
from src.core.history_store import HistoricalDataStore
from src.ledger.repository import LedgerPersistenceError
from src.service.betting_service import BettingService

logger = logging.getLogger(__name__)

app = FastAPI(title="sports-edge-model", version=settings.VERSION)

# Lazy-built on first use
_service: Optional[BettingService] = None
_store: Optional[HistoricalDataStore] = None


def _get_service() -> BettingService:
    global _service
    if _service is None:
        _service = BettingService.from_settings(settings)
    return _service


def _get_store() -> HistoricalDataStore:
    global _store
    if _store is None:
        from src.core.database import get_engine
        from src.core.history_store import SqlHistoryStore

        _store = SqlHistoryStore(get_engine(settings.DATABASE_URL))
    return _store


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # History timestamps are stored as naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# --- Schemas ---


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


class StatsResponse(BaseModel):
    bankroll: float
    total_bets: int
    wins: int
    losses: int
    pushes: int
    win_rate: float
    total_staked: float
    total_profit: float
    roi: float
    avg_stake: float


class PredictionRequest(BaseModel):
    sport: str
    home_team: str
    away_team: str
    home_odds: Optional[float] = Field(default=None, gt=1.0)
    away_odds: Optional[float] = Field(default=None, gt=1.0)
    as_of: Optional[datetime] = None


class PredictionResponse(BaseModel):
    home_team: str
    away_team: str
    predicted_winner: str
    home_prob: float
    away_prob: float
    confidence: float
    expected_value: float
    model_version: str
    features_valid: bool


class BacktestRequest(BaseModel):
    min_confidence: float = Field(default=0.55, ge=0.0, le=1.0)
    min_expected_value: float = 0.02
    kelly_fraction: float = Field(default=0.25, ge=0.0, le=1.0)
    starting_bankroll: float = Field(default=1000.0, gt=0.0)
    sample_size: int = Field(default=500, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# --- Endpoints ---


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy", service="sports-edge-model", version=settings.VERSION)


@app.get("/stats", response_model=StatsResponse)
def stats() -> StatsResponse:
    """Bankroll and cumulative betting counters."""
    try:
        return StatsResponse(**_get_service().get_stats())
    except LedgerPersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/predict", response_model=PredictionResponse)
def predict(request: PredictionRequest) -> PredictionResponse:
    """Win probabilities for one matchup, from history strictly before ``as_of``."""
    service = _get_service()
    features = service.extractor.extract(
        request.home_team,
        request.away_team,
        request.sport,
        _naive_utc(request.as_of) or datetime.now(timezone.utc).replace(tzinfo=None),
    )
    prediction = service.model.predict(
        features,
        home_odds=request.home_odds,
        away_odds=request.away_odds,
        home_team=request.home_team,
        away_team=request.away_team,
    )
    return PredictionResponse(
        home_team=request.home_team,
        away_team=request.away_team,
        predicted_winner=prediction.predicted_winner,
        home_prob=prediction.home_prob,
        away_prob=prediction.away_prob,
        confidence=prediction.confidence,
        expected_value=prediction.expected_value,
        model_version=prediction.model_version,
        features_valid=prediction.features_valid,
    )


@app.post("/backtest/{sport}")
def backtest(sport: str, request: Optional[BacktestRequest] = None) -> Dict:
    """Replay completed contests and return the backtest report."""
    request = request or BacktestRequest()
    try:
        config = BacktestConfig(
            min_confidence=request.min_confidence,
            min_expected_value=request.min_expected_value,
            kelly_fraction=request.kelly_fraction,
            starting_bankroll=request.starting_bankroll,
            max_stake_pct=settings.MAX_STAKE_PCT,
            min_stake=settings.MIN_STAKE,
            sample_size=request.sample_size,
            start_date=_naive_utc(request.start_date),
            end_date=_naive_utc(request.end_date),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    runner = BacktestRunner(_get_store(), _get_service().model)
    try:
        report = runner.run(sport, config)
    except InsufficientDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return report.to_dict()
