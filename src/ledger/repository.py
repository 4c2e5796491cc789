"""
Persistence for predictions, wagers and the bankroll snapshot.

Wagers are append-only apart from their settlement fields. The bankroll is a
small key/value snapshot written in the same transaction as the wager change
that produced it (not safe across concurrent processes).
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.core.types import Side
from src.ledger.types import Wager, WagerResult
from src.models.probability_model import Prediction
from src.strategy.bankroll import BankrollState

logger = logging.getLogger(__name__)

BANKROLL_KEY = "bankroll"
STATS_KEY = "betting_stats"


class LedgerPersistenceError(RuntimeError):
    """Raised when a ledger write or read fails."""
    pass


class LedgerRepository(Protocol):
    """
    Storage behind ``BettingLedger``.

    ``add_wager`` and ``update_settlement`` persist the wager together with
    the bankroll snapshot that results from it, in one step: either both are
    stored or neither is.
    """

    def save_prediction(self, prediction: Prediction) -> int:
        ...

    def add_wager(self, wager: Wager, state: Optional[BankrollState] = None) -> Wager:
        """Persist a pending wager (and ``state``), returning it with its id."""
        ...

    def get_wager(self, wager_id: int) -> Optional[Wager]:
        ...

    def pending_wagers(self) -> List[Wager]:
        ...

    def has_pending_wager(self, contest_id: str) -> bool:
        ...

    def update_settlement(self, wager: Wager, state: Optional[BankrollState] = None) -> bool:
        """
        Write settlement fields (and ``state``) if the stored wager is still pending.

        Returns False, writing nothing, when the wager was already settled.
        """
        ...

    def load_state(self) -> Optional[BankrollState]:
        ...

    def save_state(self, state: BankrollState) -> None:
        ...


class InMemoryLedgerRepository:
    """Dict-backed repository for tests and backtests."""

    def __init__(self):
        self.predictions: Dict[int, Prediction] = {}
        self.wagers: Dict[int, Wager] = {}
        self._state: Optional[dict] = None
        self._next_prediction_id = 1
        self._next_wager_id = 1

    def save_prediction(self, prediction: Prediction) -> int:
        prediction_id = self._next_prediction_id
        self._next_prediction_id += 1
        self.predictions[prediction_id] = prediction
        return prediction_id

    def add_wager(self, wager: Wager, state: Optional[BankrollState] = None) -> Wager:
        stored = Wager(
            contest_id=wager.contest_id,
            stake=wager.stake,
            odds=wager.odds,
            selection=wager.selection,
            placed_at=wager.placed_at,
            wager_id=self._next_wager_id,
            prediction_id=wager.prediction_id,
        )
        self._next_wager_id += 1
        self.wagers[stored.wager_id] = stored
        if state is not None:
            self.save_state(state)
        return stored

    def get_wager(self, wager_id: int) -> Optional[Wager]:
        return self.wagers.get(wager_id)

    def pending_wagers(self) -> List[Wager]:
        return [w for w in self.wagers.values() if not w.is_settled]

    def has_pending_wager(self, contest_id: str) -> bool:
        return any(w.contest_id == contest_id for w in self.pending_wagers())

    def update_settlement(self, wager: Wager, state: Optional[BankrollState] = None) -> bool:
        current = self.wagers.get(wager.wager_id)
        if current is None:
            raise LedgerPersistenceError(f"Unknown wager {wager.wager_id}")
        if current.is_settled:
            return False
        self.wagers[wager.wager_id] = wager
        if state is not None:
            self.save_state(state)
        return True

    def load_state(self) -> Optional[BankrollState]:
        return BankrollState.from_dict(self._state) if self._state else None

    def save_state(self, state: BankrollState) -> None:
        self._state = state.to_dict()


WAGER_COLUMNS = """
    id, prediction_id, game_id, stake, odds, selection, result, profit,
    placed_at, settled_at
"""


class SqlLedgerRepository:
    """
    Repository over the ``predictions``, ``paper_bets`` and ``state`` tables.

    SQLAlchemy errors are re-raised as ``LedgerPersistenceError``.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def save_prediction(self, prediction: Prediction) -> int:
        sql = text("""
            INSERT INTO predictions
                (game_id, predicted_winner, confidence, home_prob, away_prob,
                 expected_value, model_version, created_at)
            VALUES
                (:game_id, :predicted_winner, :confidence, :home_prob, :away_prob,
                 :expected_value, :model_version, :created_at)
        """)
        params = {
            "game_id": prediction.contest_id or "",
            "predicted_winner": prediction.predicted_winner,
            "confidence": prediction.confidence,
            "home_prob": prediction.home_prob,
            "away_prob": prediction.away_prob,
            "expected_value": prediction.expected_value,
            "model_version": prediction.model_version,
            "created_at": datetime.now().isoformat(),
        }
        try:
            with self.engine.begin() as conn:
                result = conn.execute(sql, params)
                return int(result.lastrowid)
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to save prediction: {e}") from e

    def add_wager(self, wager: Wager, state: Optional[BankrollState] = None) -> Wager:
        sql = text("""
            INSERT INTO paper_bets
                (prediction_id, game_id, stake, odds, selection, result, profit, placed_at)
            VALUES
                (:prediction_id, :game_id, :stake, :odds, :selection, 'pending', 0, :placed_at)
        """)
        params = {
            "prediction_id": wager.prediction_id,
            "game_id": wager.contest_id,
            "stake": wager.stake,
            "odds": wager.odds,
            "selection": wager.selection.value,
            "placed_at": wager.placed_at.isoformat(),
        }
        try:
            with self.engine.begin() as conn:
                result = conn.execute(sql, params)
                wager_id = int(result.lastrowid)
                if state is not None:
                    self._write_state(conn, state)
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to record wager: {e}") from e
        return self.get_wager(wager_id)

    def get_wager(self, wager_id: int) -> Optional[Wager]:
        sql = text(f"SELECT {WAGER_COLUMNS} FROM paper_bets WHERE id = :id")
        rows = self._fetch(sql, {"id": wager_id})
        return rows[0] if rows else None

    def pending_wagers(self) -> List[Wager]:
        sql = text(
            f"SELECT {WAGER_COLUMNS} FROM paper_bets WHERE result = 'pending' ORDER BY id"
        )
        return self._fetch(sql, {})

    def has_pending_wager(self, contest_id: str) -> bool:
        sql = text(
            "SELECT 1 FROM paper_bets WHERE game_id = :game_id AND result = 'pending' LIMIT 1"
        )
        try:
            with self.engine.connect() as conn:
                return conn.execute(sql, {"game_id": contest_id}).first() is not None
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to query wagers: {e}") from e

    def update_settlement(self, wager: Wager, state: Optional[BankrollState] = None) -> bool:
        sql = text("""
            UPDATE paper_bets
            SET result = :result, profit = :profit, settled_at = :settled_at
            WHERE id = :id AND result = 'pending'
        """)
        params = {
            "id": wager.wager_id,
            "result": wager.result.value,
            "profit": wager.profit,
            "settled_at": wager.settled_at.isoformat() if wager.settled_at else None,
        }
        try:
            with self.engine.begin() as conn:
                if conn.execute(sql, params).rowcount != 1:
                    return False
                if state is not None:
                    self._write_state(conn, state)
                return True
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to settle wager {wager.wager_id}: {e}") from e

    def load_state(self) -> Optional[BankrollState]:
        sql = text("SELECT key, value FROM state WHERE key IN (:bankroll, :stats)")
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(sql, {"bankroll": BANKROLL_KEY, "stats": STATS_KEY}).all()
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to load bankroll state: {e}") from e

        values = {key: value for key, value in rows}
        if STATS_KEY not in values:
            return None
        data = json.loads(values[STATS_KEY])
        if BANKROLL_KEY in values:
            data["balance"] = float(values[BANKROLL_KEY])
        return BankrollState.from_dict(data)

    def save_state(self, state: BankrollState) -> None:
        try:
            with self.engine.begin() as conn:
                self._write_state(conn, state)
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to save bankroll state: {e}") from e

    def _write_state(self, conn, state: BankrollState) -> None:
        """Replace the bankroll rows inside the caller's transaction."""
        data = state.to_dict()
        balance = data.pop("balance")
        now = datetime.now().isoformat()
        conn.execute(
            text("DELETE FROM state WHERE key IN (:bankroll, :stats)"),
            {"bankroll": BANKROLL_KEY, "stats": STATS_KEY},
        )
        conn.execute(
            text("INSERT INTO state (key, value, updated_at) VALUES (:key, :value, :updated_at)"),
            [
                {"key": BANKROLL_KEY, "value": str(balance), "updated_at": now},
                {"key": STATS_KEY, "value": json.dumps(data), "updated_at": now},
            ],
        )

    def _fetch(self, sql, params: dict) -> List[Wager]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(sql, params).mappings().all()
        except SQLAlchemyError as e:
            raise LedgerPersistenceError(f"Failed to query wagers: {e}") from e
        return [_wager_from_row(r) for r in rows]


def _wager_from_row(row) -> Wager:
    settled_at = row["settled_at"]
    return Wager(
        contest_id=row["game_id"],
        stake=float(row["stake"]),
        odds=float(row["odds"]),
        selection=Side(row["selection"]),
        placed_at=datetime.fromisoformat(row["placed_at"]),
        wager_id=int(row["id"]),
        prediction_id=row["prediction_id"],
        result=WagerResult(row["result"]),
        profit=float(row["profit"] or 0.0),
        settled_at=datetime.fromisoformat(settled_at) if settled_at else None,
    )
