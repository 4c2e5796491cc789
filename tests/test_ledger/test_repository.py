"""
Tests for SqlLedgerRepository against in-memory SQLite.
"""

from datetime import datetime

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.core.types import Side
from src.ledger.ledger import BettingLedger
from src.ledger.repository import LedgerPersistenceError, SqlLedgerRepository
from src.ledger.types import Wager, WagerResult
from src.strategy.bankroll import BankrollState

PLACED = datetime(2024, 3, 1, 12, 0)


@pytest.fixture
def repository(sql_engine):
    return SqlLedgerRepository(sql_engine)


def pending(contest_id="g1", prediction_id=1):
    return Wager(
        contest_id=contest_id,
        stake=25.0,
        odds=2.05,
        selection=Side.AWAY,
        placed_at=PLACED,
        prediction_id=prediction_id,
    )


def test_save_prediction(repository, sql_engine, prediction_factory):
    prediction_id = repository.save_prediction(prediction_factory("g7"))
    assert prediction_id >= 1

    with sql_engine.connect() as conn:
        row = conn.execute(
            text("SELECT game_id, predicted_winner, model_version FROM predictions WHERE id = :id"),
            {"id": prediction_id},
        ).one()
    assert tuple(row) == ("g7", "Lakers", "heuristic-2.0.0")


def test_add_and_get_wager(repository):
    stored = repository.add_wager(pending(prediction_id=3))

    assert stored.wager_id is not None
    assert stored.result == WagerResult.PENDING
    assert stored.selection == Side.AWAY
    assert stored.placed_at == PLACED
    assert stored.prediction_id == 3
    assert repository.get_wager(stored.wager_id) == stored
    assert repository.get_wager(9999) is None


def test_pending_wagers(repository):
    first = repository.add_wager(pending("g1"))
    repository.add_wager(pending("g2"))

    assert [w.contest_id for w in repository.pending_wagers()] == ["g1", "g2"]
    assert repository.has_pending_wager("g1")
    assert not repository.has_pending_wager("g9")

    settled = first.settled(WagerResult.LOSS, -25.0, datetime(2024, 3, 2))
    assert repository.update_settlement(settled)
    assert [w.contest_id for w in repository.pending_wagers()] == ["g2"]
    assert not repository.has_pending_wager("g1")


def test_update_settlement_only_once(repository):
    stored = repository.add_wager(pending())
    win = stored.settled(WagerResult.WIN, 26.25, datetime(2024, 3, 2))
    loss = stored.settled(WagerResult.LOSS, -25.0, datetime(2024, 3, 2))

    assert repository.update_settlement(win)
    assert not repository.update_settlement(loss)

    current = repository.get_wager(stored.wager_id)
    assert current.result == WagerResult.WIN
    assert current.profit == pytest.approx(26.25)
    assert current.settled_at == datetime(2024, 3, 2)


def test_state_round_trip(repository):
    assert repository.load_state() is None

    state = BankrollState.new(1000.0)
    state.apply_placement(100.0)
    state.apply_settlement(100.0, 90.0, "win")
    repository.save_state(state)
    repository.save_state(state)  # overwrite, not duplicate

    loaded = repository.load_state()
    assert loaded == state


def test_state_rows(repository, sql_engine):
    repository.save_state(BankrollState.new(750.0))
    with sql_engine.connect() as conn:
        keys = sorted(r[0] for r in conn.execute(text("SELECT key FROM state")))
    assert keys == ["bankroll", "betting_stats"]


def test_errors_wrapped(sql_engine):
    repository = SqlLedgerRepository(sql_engine)
    with sql_engine.begin() as conn:
        conn.execute(text("DROP TABLE paper_bets"))

    with pytest.raises(LedgerPersistenceError):
        repository.pending_wagers()
    with pytest.raises(LedgerPersistenceError):
        repository.add_wager(pending())


def test_ledger_over_sql(repository, prediction_factory):
    """Full cycle: place, persist, reload, settle."""
    ledger = BettingLedger(repository, starting_bankroll=1000.0)
    ledger.place(prediction_factory("g1"), 100.0, 1.9)
    ledger.place(prediction_factory("g2"), 50.0, 2.0)

    reloaded = BettingLedger(repository)
    assert reloaded.state.balance == 850.0
    assert len(reloaded.pending_wagers()) == 2

    summary = reloaded.settle_pending({"g1": (110, 101)})
    assert summary.settled_count == 1
    assert BettingLedger(repository).state.balance == pytest.approx(1040.0)


class StateWriteFailure(SqlLedgerRepository):
    """Fails the bankroll write while ``failing`` is set."""

    failing = False

    def _write_state(self, conn, state):
        if self.failing:
            raise SQLAlchemyError("disk I/O error")
        super()._write_state(conn, state)


def assert_consistent(state):
    assert state.balance + state.outstanding == pytest.approx(
        state.starting_bankroll + state.total_profit
    )


def test_settlement_rolled_back_with_state(sql_engine, prediction_factory):
    repository = StateWriteFailure(sql_engine)
    ledger = BettingLedger(repository, starting_bankroll=1000.0)
    ledger.place(prediction_factory("g1"), 100.0, 1.9)

    repository.failing = True
    summary = ledger.settle_pending({"g1": (110, 101)})
    assert summary.failed_count == 1
    assert ledger.state.balance == 900.0

    reloaded = BettingLedger(repository)
    assert len(reloaded.pending_wagers()) == 1
    assert reloaded.state.balance == 900.0
    assert reloaded.state.outstanding == 100.0
    assert reloaded.state.total_profit == 0.0
    assert_consistent(reloaded.state)

    repository.failing = False
    retry = reloaded.settle_pending({"g1": (110, 101)})
    assert retry.settled_count == 1
    after = BettingLedger(repository).state
    assert after.balance == pytest.approx(1090.0)
    assert after.total_profit == pytest.approx(90.0)
    assert after.outstanding == 0.0
    assert_consistent(after)


def test_placement_rolled_back_with_state(sql_engine, prediction_factory):
    repository = StateWriteFailure(sql_engine)
    ledger = BettingLedger(repository, starting_bankroll=1000.0)
    ledger.place(prediction_factory("g1"), 100.0, 1.9)

    repository.failing = True
    with pytest.raises(LedgerPersistenceError):
        ledger.place(prediction_factory("g2"), 50.0, 2.0)

    assert ledger.state.balance == 900.0
    assert [w.contest_id for w in repository.pending_wagers()] == ["g1"]
    reloaded = BettingLedger(repository).state
    assert reloaded.balance == 900.0
    assert reloaded.total_bets == 1
    assert_consistent(reloaded)
