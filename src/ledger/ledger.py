"""
BettingLedger: records wagers and settles them against final scores.

All bankroll mutation goes through one ledger instance, guarded by a lock so
concurrent settlement passes never double-apply a result. Persistence is
isolated behind a ``LedgerRepository``; each wager write carries the bankroll
snapshot it produces, and the in-memory state only advances once that write
succeeds.
"""
import logging
import math
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Mapping, Optional, Tuple

from src.core.types import Side
from src.ledger.repository import LedgerPersistenceError, LedgerRepository
from src.ledger.types import Outcome, SettlementSummary, Wager, WagerResult
from src.models.probability_model import Prediction
from src.strategy.bankroll import BankrollState

logger = logging.getLogger(__name__)


def classify_outcome(home_score: float, away_score: float) -> Outcome:
    """
    Which side a final score favours.

    Examples:
        >>> classify_outcome(110, 101)
        <Outcome.HOME: 'home'>
        >>> classify_outcome(100, 100)
        <Outcome.PUSH: 'push'>
    """
    if home_score > away_score:
        return Outcome.HOME
    if away_score > home_score:
        return Outcome.AWAY
    return Outcome.PUSH


def wager_result(selection: Side, outcome: Outcome) -> WagerResult:
    if outcome == Outcome.PUSH:
        return WagerResult.PUSH
    return WagerResult.WIN if outcome.value == selection.value else WagerResult.LOSS


def settlement_profit(stake: float, odds: float, result: WagerResult) -> float:
    """
    Net profit of a settled wager.

    Examples:
        >>> settlement_profit(100.0, 1.9, WagerResult.WIN)
        90.0
        >>> settlement_profit(100.0, 1.9, WagerResult.LOSS)
        -100.0
    """
    if result == WagerResult.WIN:
        return stake * (odds - 1)
    if result == WagerResult.LOSS:
        return -stake
    if result == WagerResult.PUSH:
        return 0.0
    raise ValueError("Pending wagers have no profit")


class BettingLedger:
    """
    Owns the bankroll state for one betting context.

    Usage:
        ledger = BettingLedger(InMemoryLedgerRepository(), starting_bankroll=1000)
        wager = ledger.place(prediction, stake=25.0, odds=1.95)
        ledger.settle(wager, 101, 98)
    """

    def __init__(
        self,
        repository: LedgerRepository,
        starting_bankroll: float = 1000.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.starting_bankroll = starting_bankroll
        self._clock = clock
        self._lock = threading.Lock()
        self.state = BankrollState.new(starting_bankroll)
        self.load()

    def load(self) -> BankrollState:
        """Read the persisted snapshot (or start fresh if none exists)."""
        stored = self.repository.load_state()
        self.state = stored if stored is not None else BankrollState.new(self.starting_bankroll)
        return self.state

    def save(self) -> None:
        self.repository.save_state(self.state)

    def get_stats(self) -> dict:
        return self.state.get_stats()

    def pending_wagers(self) -> List[Wager]:
        return self.repository.pending_wagers()

    def place(
        self,
        prediction: Prediction,
        stake: float,
        odds: float,
        selection: Optional[Side] = None,
    ) -> Wager:
        """
        Record a pending wager and reserve its stake.

        Args:
            prediction: Prediction the wager is based on
            stake: Amount to stake (must not exceed the balance)
            odds: Accepted decimal odds (> 1)
            selection: Side backed (defaults to the predicted side)

        Raises:
            ValueError: Invalid stake or odds
            LedgerPersistenceError: Storage failed; bankroll is untouched
        """
        if not (math.isfinite(stake) and stake > 0):
            raise ValueError(f"stake must be a positive number, got {stake}")
        if not (math.isfinite(odds) and odds > 1.0):
            raise ValueError(f"odds must be greater than 1.0, got {odds}")

        side = selection or prediction.predicted_side
        with self._lock:
            if stake > self.state.balance:
                raise ValueError(
                    f"stake {stake:.2f} exceeds available bankroll {self.state.balance:.2f}"
                )
            prediction_id = self.repository.save_prediction(prediction)
            new_state = replace(self.state)
            new_state.apply_placement(stake)
            wager = self.repository.add_wager(
                Wager(
                    contest_id=prediction.contest_id or "",
                    stake=stake,
                    odds=odds,
                    selection=side,
                    placed_at=self._clock(),
                    prediction_id=prediction_id,
                ),
                new_state,
            )
            self.state = new_state

        logger.info(
            "Placed %.2f on %s @ %.2f (contest %s), bankroll %.2f",
            stake, side.value, odds, wager.contest_id, self.state.balance,
        )
        return wager

    def settle(self, wager: Wager, home_score: float, away_score: float) -> Wager:
        """
        Settle one wager. Re-settling an already settled wager is a no-op.

        Returns:
            The settled wager as stored

        Raises:
            LedgerPersistenceError: Storage failed; wager stays pending and
                the bankroll is untouched
        """
        with self._lock:
            return self._settle_locked(wager, home_score, away_score)

    def settle_pending(
        self, scores: Mapping[str, Tuple[float, float]]
    ) -> SettlementSummary:
        """
        Settle every pending wager whose contest has a final score.

        A failure on one wager is logged and leaves it pending for the next
        pass; wagers already settled in this pass are kept.

        Args:
            scores: contest_id -> (home_score, away_score)
        """
        summary = SettlementSummary()
        with self._lock:
            for wager in self.repository.pending_wagers():
                final = scores.get(wager.contest_id)
                if final is None:
                    summary.awaiting_result += 1
                    continue
                try:
                    settled = self._settle_locked(wager, final[0], final[1])
                except LedgerPersistenceError as e:
                    logger.error("Failed to settle wager %s: %s", wager.wager_id, e)
                    summary.failed.append((wager.wager_id, str(e)))
                    continue
                summary.settled.append(settled)

        if summary.failed:
            logger.warning("%d wagers left pending after failures", summary.failed_count)
        if summary.settled:
            logger.info(
                "Settled %d wagers | W %d L %d P %d | bankroll %.2f",
                summary.settled_count, self.state.wins, self.state.losses,
                self.state.pushes, self.state.balance,
            )
        return summary

    def _settle_locked(self, wager: Wager, home_score: float, away_score: float) -> Wager:
        current = self.repository.get_wager(wager.wager_id) if wager.wager_id is not None else None
        if current is None:
            raise LedgerPersistenceError(f"Wager {wager.wager_id} is not recorded")
        if current.is_settled:
            return current

        result = wager_result(current.selection, classify_outcome(home_score, away_score))
        profit = settlement_profit(current.stake, current.odds, result)
        settled = current.settled(result, profit, self._clock())

        new_state = replace(self.state)
        new_state.apply_settlement(current.stake, profit, result.value)
        if not self.repository.update_settlement(settled, new_state):
            # Settled elsewhere in the meantime
            return self.repository.get_wager(current.wager_id)

        self.state = new_state
        return settled
