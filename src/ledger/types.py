"""
Wager records and settlement outcomes.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from src.core.types import Side


class Outcome(str, Enum):
    """Which side a final score favours."""
    HOME = "home"
    AWAY = "away"
    PUSH = "push"


class WagerResult(str, Enum):
    """Wager lifecycle. Anything but PENDING is terminal."""
    PENDING = "pending"
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"


@dataclass(frozen=True)
class Wager:
    """
    A simulated stake on one side of a contest.

    Created pending; settlement produces a new settled copy exactly once.
    """

    contest_id: str
    stake: float
    odds: float
    selection: Side
    placed_at: datetime
    wager_id: Optional[int] = None
    prediction_id: Optional[int] = None
    result: WagerResult = WagerResult.PENDING
    profit: float = 0.0
    settled_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        return self.result != WagerResult.PENDING

    def settled(self, result: WagerResult, profit: float, settled_at: datetime) -> "Wager":
        if self.is_settled:
            raise ValueError(f"Wager {self.wager_id} is already settled as {self.result.value}")
        return replace(self, result=result, profit=profit, settled_at=settled_at)


@dataclass
class SettlementSummary:
    """Result of one batch settlement pass."""

    settled: List[Wager] = field(default_factory=list)
    failed: List[Tuple[int, str]] = field(default_factory=list)  # (wager_id, error)
    awaiting_result: int = 0

    @property
    def settled_count(self) -> int:
        return len(self.settled)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def total_profit(self) -> float:
        return sum(w.profit for w in self.settled)
