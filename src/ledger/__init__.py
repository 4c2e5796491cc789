"""Wager ledger: placement, settlement and bankroll persistence."""

from src.ledger.types import Outcome, SettlementSummary, Wager, WagerResult
from src.ledger.repository import (
    InMemoryLedgerRepository,
    LedgerPersistenceError,
    LedgerRepository,
    SqlLedgerRepository,
)
from src.ledger.ledger import BettingLedger, classify_outcome, settlement_profit

__all__ = [
    "BettingLedger",
    "InMemoryLedgerRepository",
    "LedgerPersistenceError",
    "LedgerRepository",
    "Outcome",
    "SettlementSummary",
    "SqlLedgerRepository",
    "Wager",
    "WagerResult",
    "classify_outcome",
    "settlement_profit",
]
