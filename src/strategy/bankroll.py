"""
Bankroll state and cumulative betting counters.

Tracks the running balance plus the counters reported by ``get_stats``.
Invariant: balance + outstanding stakes == starting bankroll + total profit.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class BankrollState:
    """
    Running bankroll and counters.

    Mutated by every placed or settled wager; persisted as the authoritative
    running total.
    """

    balance: float
    starting_bankroll: float
    total_bets: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    total_staked: float = 0.0
    total_profit: float = 0.0
    outstanding: float = 0.0

    def __post_init__(self):
        if self.starting_bankroll <= 0:
            raise ValueError("starting_bankroll must be positive")

    @classmethod
    def new(cls, starting_bankroll: float) -> "BankrollState":
        return cls(balance=starting_bankroll, starting_bankroll=starting_bankroll)

    @property
    def settled_bets(self) -> int:
        return self.wins + self.losses + self.pushes

    def apply_placement(self, stake: float) -> None:
        """
        Reserve ``stake`` from the balance.

        Example:
            >>> state = BankrollState.new(1000.0)
            >>> state.apply_placement(50.0)
            >>> state.balance
            950.0
        """
        if stake <= 0:
            raise ValueError(f"stake must be positive, got {stake}")
        if stake > self.balance:
            raise ValueError(f"stake {stake:.2f} exceeds balance {self.balance:.2f}")
        self.balance -= stake
        self.outstanding += stake
        self.total_bets += 1
        self.total_staked += stake

    def apply_settlement(self, stake: float, profit: float, result: str) -> None:
        """
        Return ``stake + profit`` to the balance and count the result.

        Args:
            stake: Amount originally reserved
            profit: Net profit (stake*(odds-1), -stake or 0)
            result: "win", "loss" or "push"

        Example:
            >>> state = BankrollState.new(1000.0)
            >>> state.apply_placement(100.0)
            >>> state.apply_settlement(100.0, 90.0, "win")
            >>> state.balance
            1090.0
        """
        if result == "win":
            self.wins += 1
        elif result == "loss":
            self.losses += 1
        elif result == "push":
            self.pushes += 1
        else:
            raise ValueError(f"Unknown result '{result}'")

        self.balance += stake + profit
        self.outstanding = max(0.0, self.outstanding - stake)
        self.total_profit += profit

    def get_stats(self) -> Dict[str, Any]:
        """
        Reporting snapshot.

        ``win_rate`` is over settled bets (pushes included) and, like ``roi``,
        is a percentage.
        """
        settled = self.settled_bets
        return {
            "bankroll": self.balance,
            "total_bets": self.total_bets,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "win_rate": (self.wins / settled * 100) if settled else 0.0,
            "total_staked": self.total_staked,
            "total_profit": self.total_profit,
            "roi": (self.total_profit / self.total_staked * 100) if self.total_staked else 0.0,
            "avg_stake": (self.total_staked / self.total_bets) if self.total_bets else 0.0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BankrollState":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)
