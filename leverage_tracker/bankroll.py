"""Bankroll bookkeeping.

available = initial bankroll - stakes locked in active progressions
            + profit realized by completed ones

Always derived from the stored facts on read, never persisted.
"""

from dataclasses import dataclass
from typing import Iterable

from .progression import Progression

LOW_BANKROLL_RATIO = 0.2


@dataclass(frozen=True)
class BankrollFacts:
    initial_bankroll: float
    active_stake: float = 0.0
    realized_profit: float = 0.0

    @property
    def available(self) -> float:
        return self.initial_bankroll - self.active_stake + self.realized_profit

    @property
    def is_overcommitted(self) -> bool:
        return self.available < 0

    def can_afford(self, stake: float) -> bool:
        return stake <= self.available

    @property
    def level(self) -> str:
        return bankroll_level(self.available, self.initial_bankroll)

    def warning(self):
        if self.is_overcommitted:
            return f"Bankroll is overcommitted by {-self.available:.2f}"
        return None

    def to_dict(self) -> dict:
        return {
            "initial_bankroll": self.initial_bankroll,
            "active_stake": self.active_stake,
            "realized_profit": self.realized_profit,
            "available_bankroll": self.available,
            "bankroll_level": self.level,
            "warning": self.warning(),
        }


def available_bankroll(
    initial_bankroll: float,
    active: Iterable[Progression],
    completed: Iterable[Progression],
) -> float:
    return facts_from_progressions(initial_bankroll, active, completed).available


def facts_from_progressions(initial_bankroll, active, completed) -> BankrollFacts:
    return BankrollFacts(
        initial_bankroll=initial_bankroll,
        active_stake=sum(p.initial_value for p in active),
        realized_profit=sum(p.realized_profit or 0.0 for p in completed),
    )


def bankroll_level(available: float, initial: float) -> str:
    """Traffic-light bucket for the dashboard badge."""
    if available <= 0:
        return "depleted"
    if available < initial * LOW_BANKROLL_RATIO:
        return "low"
    return "healthy"
