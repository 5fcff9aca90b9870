"""Everything the dashboard renders, rebuilt from the store on each request."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..bankroll import BankrollFacts
from ..errors import NotFoundError
from ..progression import ACTIVE, COMPLETED, Progression
from ..store import Account, ProgressionStore


@dataclass
class DashboardState:
    account: Account
    bankroll: BankrollFacts
    active: List[Progression] = field(default_factory=list)
    completed: List[Progression] = field(default_factory=list)
    selected: Optional[Progression] = None
    stale: bool = False

    @property
    def total_value(self) -> float:
        """Current value of everything still running."""
        return sum(p.current_value() for p in self.active)

    @property
    def available(self) -> float:
        return self.bankroll.available

    @classmethod
    def empty(cls, account: Account) -> "DashboardState":
        return cls(account=account, bankroll=BankrollFacts(account.initial_bankroll), stale=True)


def load_dashboard_state(
    store: ProgressionStore, account: Account, selected_id: Optional[int] = None
) -> DashboardState:
    active = store.list(account.id, ACTIVE)
    completed = store.list(account.id, COMPLETED)
    selected = None
    if selected_id is not None:
        selected = next((p for p in active if p.id == selected_id), None)
        if selected is None:
            raise NotFoundError("Leverage not found or already completed")
    return DashboardState(
        account=account,
        bankroll=store.bankroll_facts(account.id),
        active=active,
        completed=completed,
        selected=selected,
    )
