"""Store interface shared by every persistence backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash

from ..bankroll import BankrollFacts
from ..errors import InputError, MalformedRecordError
from ..progression import ClosingSnapshot, Progression


@dataclass(eq=False)
class Account(UserMixin):
    """An authenticated user as seen by the rest of the app."""

    id: int
    name: str
    age: int
    initial_bankroll: float
    password_hash: str = field(default="", repr=False)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    def public(self):
        return {"id": self.id, "name": self.name, "age": self.age}

    @classmethod
    def from_record(cls, record):
        try:
            return cls(
                id=int(record["id"]),
                name=str(record["name"]),
                age=int(record["age"]),
                initial_bankroll=float(record["initial_bankroll"]),
                password_hash=str(record.get("password") or ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedRecordError(f"User record is malformed: {exc}") from exc


class ProgressionStore(ABC):
    """Users and their leverage progressions.

    Every progression operation is scoped to ``user_id``; touching a row
    owned by someone else behaves exactly like touching a missing row and
    raises ``NotFoundError``.
    """

    name = "base"

    # ---- users ----

    @abstractmethod
    def create_user(self, name: str, password_hash: str, age: int, initial_bankroll: float) -> Account:
        ...

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[Account]:
        ...

    @abstractmethod
    def get_user_by_name(self, name: str) -> Optional[Account]:
        ...

    # ---- progressions ----

    @abstractmethod
    def create(self, user_id: int, name: str, initial_value: float, odd: float, max_steps: int) -> Progression:
        """Store a new progression, active at step 1."""

    @abstractmethod
    def list(self, user_id: int, status: str) -> List[Progression]:
        """All of the user's progressions with ``status``, newest first."""

    @abstractmethod
    def list_all(self, user_id: int) -> List[Progression]:
        ...

    @abstractmethod
    def get(self, user_id: int, progression_id: int) -> Progression:
        """An owned, active progression."""

    @abstractmethod
    def update_step(self, user_id: int, progression_id: int, current_step: int) -> Progression:
        ...

    @abstractmethod
    def close(self, user_id: int, progression_id: int) -> ClosingSnapshot:
        ...

    @abstractmethod
    def delete(self, user_id: int, progression_id: int) -> None:
        ...

    @abstractmethod
    def bankroll_facts(self, user_id: int) -> BankrollFacts:
        ...


def check_step_bounds(progression: Progression, current_step: int) -> None:
    if not 1 <= current_step <= progression.max_steps:
        raise InputError(
            f"Invalid current day {current_step}: must be between 1 and {progression.max_steps}"
        )
