"""Leverage progression model.

A progression stakes ``initial_value`` and compounds it by ``odd`` once per
step, from step 1 up to ``max_steps``. Everything here is a pure function of
the stored fields; persistence lives in :mod:`leverage_tracker.store`.

Two pairs of numbers look alike and must not be confused:

* ``final_value()`` / ``total_profit()`` are the *theoretical* target of a
  full run to ``max_steps``.
* ``closing_value`` / ``realized_profit`` are the *realized* snapshot taken
  when the progression was closed, at whatever step it was on.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from .errors import MalformedRecordError

ACTIVE = "active"
COMPLETED = "completed"
STATUSES = (ACTIVE, COMPLETED)


@dataclass(frozen=True)
class ClosingSnapshot:
    final_value: float
    profit: float
    initial_value: float

    def to_dict(self) -> dict:
        return {
            "finalValue": self.final_value,
            "profit": self.profit,
            "initialValue": self.initial_value,
        }


@dataclass
class Progression:
    name: str
    initial_value: float
    odd: float = 1.1
    max_steps: int = 60
    current_step: int = 1
    status: str = ACTIVE
    id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    closing_value: Optional[float] = None
    realized_profit: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    def value_at(self, step: int) -> float:
        if self.initial_value <= 0 or self.odd <= 0 or step < 1:
            return 0.0
        try:
            return self.initial_value * self.odd ** (step - 1)
        except OverflowError:
            return math.inf

    def is_trackable(self) -> bool:
        """Whether the full-run target still fits in a float."""
        return math.isfinite(self.final_value())

    def current_value(self) -> float:
        return self.value_at(self.current_step)

    def next_value(self) -> float:
        if self.current_step >= self.max_steps:
            return self.current_value()
        return self.value_at(self.current_step + 1)

    def final_value(self) -> float:
        """Theoretical value after a full run to ``max_steps``."""
        return self.value_at(self.max_steps)

    def total_profit(self) -> float:
        """Theoretical profit of a full run, not the realized one."""
        return self.final_value() - self.initial_value

    def progress_percent(self) -> float:
        return self.current_step / self.max_steps * 100

    def advance(self) -> bool:
        if self.current_step < self.max_steps:
            self.current_step += 1
            return True
        return False

    def retreat(self) -> bool:
        if self.current_step > 1:
            self.current_step -= 1
            return True
        return False

    def closing_snapshot(self) -> ClosingSnapshot:
        value = self.current_value()
        return ClosingSnapshot(
            final_value=value,
            profit=value - self.initial_value,
            initial_value=self.initial_value,
        )

    def result(self) -> float:
        """Realized profit once completed, otherwise the running profit."""
        if self.realized_profit is not None:
            return self.realized_profit
        return self.current_value() - self.initial_value

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Progression":
        """Build a progression from a persisted row, rejecting anything malformed."""
        status = _require(record, "status", str)
        if status not in STATUSES:
            raise MalformedRecordError(f"Unknown leverage status {status!r}")

        progression = cls(
            id=_require(record, "id", int),
            user_id=_require(record, "user_id", int),
            name=_require(record, "name", str),
            initial_value=_require_number(record, "initial_value"),
            odd=_require_number(record, "odd"),
            max_steps=_require(record, "max_bets", int),
            current_step=_require(record, "current_day", int),
            status=status,
            created_at=_parse_timestamp(record, "created_at"),
            completed_at=_parse_timestamp(record, "completed_at"),
            closing_value=_optional_number(record, "final_value"),
            realized_profit=_optional_number(record, "profit"),
        )

        if not progression.name.strip():
            raise MalformedRecordError("Leverage record has an empty name")
        if progression.initial_value <= 0 or progression.odd <= 1 or progression.max_steps < 1:
            raise MalformedRecordError(f"Leverage {progression.id} has out-of-range parameters")
        if not 1 <= progression.current_step <= progression.max_steps:
            raise MalformedRecordError(
                f"Leverage {progression.id} is on day {progression.current_step} of {progression.max_steps}"
            )
        if status == COMPLETED and (progression.closing_value is None or progression.realized_profit is None):
            raise MalformedRecordError(f"Completed leverage {progression.id} has no closing snapshot")
        return progression

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "initial_value": self.initial_value,
            "odd": self.odd,
            "max_bets": self.max_steps,
            "current_day": self.current_step,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "final_value": self.closing_value,
            "profit": self.realized_profit,
            "current_value": self.current_value(),
            "next_value": self.next_value(),
            "target_value": self.final_value(),
            "target_profit": self.total_profit(),
            "progress": self.progress_percent(),
        }


def _require(record, key, kind):
    if key not in record or record[key] is None:
        raise MalformedRecordError(f"Leverage record is missing {key!r}")
    value = record[key]
    # bool is an int subclass; a flag is never a valid count or id
    if not isinstance(value, kind) or isinstance(value, bool):
        raise MalformedRecordError(f"Leverage field {key!r} has type {type(value).__name__}")
    return value


def _require_number(record, key):
    if key not in record or record[key] is None:
        raise MalformedRecordError(f"Leverage record is missing {key!r}")
    return _to_float(key, record[key])


def _optional_number(record, key):
    value = record.get(key)
    if value is None:
        return None
    return _to_float(key, value)


def _to_float(key, value):
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        raise MalformedRecordError(f"Leverage field {key!r} is not a number: {value!r}")
    return float(value)


def _parse_timestamp(record, key):
    value = record.get(key)
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    raise MalformedRecordError(f"Leverage field {key!r} is not a timestamp: {value!r}")
