"""SQLite / PostgreSQL store backed by Flask-SQLAlchemy."""

import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..bankroll import BankrollFacts
from ..errors import InputError, LeverageTrackerError, NotFoundError, StorageError
from ..extensions import db
from ..models import Leverage, User
from ..progression import ACTIVE, COMPLETED, Progression
from .base import Account, ProgressionStore, check_step_bounds

logger = logging.getLogger(__name__)


def _account(user):
    return Account(
        id=user.id,
        name=user.name,
        age=user.age,
        initial_bankroll=float(user.initial_bankroll or 0),
        password_hash=user.password,
    )


class SQLAlchemyStore(ProgressionStore):
    name = "sql"

    @contextmanager
    def _transaction(self, action):
        try:
            yield db.session
            db.session.commit()
        except LeverageTrackerError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Database error while trying to %s: %s", action, exc)
            raise StorageError(f"Failed to {action}") from exc

    def _query(self, action, fn):
        try:
            return fn()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Database error while trying to %s: %s", action, exc)
            raise StorageError(f"Failed to {action}") from exc

    def _owned_active(self, user_id, progression_id):
        row = Leverage.query.filter_by(id=progression_id, user_id=user_id, status=ACTIVE).first()
        if row is None:
            raise NotFoundError("Leverage not found or already completed")
        return row

    # ---- users ----

    def create_user(self, name, password_hash, age, initial_bankroll):
        user = User(name=name, password=password_hash, age=age, initial_bankroll=initial_bankroll)
        try:
            with self._transaction("create user") as session:
                session.add(user)
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise InputError("User already exists") from exc
            raise
        return _account(user)

    def get_user(self, user_id):
        user = self._query("load user", lambda: db.session.get(User, user_id))
        return _account(user) if user else None

    def get_user_by_name(self, name):
        user = self._query("load user", lambda: User.query.filter_by(name=name).first())
        return _account(user) if user else None

    # ---- progressions ----

    def create(self, user_id, name, initial_value, odd, max_steps):
        row = Leverage(
            user_id=user_id,
            name=name,
            initial_value=initial_value,
            odd=odd,
            max_bets=max_steps,
            current_day=1,
            status=ACTIVE,
        )
        with self._transaction("create leverage") as session:
            session.add(row)
        return Progression.from_record(row.to_record())

    def list(self, user_id, status):
        rows = self._query(
            "list leverages",
            lambda: Leverage.query.filter_by(user_id=user_id, status=status)
            .order_by(Leverage.created_at.desc(), Leverage.id.desc())
            .all(),
        )
        return [Progression.from_record(r.to_record()) for r in rows]

    def list_all(self, user_id):
        rows = self._query(
            "list leverages",
            lambda: Leverage.query.filter_by(user_id=user_id)
            .order_by(Leverage.created_at.desc(), Leverage.id.desc())
            .all(),
        )
        return [Progression.from_record(r.to_record()) for r in rows]

    def get(self, user_id, progression_id):
        row = self._query("load leverage", lambda: self._owned_active(user_id, progression_id))
        return Progression.from_record(row.to_record())

    def update_step(self, user_id, progression_id, current_step):
        with self._transaction("update leverage"):
            row = self._owned_active(user_id, progression_id)
            check_step_bounds(Progression.from_record(row.to_record()), current_step)
            row.current_day = current_step
        return Progression.from_record(row.to_record())

    def close(self, user_id, progression_id):
        with self._transaction("complete leverage") as session:
            row = self._owned_active(user_id, progression_id)
            snapshot = Progression.from_record(row.to_record()).closing_snapshot()
            # the status filter decides a concurrent close: only one UPDATE matches
            result = session.execute(
                update(Leverage)
                .where(Leverage.id == progression_id, Leverage.user_id == user_id, Leverage.status == ACTIVE)
                .values(
                    status=COMPLETED,
                    completed_at=datetime.utcnow(),
                    final_value=snapshot.final_value,
                    profit=snapshot.profit,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Leverage not found or already completed")
        logger.info("User %s completed leverage %s with profit %.2f", user_id, progression_id, snapshot.profit)
        return snapshot

    def delete(self, user_id, progression_id):
        with self._transaction("delete leverage"):
            deleted = Leverage.query.filter_by(id=progression_id, user_id=user_id).delete(
                synchronize_session=False
            )
            if deleted == 0:
                raise NotFoundError("Leverage not found")

    def bankroll_facts(self, user_id):
        def _load():
            user = db.session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            active_stake = (
                db.session.query(func.coalesce(func.sum(Leverage.initial_value), 0))
                .filter(Leverage.user_id == user_id, Leverage.status == ACTIVE)
                .scalar()
            )
            realized = (
                db.session.query(func.coalesce(func.sum(Leverage.profit), 0))
                .filter(Leverage.user_id == user_id, Leverage.status == COMPLETED)
                .scalar()
            )
            return BankrollFacts(
                initial_bankroll=float(user.initial_bankroll),
                active_stake=float(active_stake),
                realized_profit=float(realized),
            )

        return self._query("compute bankroll", _load)
