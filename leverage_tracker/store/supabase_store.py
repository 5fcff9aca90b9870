"""Supabase (PostgREST) store.

Same tables as the SQL backend, reached over the Supabase REST API with the
service key. There are no client-side transactions here: the close race is
settled by filtering the UPDATE on ``status = active`` and checking that a
row came back.
"""

import logging
from datetime import datetime, timezone

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..bankroll import facts_from_progressions
from ..errors import ConfigurationError, InputError, NotFoundError, StorageError
from ..progression import ACTIVE, COMPLETED, Progression
from .base import Account, ProgressionStore, check_step_bounds

logger = logging.getLogger(__name__)

USERS = "users"
LEVERAGES = "leverages"


def make_client(url, key) -> Client:
    if not url or not key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")
    return create_client(url, key)


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


class SupabaseStore(ProgressionStore):
    name = "supabase"

    def __init__(self, client):
        self.client = client

    def _execute(self, query, action):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as exc:
            logger.error("Supabase error while trying to %s: %s", action, exc)
            raise StorageError(f"Failed to {action}") from exc

    def _rows(self, query, action):
        res = self._execute(query, action)
        return res.data or []

    def _owned_active_row(self, user_id, progression_id):
        rows = self._rows(
            self.client.table(LEVERAGES)
            .select("*")
            .eq("id", progression_id)
            .eq("user_id", user_id)
            .eq("status", ACTIVE)
            .limit(1),
            "load leverage",
        )
        if not rows:
            raise NotFoundError("Leverage not found or already completed")
        return rows[0]

    # ---- users ----

    def create_user(self, name, password_hash, age, initial_bankroll):
        if self.get_user_by_name(name) is not None:
            raise InputError("User already exists")
        rows = self._rows(
            self.client.table(USERS).insert(
                {"name": name, "password": password_hash, "age": age, "initial_bankroll": initial_bankroll}
            ),
            "create user",
        )
        if not rows:
            raise StorageError("Failed to create user")
        return Account.from_record(rows[0])

    def get_user(self, user_id):
        rows = self._rows(self.client.table(USERS).select("*").eq("id", user_id).limit(1), "load user")
        return Account.from_record(rows[0]) if rows else None

    def get_user_by_name(self, name):
        rows = self._rows(self.client.table(USERS).select("*").eq("name", name).limit(1), "load user")
        return Account.from_record(rows[0]) if rows else None

    # ---- progressions ----

    def create(self, user_id, name, initial_value, odd, max_steps):
        rows = self._rows(
            self.client.table(LEVERAGES).insert(
                {
                    "user_id": user_id,
                    "name": name,
                    "initial_value": initial_value,
                    "odd": odd,
                    "max_bets": max_steps,
                    "current_day": 1,
                    "status": ACTIVE,
                }
            ),
            "create leverage",
        )
        if not rows:
            raise StorageError("Failed to create leverage")
        return Progression.from_record(rows[0])

    def list(self, user_id, status):
        rows = self._rows(
            self.client.table(LEVERAGES)
            .select("*")
            .eq("user_id", user_id)
            .eq("status", status)
            .order("created_at", desc=True),
            "list leverages",
        )
        return [Progression.from_record(r) for r in rows]

    def list_all(self, user_id):
        rows = self._rows(
            self.client.table(LEVERAGES).select("*").eq("user_id", user_id).order("created_at", desc=True),
            "list leverages",
        )
        return [Progression.from_record(r) for r in rows]

    def get(self, user_id, progression_id):
        return Progression.from_record(self._owned_active_row(user_id, progression_id))

    def update_step(self, user_id, progression_id, current_step):
        progression = Progression.from_record(self._owned_active_row(user_id, progression_id))
        check_step_bounds(progression, current_step)
        rows = self._rows(
            self.client.table(LEVERAGES)
            .update({"current_day": current_step})
            .eq("id", progression_id)
            .eq("user_id", user_id)
            .eq("status", ACTIVE),
            "update leverage",
        )
        if not rows:
            raise NotFoundError("Leverage not found or already completed")
        return Progression.from_record(rows[0])

    def close(self, user_id, progression_id):
        progression = Progression.from_record(self._owned_active_row(user_id, progression_id))
        snapshot = progression.closing_snapshot()
        rows = self._rows(
            self.client.table(LEVERAGES)
            .update(
                {
                    "status": COMPLETED,
                    "completed_at": _now_iso(),
                    "final_value": snapshot.final_value,
                    "profit": snapshot.profit,
                }
            )
            .eq("id", progression_id)
            .eq("user_id", user_id)
            .eq("status", ACTIVE),
            "complete leverage",
        )
        if not rows:
            raise NotFoundError("Leverage not found or already completed")
        logger.info("User %s completed leverage %s with profit %.2f", user_id, progression_id, snapshot.profit)
        return snapshot

    def delete(self, user_id, progression_id):
        rows = self._rows(
            self.client.table(LEVERAGES).delete().eq("id", progression_id).eq("user_id", user_id),
            "delete leverage",
        )
        if not rows:
            raise NotFoundError("Leverage not found")

    def bankroll_facts(self, user_id):
        account = self.get_user(user_id)
        if account is None:
            raise NotFoundError("User not found")
        return facts_from_progressions(
            account.initial_bankroll,
            self.list(user_id, ACTIVE),
            self.list(user_id, COMPLETED),
        )
