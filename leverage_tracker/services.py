"""Operations shared by the JSON API and the dashboard.

Inputs arrive already validated by the forms; these functions enforce the
rules that need the store (duplicate names, credentials, bankroll).
"""

from flask import current_app
from werkzeug.security import generate_password_hash

from .errors import AuthenticationError, InputError, InsufficientBankrollError
from .progression import STATUSES, Progression


def register_account(store, name, password, age, bankroll):
    if store.get_user_by_name(name) is not None:
        raise InputError("User already exists")
    account = store.create_user(name, generate_password_hash(password), age, bankroll)
    current_app.logger.info("Registered user %s (id=%s) with bankroll %.2f", name, account.id, bankroll)
    return account


def authenticate(store, name, password):
    account = store.get_user_by_name(name)
    if account is None:
        raise AuthenticationError("User not found")
    if not account.check_password(password):
        raise AuthenticationError("Incorrect password")
    return account


def open_progression(store, user_id, name, initial_value, odd, max_steps):
    """Create a progression if the stake fits the available bankroll."""
    if not Progression(name=name, initial_value=initial_value, odd=odd, max_steps=max_steps).is_trackable():
        raise InputError("Odd and max bets give a target value too large to track")
    facts = store.bankroll_facts(user_id)
    if not facts.can_afford(initial_value):
        raise InsufficientBankrollError(facts.available)
    progression = store.create(user_id, name, initial_value, odd, max_steps)
    current_app.logger.info(
        "User %s opened leverage %s (%s) staking %.2f", user_id, progression.id, name, initial_value
    )
    return progression


def list_progressions(store, user_id, status):
    if status not in STATUSES:
        raise InputError(f"Invalid status {status!r}: expected one of {', '.join(STATUSES)}")
    return store.list(user_id, status)


def set_step(store, user_id, progression_id, current_step):
    return store.update_step(user_id, progression_id, current_step)


def reset_progression(store, user_id, progression_id):
    return store.update_step(user_id, progression_id, 1)


def step_progression(store, user_id, progression_id, forward=True):
    """Advance or retreat one step. Returns (progression, changed)."""
    progression = store.get(user_id, progression_id)
    changed = progression.advance() if forward else progression.retreat()
    if changed:
        progression = store.update_step(user_id, progression_id, progression.current_step)
    return progression, changed


def close_progression(store, user_id, progression_id):
    return store.close(user_id, progression_id)


def delete_progression(store, user_id, progression_id):
    store.delete(user_id, progression_id)
    current_app.logger.info("User %s deleted leverage %s", user_id, progression_id)
