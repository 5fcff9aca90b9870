from sqlalchemy import create_engine, inspect, text

from leverage_tracker.schema import upgrade_schema


def _columns(engine, table):
    return {c["name"] for c in inspect(engine).get_columns(table)}


def test_adds_missing_columns_to_legacy_tables():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR(80), password VARCHAR(255), age INTEGER)"))
        conn.execute(text(
            "CREATE TABLE leverages (id INTEGER PRIMARY KEY, user_id INTEGER, name VARCHAR(120), "
            "initial_value FLOAT, odd FLOAT, max_bets INTEGER, current_day INTEGER, created_at TIMESTAMP)"
        ))
        conn.execute(text("INSERT INTO leverages (user_id, name, initial_value, odd, max_bets, current_day) VALUES (1, 'Old', 10, 1.1, 60, 4)"))

    added = upgrade_schema(engine)

    assert set(added) == {
        "users.initial_bankroll",
        "leverages.status",
        "leverages.completed_at",
        "leverages.final_value",
        "leverages.profit",
    }
    assert {"status", "completed_at", "final_value", "profit"} <= _columns(engine, "leverages")
    with engine.connect() as conn:
        assert conn.execute(text("SELECT status FROM leverages")).scalar() == "active"


def test_is_idempotent_and_skips_missing_tables():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR(80), password VARCHAR(255), age INTEGER)"))

    assert upgrade_schema(engine) == ["users.initial_bankroll"]
    assert upgrade_schema(engine) == []


def test_noop_on_current_schema(app):
    from leverage_tracker.extensions import db

    with app.app_context():
        assert upgrade_schema() == []
        assert "status" in _columns(db.engine, "leverages")
