"""
Bring an existing SQL database up to the current schema.

Older databases were created before leverages could be closed and before
users declared a bankroll, so their tables lack a few columns.
db.create_all() never alters existing tables; this adds what is missing.
"""
import logging

from sqlalchemy import inspect, text

from .extensions import db

logger = logging.getLogger(__name__)

# table -> [(column, DDL type)]
LEGACY_COLUMNS = {
    "users": [
        ("initial_bankroll", "FLOAT NOT NULL DEFAULT 0"),
        ("password", "VARCHAR(255)"),
    ],
    "leverages": [
        ("status", "VARCHAR(20) NOT NULL DEFAULT 'active'"),
        ("completed_at", "TIMESTAMP NULL"),
        ("final_value", "FLOAT NULL"),
        ("profit", "FLOAT NULL"),
    ],
}


def upgrade_schema(engine=None):
    """Add any missing legacy columns. Returns the list of columns added."""
    engine = engine or db.engine
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    missing = []
    for table, columns in LEGACY_COLUMNS.items():
        if table not in existing_tables:
            continue
        present = {c["name"] for c in inspector.get_columns(table)}
        for column_name, column_type in columns:
            if column_name in present:
                logger.debug("Column already exists: %s.%s", table, column_name)
            else:
                missing.append((table, column_name, column_type))

    with engine.begin() as conn:
        for table, column_name, column_type in missing:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column_name} {column_type}"))
            logger.info("Added column %s.%s (%s)", table, column_name, column_type)

    return [f"{table}.{column_name}" for table, column_name, _ in missing]
