import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _database_uri():
    url = os.environ.get("DATABASE_URL") or os.environ.get("SUPABASE_PG_URL")
    if not url:
        db_file = os.environ.get("DATABASE_PATH", str(BASE_DIR / "database.db"))
        return f"sqlite:///{db_file}"
    # SQLAlchemy only understands the long scheme name
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" (SQLite / PostgreSQL through SQLAlchemy) or "supabase"
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "sql")
    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_KEY = os.environ.get("SUPABASE_KEY")

    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", 7 * 24 * 60 * 60))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    MIN_PASSWORD_LENGTH = 4
    MIN_AGE = 18
    DEFAULT_ODD = 1.1
    DEFAULT_MAX_STEPS = 60


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STORE_BACKEND = "sql"
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = "DEBUG"
