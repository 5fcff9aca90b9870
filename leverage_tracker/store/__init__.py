from ..errors import ConfigurationError
from .base import Account, ProgressionStore
from .sql import SQLAlchemyStore
from .supabase_store import SupabaseStore, make_client


def build_store(config):
    """Pick the persistence backend once, from configuration."""
    backend = config.get("STORE_BACKEND", "sql")
    if backend == "sql":
        return SQLAlchemyStore()
    if backend == "supabase":
        return SupabaseStore(make_client(config.get("SUPABASE_URL"), config.get("SUPABASE_KEY")))
    raise ConfigurationError(f"Unknown STORE_BACKEND {backend!r} (expected 'sql' or 'supabase')")


__all__ = ["Account", "ProgressionStore", "SQLAlchemyStore", "SupabaseStore", "build_store"]
