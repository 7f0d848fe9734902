"""Storage package: Redis adapter for ledger records."""
from .connection import (
    StoreNotInitializedError,
    close_store,
    create_redis_client,
    get_store,
    init_store,
)
from .ledger_store import LedgerStore, LedgerTransaction

__all__ = [
    "LedgerStore",
    "LedgerTransaction",
    "StoreNotInitializedError",
    "create_redis_client",
    "init_store",
    "get_store",
    "close_store",
]
