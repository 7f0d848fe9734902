"""Process-wide Redis connection handle with explicit startup and shutdown."""
from typing import Optional

import redis.asyncio as aioredis
import structlog

from storefront.config import Settings, get_settings
from storefront.storage.ledger_store import LedgerStore

logger = structlog.get_logger(__name__)

# Global client and store, set by init_store() and cleared by close_store()
_client: Optional[aioredis.Redis] = None
_store: Optional[LedgerStore] = None


class StoreNotInitializedError(RuntimeError):
    """Raised when the store is used before init_store() or after close_store()."""


def create_redis_client(settings: Settings) -> aioredis.Redis:
    """
    Create a Redis client for the ledger.

    Responses are decoded to str; the record codecs parse numbers themselves.
    """
    return aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        max_connections=settings.redis_max_connections,
    )


async def init_store(
    settings: Optional[Settings] = None,
    redis_client: Optional[aioredis.Redis] = None,
) -> LedgerStore:
    """
    Initialize the process-wide ledger store.

    Args:
        settings: Optional settings (defaults to the cached application settings)
        redis_client: Optional pre-built client (tests pass an in-process Redis)

    Returns:
        LedgerStore: The initialized store
    """
    global _client, _store
    if _store is not None:
        raise RuntimeError("Ledger store is already initialized")

    settings = settings or get_settings()
    if redis_client is not None:
        client = redis_client
        await client.ping()
    else:
        client = create_redis_client(settings)
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise

    _client = client
    _store = LedgerStore(client, settings=settings)
    logger.info("ledger_store_initialized", redis_url=settings.redis_url)
    return _store


def get_store() -> LedgerStore:
    """
    Get the initialized ledger store.

    Raises:
        StoreNotInitializedError: If init_store() has not been awaited
    """
    if _store is None:
        raise StoreNotInitializedError("Ledger store is not initialized; call init_store()")
    return _store


async def close_store() -> None:
    """Close Redis connections and clear the global handle."""
    global _client, _store
    if _client is not None:
        await _client.aclose()
        logger.info("ledger_store_closed")
    _client = None
    _store = None
