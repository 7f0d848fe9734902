"""
Ledger application lifespan.

Wires settings, logging, the store connection and the ledger components
together for the excluded HTTP layer (or any other caller):

    async with ledger_lifespan() as storefront:
        await storefront.cart.add_item("alice", "1", 2)
        order = await storefront.checkout.checkout("alice")
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import structlog

from storefront.config import Settings, get_settings
from storefront.core import (
    DEFAULT_CATALOG,
    CartLedger,
    CheckoutProtocol,
    ProductCatalog,
    ReconciliationEngine,
)
from storefront.monitoring.health import HealthCheck
from storefront.monitoring.logging import setup_logging
from storefront.storage.connection import close_store, init_store
from storefront.storage.ledger_store import LedgerStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Storefront:
    """The ledger operations exposed to callers."""

    store: LedgerStore
    catalog: ProductCatalog
    cart: CartLedger
    checkout: CheckoutProtocol
    reconciliation: ReconciliationEngine
    health: HealthCheck

    @classmethod
    def from_store(cls, store: LedgerStore) -> "Storefront":
        return cls(
            store=store,
            catalog=ProductCatalog(store),
            cart=CartLedger(store),
            checkout=CheckoutProtocol(store),
            reconciliation=ReconciliationEngine(store),
            health=HealthCheck(store.redis),
        )


@asynccontextmanager
async def ledger_lifespan(
    settings: Optional[Settings] = None,
    redis_client: Optional[aioredis.Redis] = None,
    configure_logging: bool = True,
) -> AsyncIterator[Storefront]:
    """
    Application lifespan manager.

    Startup: configure logging, connect to the store, seed the default
    catalog if enabled. Shutdown: close the store connection.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    logger.info("application_startup", app_name=settings.app_name, env=settings.app_env)
    store = await init_store(settings, redis_client=redis_client)
    try:
        storefront = Storefront.from_store(store)
        if settings.seed_catalog_on_startup:
            await storefront.catalog.seed_catalog(DEFAULT_CATALOG)
        yield storefront
    finally:
        logger.info("application_shutdown")
        await close_store()
