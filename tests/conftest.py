"""
Pytest configuration and fixtures.

The ledger runs against an in-process Redis (fakeredis) with its own server
per test, so tests need no Redis instance and never share state.
"""
from decimal import Decimal
from typing import Any, AsyncGenerator

import fakeredis
import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis

from storefront.config import Settings
from storefront.core import CartLedger, CheckoutProtocol, ProductCatalog, ReconciliationEngine
from storefront.domain.models import Product
from storefront.storage import LedgerStore


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        redis_url="redis://localhost:6379/1",
        app_name="storefront-ledger-test",
        app_env="test",
        log_level="DEBUG",
        ledger_max_retries=5,
        ledger_retry_base_delay=0.0,
        ledger_retry_max_delay=0.0,
        seed_catalog_on_startup=False,
    )


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[Any, Any]:
    """Create an in-process Redis client with a private server."""
    client = fake_aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def store(redis_client: Any, test_settings: Settings) -> LedgerStore:
    return LedgerStore(redis_client, settings=test_settings)


@pytest.fixture
def catalog(store: LedgerStore) -> ProductCatalog:
    return ProductCatalog(store)


@pytest.fixture
def cart(store: LedgerStore) -> CartLedger:
    return CartLedger(store)


@pytest.fixture
def checkout(store: LedgerStore) -> CheckoutProtocol:
    return CheckoutProtocol(store)


@pytest.fixture
def reconciliation(store: LedgerStore) -> ReconciliationEngine:
    return ReconciliationEngine(store)


@pytest.fixture
def sample_products() -> list[Product]:
    """P: stock 10 at 2.50, Q: stock 5 at 4.00, S: a single unit at 9.99."""
    return [
        Product(id="P", name="Pencil", price=Decimal("2.50"), stock=10),
        Product(id="Q", name="Quill", price=Decimal("4.00"), stock=5),
        Product(id="S", name="Stamp", price=Decimal("9.99"), stock=1),
    ]


@pytest_asyncio.fixture
async def seeded_catalog(
    catalog: ProductCatalog, sample_products: list[Product]
) -> ProductCatalog:
    """Catalog seeded with the sample products."""
    assert await catalog.seed_catalog(sample_products) is True
    return catalog
