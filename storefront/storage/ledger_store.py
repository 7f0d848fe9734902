"""
Redis-backed ledger store.

Implements "atomic transaction over named records" with optimistic
concurrency:
1. Every read inside a transaction WATCHes the record it reads
2. Validation runs on the watched values
3. Writes are queued after MULTI and applied by a single EXEC
4. If any watched record changed, EXEC is rejected (WatchError) and the whole
   read-validate-write cycle is retried with backoff
5. When the retry budget runs out the transaction is aborted with no effect

Contention is per record: two transactions only conflict when they touch the
same product, cart line, cart index or order key.
"""
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Tuple, TypeVar

import redis.asyncio as aioredis
import structlog
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from storefront.config import Settings, get_settings
from storefront.domain.errors import TransactionAbortedError
from storefront.domain.models import CartLine, Order, Product
from storefront.monitoring.metrics import metrics
from storefront.storage.keys import (
    PRODUCT_PREFIX,
    ORDER_PREFIX,
    CartIndexKey,
    CartLineKey,
    CatalogIndexKey,
    OrderKey,
    ProductKey,
)
from storefront.storage.records import (
    decode_cart_line,
    decode_order,
    decode_product,
    encode_cart_line,
    encode_order,
    encode_product,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def product_sort_key(product_id: str) -> Tuple[int, int, str]:
    """Order numeric ids numerically, then everything else lexically."""
    if product_id.isdigit():
        return (0, int(product_id), product_id)
    return (1, 0, product_id)


class LedgerTransaction:
    """
    A single optimistic transaction attempt.

    Reads are executed immediately and WATCH their record. The first queued
    write issues MULTI, after which no more reads are allowed.
    """

    def __init__(self, pipe: Pipeline):
        self._pipe = pipe
        self._queued = False

    @property
    def in_multi(self) -> bool:
        return self._queued

    async def _watch(self, key: str) -> None:
        if self._queued:
            raise RuntimeError("Cannot read a record after writes have been queued")
        await self._pipe.watch(key)

    def _begin(self) -> None:
        if not self._queued:
            self._pipe.multi()
            self._queued = True

    # ------------------------------------------------------------------
    # Watched reads
    # ------------------------------------------------------------------
    async def get_product(self, product_id: str) -> Optional[Product]:
        key = ProductKey(product_id).redis_key
        await self._watch(key)
        data = await self._pipe.hgetall(key)
        if not data:
            return None
        return decode_product(product_id, data, key)

    async def catalog_is_empty(self) -> bool:
        key = CatalogIndexKey().redis_key
        await self._watch(key)
        return await self._pipe.scard(key) == 0

    async def get_cart_line(self, user_id: str, product_id: str) -> Optional[CartLine]:
        key = CartLineKey(user_id, product_id).redis_key
        await self._watch(key)
        data = await self._pipe.hgetall(key)
        if not data:
            return None
        return decode_cart_line(user_id, product_id, data, key)

    async def get_cart_product_ids(self, user_id: str) -> List[str]:
        key = CartIndexKey(user_id).redis_key
        await self._watch(key)
        members = await self._pipe.smembers(key)
        return sorted(members, key=product_sort_key)

    async def get_cart(self, user_id: str) -> List[CartLine]:
        """Read every line in a user's cart, watching the index and each line."""
        lines = []
        for product_id in await self.get_cart_product_ids(user_id):
            line = await self.get_cart_line(user_id, product_id)
            if line is not None:
                lines.append(line)
        return lines

    async def order_exists(self, user_id: str, timestamp: int) -> bool:
        key = OrderKey(user_id, timestamp).redis_key
        await self._watch(key)
        return bool(await self._pipe.exists(key))

    # ------------------------------------------------------------------
    # Queued writes
    # ------------------------------------------------------------------
    def put_product(self, product: Product) -> None:
        self._begin()
        self._pipe.hset(ProductKey(product.id).redis_key, mapping=encode_product(product))
        self._pipe.sadd(CatalogIndexKey().redis_key, product.id)

    def adjust_stock(self, product_id: str, delta: int) -> None:
        """Field-level increment of a product's stock (negative to reserve)."""
        self._begin()
        self._pipe.hincrby(ProductKey(product_id).redis_key, "stock", delta)

    def put_cart_line(self, line: CartLine) -> None:
        self._begin()
        index = CartIndexKey(line.user_id)
        self._pipe.hset(
            index.line(line.product_id).redis_key, mapping=encode_cart_line(line)
        )
        self._pipe.sadd(index.redis_key, line.product_id)

    def delete_cart_line(self, user_id: str, product_id: str) -> None:
        self._begin()
        index = CartIndexKey(user_id)
        self._pipe.delete(index.line(product_id).redis_key)
        self._pipe.srem(index.redis_key, product_id)

    def delete_cart(self, user_id: str, product_ids: List[str]) -> None:
        self._begin()
        index = CartIndexKey(user_id)
        keys = [index.line(product_id).redis_key for product_id in product_ids]
        self._pipe.delete(index.redis_key, *keys)

    def put_order(self, order: Order) -> None:
        self._begin()
        key = OrderKey(order.user_id, order.timestamp).redis_key
        self._pipe.hset(key, mapping=encode_order(order))


class LedgerStore:
    """
    Ledger access to a Redis keyspace.

    All multi-record mutations go through :meth:`transaction`; single-record
    reads and prefix enumeration are available for listing and auditing.
    """

    def __init__(self, redis_client: aioredis.Redis, settings: Optional[Settings] = None):
        """
        Initialize the store.

        Args:
            redis_client: Redis client created with ``decode_responses=True``
            settings: Optional settings (defaults to the cached application settings)
        """
        self.redis = redis_client
        self.settings = settings or get_settings()

    def _retrying(self, operation: str) -> AsyncRetrying:
        def on_conflict(retry_state: RetryCallState) -> None:
            metrics.record_transaction_conflict(operation)
            logger.debug(
                "transaction_conflict_retrying",
                operation=operation,
                attempt=retry_state.attempt_number,
            )

        return AsyncRetrying(
            retry=retry_if_exception_type(WatchError),
            stop=stop_after_attempt(self.settings.ledger_max_retries),
            wait=wait_random_exponential(
                multiplier=self.settings.ledger_retry_base_delay,
                max=self.settings.ledger_retry_max_delay,
            ),
            before_sleep=on_conflict,
            reraise=True,
        )

    async def _attempt(self, body: Callable[[LedgerTransaction], Awaitable[T]]) -> T:
        async with self.redis.pipeline(transaction=True) as pipe:
            tx = LedgerTransaction(pipe)
            result = await body(tx)
            # An empty MULTI/EXEC still validates the watched reads.
            if not tx.in_multi:
                pipe.multi()
            await pipe.execute()
            return result

    async def transaction(
        self, operation: str, body: Callable[[LedgerTransaction], Awaitable[T]]
    ) -> T:
        """
        Run ``body`` as one optimistic transaction, retrying on conflict.

        ``body`` performs its watched reads and validation, raises a
        LedgerError to reject, or queues writes. It may run several times, so
        it must not have side effects outside the transaction.

        Raises:
            TransactionAbortedError: On exhausted retries or a store failure
        """
        try:
            async for attempt in self._retrying(operation):
                with attempt:
                    result = await self._attempt(body)
        except WatchError as e:
            metrics.record_transaction_abort(operation, "contention")
            logger.warning(
                "transaction_aborted",
                operation=operation,
                reason="contention",
                attempts=self.settings.ledger_max_retries,
            )
            raise TransactionAbortedError(
                operation, "concurrent modification", self.settings.ledger_max_retries
            ) from e
        except RedisError as e:
            metrics.record_transaction_abort(operation, "store_error")
            logger.error("transaction_store_error", operation=operation, error=str(e))
            raise TransactionAbortedError(operation, f"store error: {e}") from e
        return result

    # ------------------------------------------------------------------
    # Unwatched reads and enumeration
    # ------------------------------------------------------------------
    async def get_product(self, product_id: str) -> Optional[Product]:
        key = ProductKey(product_id).redis_key
        data = await self.redis.hgetall(key)
        if not data:
            return None
        return decode_product(product_id, data, key)

    async def scan_keys(self, match: str) -> AsyncIterator[str]:
        """Enumerate keys by pattern (SCAN, never KEYS)."""
        async for key in self.redis.scan_iter(match=match, count=500):
            yield key

    async def iter_products(self) -> AsyncIterator[Product]:
        async for raw in self.scan_keys(f"{PRODUCT_PREFIX}*"):
            key = ProductKey.parse(raw)
            if key is None:
                continue
            data = await self.redis.hgetall(raw)
            if data:
                yield decode_product(key.product_id, data, raw)

    async def iter_cart_lines(self) -> AsyncIterator[CartLine]:
        """Every cart line across all users."""
        async for raw in self.scan_keys(CartLineKey.pattern()):
            key = CartLineKey.parse(raw)
            if key is None:
                continue
            data = await self.redis.hgetall(raw)
            if data:
                yield decode_cart_line(key.user_id, key.product_id, data, raw)

    async def iter_orders(self) -> AsyncIterator[Order]:
        async for raw in self.scan_keys(f"{ORDER_PREFIX}*"):
            if OrderKey.parse(raw) is None:
                continue
            data = await self.redis.hgetall(raw)
            if data:
                yield decode_order(data, raw)
