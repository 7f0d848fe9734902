"""
Product Catalog - authoritative stock counts per product.

Stock changes are optimistic transactions over a single product record, so
unrelated products never contend with each other.
"""
from typing import Any, Iterable, List, Mapping, Union

import structlog

from storefront.domain.errors import (
    InsufficientStockError,
    InvalidInputError,
    ProductNotFoundError,
)
from storefront.domain.models import Product
from storefront.domain.validation import normalize_identifier, parse_price, parse_quantity
from storefront.monitoring.metrics import track_operation
from storefront.storage.ledger_store import LedgerStore, LedgerTransaction, product_sort_key

logger = structlog.get_logger(__name__)

ProductInput = Union[Product, Mapping[str, Any]]


class ProductCatalog:
    """Reads products and applies stock adjustments."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def get_product(self, product_id: Any) -> Product:
        """
        Get a product by id.

        Raises:
            InvalidInputError: If the id is malformed
            ProductNotFoundError: If no such product exists
        """
        with track_operation("get_product"):
            product_id = normalize_identifier(product_id, "product_id")
            product = await self.store.get_product(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            return product

    async def list_products(self) -> List[Product]:
        """All products, ordered by id."""
        with track_operation("list_products"):
            products = [product async for product in self.store.iter_products()]
            return sorted(products, key=lambda p: product_sort_key(p.id))

    async def decrement_stock(self, product_id: Any, amount: Any) -> Product:
        """
        Atomically subtract ``amount`` from a product's stock.

        Raises:
            InvalidInputError: If the id or amount is malformed
            ProductNotFoundError: If no such product exists
            InsufficientStockError: If ``amount`` exceeds the current stock
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("decrement_stock"):
            product_id = normalize_identifier(product_id, "product_id")
            amount = parse_quantity(amount, "amount")

            async def body(tx: LedgerTransaction) -> Product:
                product = await tx.get_product(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                if product.stock < amount:
                    raise InsufficientStockError(product_id, amount, product.stock)
                tx.adjust_stock(product_id, -amount)
                return product.model_copy(update={"stock": product.stock - amount})

            product = await self.store.transaction("decrement_stock", body)
            logger.info(
                "stock_decremented",
                product_id=product_id,
                amount=amount,
                stock=product.stock,
            )
            return product

    async def increment_stock(self, product_id: Any, amount: Any) -> Product:
        """
        Atomically add ``amount`` to a product's stock.

        Raises:
            InvalidInputError: If the id or amount is malformed
            ProductNotFoundError: If no such product exists
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("increment_stock"):
            product_id = normalize_identifier(product_id, "product_id")
            amount = parse_quantity(amount, "amount")

            async def body(tx: LedgerTransaction) -> Product:
                product = await tx.get_product(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                tx.adjust_stock(product_id, amount)
                return product.model_copy(update={"stock": product.stock + amount})

            product = await self.store.transaction("increment_stock", body)
            logger.info(
                "stock_incremented",
                product_id=product_id,
                amount=amount,
                stock=product.stock,
            )
            return product

    async def seed_catalog(self, initial_products: Iterable[ProductInput]) -> bool:
        """
        Insert the initial catalog if, and only if, the catalog is empty.

        The emptiness check and the inserts are one transaction, so concurrent
        seeders cannot both insert.

        Args:
            initial_products: Products, or mappings with id, name, price and stock

        Returns:
            bool: True if the catalog was seeded, False if it already had products

        Raises:
            InvalidInputError: If any product is malformed or ids repeat
        """
        with track_operation("seed_catalog"):
            products = self._validate_seed(initial_products)

            async def body(tx: LedgerTransaction) -> bool:
                if not await tx.catalog_is_empty():
                    return False
                for product in products:
                    tx.put_product(product)
                return True

            seeded = await self.store.transaction("seed_catalog", body)
            if seeded:
                logger.info("catalog_seeded", product_count=len(products))
            else:
                logger.info("catalog_seed_skipped", reason="catalog_not_empty")
            return seeded

    @staticmethod
    def _validate_seed(initial_products: Iterable[ProductInput]) -> List[Product]:
        products: List[Product] = []
        seen = set()
        for raw in initial_products:
            data = raw.model_dump() if isinstance(raw, Product) else dict(raw)
            try:
                product_id = normalize_identifier(data["id"], "id")
                name = str(data["name"]).strip()
                price = parse_price(data["price"])
                stock = data["stock"]
            except KeyError as e:
                raise InvalidInputError(f"Seed product is missing field {e.args[0]!r}") from None

            if not name:
                raise InvalidInputError(f"Seed product {product_id!r} has no name")
            if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
                raise InvalidInputError(
                    f"Seed product {product_id!r} stock must be a non-negative integer"
                )
            if product_id in seen:
                raise InvalidInputError(f"Duplicate seed product id {product_id!r}")
            seen.add(product_id)

            products.append(
                Product(id=product_id, name=name, price=price, stock=stock, initial_stock=stock)
            )
        return products
