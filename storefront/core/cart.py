"""
Cart Ledger - per-user reservations against product stock.

A cart line's quantity is stock that has already been taken out of the
product's available count. Every mutation therefore changes the product and
the cart line in the same transaction, which keeps

    seeded stock == stock + reserved quantities + ordered quantities

true for every product at every point another transaction can observe.
"""
from decimal import Decimal
from typing import Any, List, Optional

import structlog

from storefront.domain.errors import (
    CartItemNotFoundError,
    InsufficientStockError,
    ProductNotFoundError,
)
from storefront.domain.models import CartLine
from storefront.domain.validation import normalize_identifier, parse_price, parse_quantity
from storefront.monitoring.metrics import track_operation
from storefront.storage.ledger_store import LedgerStore, LedgerTransaction

logger = structlog.get_logger(__name__)


class CartLedger:
    """
    Reserve and release stock through shoppers' carts.

    Operations on different users never share a cart record; they only
    contend when they reserve or release the same product.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def add_item(
        self,
        user_id: Any,
        product_id: Any,
        quantity: Any,
        name_hint: Optional[str] = None,
        price_hint: Any = None,
    ) -> CartLine:
        """
        Reserve ``quantity`` of a product in the user's cart.

        Creates the cart line with a name/price snapshot on first add, or
        increases the existing line. The snapshot uses the hints when given,
        otherwise the product's current name and price.

        Args:
            user_id: Authenticated shopper id
            product_id: Product to reserve
            quantity: Positive integer quantity
            name_hint: Optional display name to snapshot
            price_hint: Optional non-negative price to snapshot

        Returns:
            CartLine: The line after the reservation

        Raises:
            InvalidInputError: If quantity, price hint or ids are malformed
            ProductNotFoundError: If the product does not exist
            InsufficientStockError: If stock is lower than ``quantity``
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("add_item"):
            user_id = normalize_identifier(user_id, "user_id")
            product_id = normalize_identifier(product_id, "product_id")
            quantity = parse_quantity(quantity)
            price = parse_price(price_hint, "price_hint") if price_hint is not None else None

            async def body(tx: LedgerTransaction) -> CartLine:
                product = await tx.get_product(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                if product.stock < quantity:
                    raise InsufficientStockError(product_id, quantity, product.stock)

                existing = await tx.get_cart_line(user_id, product_id)
                if existing is not None:
                    line = existing.model_copy(
                        update={"quantity": existing.quantity + quantity}
                    )
                else:
                    line = CartLine(
                        user_id=user_id,
                        product_id=product_id,
                        name=name_hint or product.name,
                        price=price if price is not None else product.price,
                        quantity=quantity,
                    )

                tx.adjust_stock(product_id, -quantity)
                tx.put_cart_line(line)
                return line

            line = await self.store.transaction("add_item", body)
            logger.info(
                "cart_item_added",
                user_id=user_id,
                product_id=product_id,
                quantity=quantity,
                line_quantity=line.quantity,
            )
            return line

    async def increase_quantity(self, user_id: Any, product_id: Any, delta: Any = 1) -> CartLine:
        """
        Reserve ``delta`` more of a product already in the cart.

        Raises:
            InvalidInputError: If ``delta`` or ids are malformed
            CartItemNotFoundError: If the product is not in the cart
            ProductNotFoundError: If the product does not exist
            InsufficientStockError: If stock is lower than ``delta``
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("increase_quantity"):
            user_id = normalize_identifier(user_id, "user_id")
            product_id = normalize_identifier(product_id, "product_id")
            delta = parse_quantity(delta, "delta")

            async def body(tx: LedgerTransaction) -> CartLine:
                line = await tx.get_cart_line(user_id, product_id)
                if line is None:
                    raise CartItemNotFoundError(user_id, product_id)
                product = await tx.get_product(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                if product.stock < delta:
                    raise InsufficientStockError(product_id, delta, product.stock)

                updated = line.model_copy(update={"quantity": line.quantity + delta})
                tx.adjust_stock(product_id, -delta)
                tx.put_cart_line(updated)
                return updated

            line = await self.store.transaction("increase_quantity", body)
            logger.info(
                "cart_quantity_increased",
                user_id=user_id,
                product_id=product_id,
                delta=delta,
                line_quantity=line.quantity,
            )
            return line

    async def decrease_quantity(
        self, user_id: Any, product_id: Any, delta: Any = 1
    ) -> Optional[CartLine]:
        """
        Release ``delta`` of a reserved product back to stock.

        If the line would drop to zero or below, only the remaining reserved
        quantity is returned to stock and the line is deleted.

        Returns:
            Optional[CartLine]: The updated line, or None if it was deleted

        Raises:
            InvalidInputError: If ``delta`` or ids are malformed
            CartItemNotFoundError: If the product is not in the cart
            ProductNotFoundError: If the product does not exist
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("decrease_quantity"):
            user_id = normalize_identifier(user_id, "user_id")
            product_id = normalize_identifier(product_id, "product_id")
            delta = parse_quantity(delta, "delta")

            async def body(tx: LedgerTransaction) -> Optional[CartLine]:
                line = await tx.get_cart_line(user_id, product_id)
                if line is None:
                    raise CartItemNotFoundError(user_id, product_id)
                if await tx.get_product(product_id) is None:
                    raise ProductNotFoundError(product_id)

                released = min(delta, line.quantity)
                tx.adjust_stock(product_id, released)
                if line.quantity - released <= 0:
                    tx.delete_cart_line(user_id, product_id)
                    return None
                updated = line.model_copy(update={"quantity": line.quantity - released})
                tx.put_cart_line(updated)
                return updated

            line = await self.store.transaction("decrease_quantity", body)
            logger.info(
                "cart_quantity_decreased",
                user_id=user_id,
                product_id=product_id,
                delta=delta,
                line_quantity=line.quantity if line else 0,
            )
            return line

    async def remove_item(self, user_id: Any, product_id: Any) -> int:
        """
        Remove a product from the cart, returning its full quantity to stock.

        Returns:
            int: The quantity released back to stock

        Raises:
            CartItemNotFoundError: If the product is not in the cart
            ProductNotFoundError: If the product does not exist
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("remove_item"):
            user_id = normalize_identifier(user_id, "user_id")
            product_id = normalize_identifier(product_id, "product_id")

            async def body(tx: LedgerTransaction) -> int:
                line = await tx.get_cart_line(user_id, product_id)
                if line is None:
                    raise CartItemNotFoundError(user_id, product_id)
                if await tx.get_product(product_id) is None:
                    raise ProductNotFoundError(product_id)
                tx.adjust_stock(product_id, line.quantity)
                tx.delete_cart_line(user_id, product_id)
                return line.quantity

            released = await self.store.transaction("remove_item", body)
            logger.info(
                "cart_item_removed",
                user_id=user_id,
                product_id=product_id,
                released=released,
            )
            return released

    async def clear_cart(self, user_id: Any) -> int:
        """
        Return every reserved quantity to stock and empty the cart.

        Safe on an empty cart (returns 0).

        Returns:
            int: Total quantity released back to stock

        Raises:
            ProductNotFoundError: If a line references a missing product
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("clear_cart"):
            user_id = normalize_identifier(user_id, "user_id")

            async def body(tx: LedgerTransaction) -> int:
                lines = await tx.get_cart(user_id)
                product_ids = await tx.get_cart_product_ids(user_id)
                for line in lines:
                    if await tx.get_product(line.product_id) is None:
                        raise ProductNotFoundError(line.product_id)
                if not product_ids:
                    return 0

                for line in lines:
                    tx.adjust_stock(line.product_id, line.quantity)
                tx.delete_cart(user_id, product_ids)
                return sum(line.quantity for line in lines)

            released = await self.store.transaction("clear_cart", body)
            if released:
                logger.info("cart_cleared", user_id=user_id, released=released)
            else:
                logger.info("cart_already_empty", user_id=user_id)
            return released

    async def list_items(self, user_id: Any) -> List[CartLine]:
        """The user's cart lines, ordered by product id."""
        with track_operation("list_items"):
            user_id = normalize_identifier(user_id, "user_id")

            async def body(tx: LedgerTransaction) -> List[CartLine]:
                return await tx.get_cart(user_id)

            return await self.store.transaction("list_items", body)

    async def cart_total(self, user_id: Any) -> Decimal:
        """Sum of quantity x snapshot price over the user's cart."""
        lines = await self.list_items(user_id)
        return sum((line.subtotal for line in lines), Decimal("0"))
