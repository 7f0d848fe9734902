"""
Checkout Protocol - converts a cart's reservations into an order.

Flow:
1. Snapshot the user's cart lines
2. Validate every line against its product
3. Build the order (stock was already taken when items were added)
4. Persist the order and delete the cart in one MULTI/EXEC
5. Return the order

A failure at any stage is terminal and leaves cart and stock untouched;
there is no state in which the order exists but the cart is not cleared.
"""
import time
from enum import Enum
from typing import Any, Callable, List

import structlog

from storefront.domain.errors import CheckoutFailedError, CorruptRecordError
from storefront.domain.models import CartLine, Order
from storefront.domain.validation import normalize_identifier
from storefront.monitoring.metrics import metrics, track_operation
from storefront.storage.ledger_store import LedgerStore, LedgerTransaction

logger = structlog.get_logger(__name__)


class CheckoutStage(Enum):
    """Checkout state machine stages."""

    SNAPSHOT = "snapshot"
    VALIDATE = "validate"
    COMMIT = "commit"
    COMPLETED = "completed"
    FAILED = "failed"


def _now_ms() -> int:
    return int(time.time() * 1000)


class CheckoutProtocol:
    """Commits carts into orders."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Initialize checkout.

        Args:
            store: Ledger store
            clock: Source of order timestamps in epoch milliseconds
        """
        self.store = store
        self.clock = clock

    async def checkout(self, user_id: Any) -> Order:
        """
        Commit the user's cart as an order and clear the cart.

        Returns:
            Order: The persisted order

        Raises:
            InvalidInputError: If the user id is malformed
            CheckoutFailedError: If the cart is empty or fails validation
            TransactionAbortedError: If the transaction could not be applied
        """
        with track_operation("checkout"):
            user_id = normalize_identifier(user_id, "user_id")
            stage = CheckoutStage.SNAPSHOT

            async def body(tx: LedgerTransaction) -> Order:
                nonlocal stage
                stage = CheckoutStage.SNAPSHOT
                try:
                    lines = await tx.get_cart(user_id)
                except CorruptRecordError as e:
                    raise CheckoutFailedError(user_id, f"unreadable cart line: {e.detail}") from e
                product_ids = await tx.get_cart_product_ids(user_id)

                stage = CheckoutStage.VALIDATE
                await self._validate(tx, user_id, lines)

                stage = CheckoutStage.COMMIT
                timestamp = self.clock()
                while await tx.order_exists(user_id, timestamp):
                    timestamp += 1
                order = Order.from_cart(user_id, timestamp, lines)

                tx.put_order(order)
                tx.delete_cart(user_id, product_ids)
                return order

            logger.info("checkout_started", user_id=user_id)
            try:
                order = await self.store.transaction("checkout", body)
            except Exception as e:
                logger.warning(
                    "checkout_failed",
                    user_id=user_id,
                    stage=CheckoutStage.FAILED.value,
                    failed_at=stage.value,
                    error=str(e),
                )
                raise

            metrics.record_order(float(order.total), len(order.items))
            logger.info(
                "checkout_completed",
                user_id=user_id,
                stage=CheckoutStage.COMPLETED.value,
                timestamp=order.timestamp,
                line_count=len(order.items),
                total=str(order.total),
            )
            return order

    @staticmethod
    async def _validate(tx: LedgerTransaction, user_id: str, lines: List[CartLine]) -> None:
        """
        Re-check every line against its product.

        Stock for these lines was reserved at add-time, so a healthy ledger
        always passes; this guards against records corrupted outside the
        ledger.
        """
        if not lines:
            raise CheckoutFailedError(user_id, "cart is empty")

        for line in lines:
            try:
                product = await tx.get_product(line.product_id)
            except CorruptRecordError as e:
                raise CheckoutFailedError(
                    user_id, f"unreadable product {line.product_id!r}: {e.detail}"
                ) from e
            if product is None:
                raise CheckoutFailedError(user_id, f"product {line.product_id!r} no longer exists")
            if product.stock < 0:
                raise CheckoutFailedError(
                    user_id,
                    f"stock for product {line.product_id!r} is inconsistent ({product.stock})",
                )
