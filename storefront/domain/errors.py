"""
Ledger error hierarchy.

Every failing ledger operation raises a LedgerError subclass. Each carries a
stable ``code`` so callers (and metrics) can classify outcomes without
matching on messages.
"""
from typing import Optional


class LedgerError(Exception):
    """Base exception for inventory-and-cart ledger errors."""

    code = "ledger_error"


class InvalidInputError(LedgerError):
    """Raised when a quantity, price or identifier is malformed. Not retried."""

    code = "invalid_input"


class ProductNotFoundError(LedgerError):
    """Raised when a product id has no record in the catalog."""

    code = "product_not_found"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id!r} not found")


class InsufficientStockError(LedgerError):
    """Raised when a reservation or decrement would drive stock negative."""

    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for product {product_id!r}: "
            f"requested {requested}, available {available}"
        )


class CartItemNotFoundError(LedgerError):
    """Raised when a cart operation targets a product that is not in the cart."""

    code = "cart_item_not_found"

    def __init__(self, user_id: str, product_id: str):
        self.user_id = user_id
        self.product_id = product_id
        super().__init__(f"Product {product_id!r} is not in the cart of {user_id!r}")


class TransactionAbortedError(LedgerError):
    """
    Raised when a store transaction could not be applied.

    Either the optimistic transaction kept conflicting until the retry budget
    ran out, or the store itself failed. No partial effect was applied, so the
    caller may safely retry.
    """

    code = "transaction_aborted"

    def __init__(self, operation: str, reason: str, attempts: Optional[int] = None):
        self.operation = operation
        self.reason = reason
        self.attempts = attempts
        message = f"Transaction for {operation} aborted: {reason}"
        if attempts is not None:
            message += f" after {attempts} attempts"
        super().__init__(message)


class CheckoutFailedError(LedgerError):
    """Raised when checkout validation fails. The cart is left intact."""

    code = "checkout_failed"

    def __init__(self, user_id: str, reason: str):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Checkout failed for {user_id!r}: {reason}")


class CorruptRecordError(LedgerError):
    """Raised when a record read back from the store cannot be parsed."""

    code = "corrupt_record"

    def __init__(self, record: str, detail: str):
        self.record = record
        self.detail = detail
        super().__init__(f"Corrupt record {record!r}: {detail}")
