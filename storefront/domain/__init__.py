"""
Domain Layer - ledger records and errors.

Key principle: no dependencies on the store, so records and validation can be
tested without Redis.
"""
from .errors import (
    CartItemNotFoundError,
    CheckoutFailedError,
    CorruptRecordError,
    InsufficientStockError,
    InvalidInputError,
    LedgerError,
    ProductNotFoundError,
    TransactionAbortedError,
)
from .models import CartLine, Order, OrderLine, Product

__all__ = [
    "LedgerError",
    "InvalidInputError",
    "ProductNotFoundError",
    "InsufficientStockError",
    "CartItemNotFoundError",
    "TransactionAbortedError",
    "CheckoutFailedError",
    "CorruptRecordError",
    "Product",
    "CartLine",
    "OrderLine",
    "Order",
]
